from .inventory import Product
from .debtors import Debtor
from .auth import UserProfile, SessionToken, ROLE_MANAGER, ROLE_STAFF, ROLES
from .activity import ActivityLog, ACTIVITY_ACTIONS

__all__ = [
    'Product',
    'Debtor',
    'UserProfile', 'SessionToken', 'ROLE_MANAGER', 'ROLE_STAFF', 'ROLES',
    'ActivityLog', 'ACTIVITY_ACTIONS',
]
