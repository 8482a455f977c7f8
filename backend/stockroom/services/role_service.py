# Overview: Role resolution and user management for MANAGER/STAFF access.

"""
Role Resolution

Two roles only:
- MANAGER: full mutation rights
- STAFF: read-only

Resolution order for a profile:
1. An explicit profile.role always wins.
2. Otherwise MANAGER if the email is on the MANAGER_EMAILS allow-list.
3. Otherwise STAFF.

Roles gate requests only; they are not cryptographically bound to anything.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import UserProfile, ROLE_MANAGER, ROLE_STAFF, ROLES
from ..models.activity import ACTIVITY_USER_MGMT
from ..validation import ValidationError, NotFoundError
from .activity_service import append_activity


class PermissionDeniedError(Exception):
    """Raised when the caller's role does not allow an operation."""
    pass


def manager_emails() -> set[str]:
    return {email.lower() for email in current_app.config.get("MANAGER_EMAILS", [])}


def resolve_role(profile: UserProfile) -> str:
    if profile.role in ROLES:
        return profile.role
    if profile.email and profile.email.lower() in manager_emails():
        return ROLE_MANAGER
    return ROLE_STAFF


def is_manager(profile: UserProfile | None) -> bool:
    return profile is not None and resolve_role(profile) == ROLE_MANAGER


def require_manager(profile: UserProfile | None) -> None:
    if not is_manager(profile):
        raise PermissionDeniedError("Only managers can perform this action")


def profile_to_dict(profile: UserProfile) -> dict:
    return profile.to_dict(resolved_role=resolve_role(profile))


def list_profiles() -> list[dict]:
    """Most recently seen first; never-seen profiles last."""
    profiles = db.session.query(UserProfile).all()
    profiles.sort(key=lambda p: (p.last_seen is not None, p.last_seen or p.created_at), reverse=True)
    return [profile_to_dict(p) for p in profiles]


def update_user_role(*, profile_id: int, role: str, actor: UserProfile) -> dict:
    """
    Assign an explicit role to a profile.

    Raises:
        PermissionDeniedError: actor is not a manager
        ValidationError: unknown role, or actor targets their own profile
        NotFoundError: profile does not exist
    """
    require_manager(actor)

    if role not in ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ROLES)}")

    target = db.session.query(UserProfile).filter_by(id=profile_id).first()
    if target is None:
        raise NotFoundError(f"User {profile_id} not found")

    if target.id == actor.id:
        raise ValidationError("You cannot change your own role")

    target.role = role
    append_activity(
        ACTIVITY_USER_MGMT,
        f"Changed role for {target.name or target.email} to {role}",
        actor,
    )
    db.session.commit()
    return profile_to_dict(target)
