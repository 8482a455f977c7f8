from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


ACTIVITY_ADD = "ADD"
ACTIVITY_UPDATE = "UPDATE"
ACTIVITY_DELETE = "DELETE"
ACTIVITY_TRANSFER = "TRANSFER"
ACTIVITY_LOGIN = "LOGIN"
ACTIVITY_DEBTOR = "DEBTOR"
ACTIVITY_USER_MGMT = "USER_MGMT"

ACTIVITY_ACTIONS = (
    ACTIVITY_ADD,
    ACTIVITY_UPDATE,
    ACTIVITY_DELETE,
    ACTIVITY_TRANSFER,
    ACTIVITY_LOGIN,
    ACTIVITY_DEBTOR,
    ACTIVITY_USER_MGMT,
)


class ActivityLog(db.Model):
    """
    Append-only record of user actions.

    Rows are written in the same transaction as the action they describe
    and are never updated or deleted.
    """
    __tablename__ = "activity_logs"
    __table_args__ = (
        db.Index("ix_activity_logs_timestamp", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(16), nullable=False, index=True)
    description = db.Column(db.String(512), nullable=False)
    user = db.Column(db.String(255), nullable=False, default="System")
    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action": self.action,
            "description": self.description,
            "user": self.user,
            "timestamp": to_utc_z(self.timestamp),
        }
