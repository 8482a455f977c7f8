# Overview: Service-layer operations for the activity log; append-only writes and reads.

from __future__ import annotations

from ..extensions import db
from ..models import ActivityLog, ACTIVITY_ACTIONS
from stockroom.time_utils import utcnow

"""
Activity Log Invariants

- Append-only: no updates or deletes of existing entries.
- Entries are added to the caller's session and committed together with
  the action they record.
- Actor is stored as a display name; "System" when nobody is signed in.
"""

DEFAULT_ACTOR = "System"


def append_activity(action: str, description: str, actor=None) -> ActivityLog:
    if action not in ACTIVITY_ACTIONS:
        raise ValueError(f"Unknown activity action: {action}")

    entry = ActivityLog(
        action=action,
        description=description,
        user=getattr(actor, "name", None) or DEFAULT_ACTOR,
        timestamp=utcnow(),
    )
    db.session.add(entry)
    return entry


def list_activity(limit: int | None = None) -> list[dict]:
    """Newest first."""
    query = db.session.query(ActivityLog).order_by(
        ActivityLog.timestamp.desc(), ActivityLog.id.desc()
    )
    if limit is not None:
        query = query.limit(max(limit, 1))
    return [entry.to_dict() for entry in query.all()]
