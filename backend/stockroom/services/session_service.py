# Overview: Bearer session lifecycle; issue, validate, revoke.

"""
Session Service

A sign-in issues a random 32-byte bearer token. The client keeps the
plaintext; the database keeps only its SHA-256 digest (tokens are already
high-entropy, so a slow hash buys nothing).

A session stops working when any of these hold:
- it is older than SESSION_ABSOLUTE_TIMEOUT_HOURS
- it has not been used for SESSION_IDLE_TIMEOUT_HOURS (revoked on sight)
- it was revoked by sign-out or revoke_all_sessions
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, UserProfile
from stockroom.time_utils import utcnow


@dataclass
class SessionContext:
    profile: UserProfile
    session: SessionToken
    role: str


def _hours(key: str, default: int) -> timedelta:
    return timedelta(hours=current_app.config.get(key, default))


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _active_session(token: str) -> SessionToken | None:
    return (
        db.session.query(SessionToken)
        .filter_by(token_hash=hash_token(token), is_revoked=False)
        .first()
    )


def _mark_revoked(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def create_session(profile_id: int) -> tuple[SessionToken, str]:
    """Returns (session_record, plaintext_token)."""
    profile = db.session.get(UserProfile, profile_id)
    if profile is None:
        raise ValueError("User not found")

    token = generate_token()
    now = utcnow()
    session = SessionToken(
        profile_id=profile.id,
        token_hash=hash_token(token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _hours("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24),
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its profile and role, or None.

    A successful check touches last_used_at and the profile's last_seen.
    """
    from .role_service import resolve_role

    session = _active_session(token)
    if session is None:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    if now - session.last_used_at > _hours("SESSION_IDLE_TIMEOUT_HOURS", 2):
        _mark_revoked(session, "Idle timeout")
        db.session.commit()
        return None

    profile = session.profile
    if profile is None:
        return None

    session.last_used_at = now
    profile.last_seen = now
    db.session.commit()

    return SessionContext(profile=profile, session=session, role=resolve_role(profile))


def revoke_session(token: str, reason: str = "User sign-out") -> bool:
    """False if the token was unknown or already revoked."""
    session = _active_session(token)
    if session is None:
        return False
    _mark_revoked(session, reason)
    db.session.commit()
    return True


def revoke_all_sessions(profile_id: int, reason: str = "Revoke all sessions") -> int:
    sessions = db.session.query(SessionToken).filter_by(profile_id=profile_id, is_revoked=False).all()
    for session in sessions:
        _mark_revoked(session, reason)
    db.session.commit()
    return len(sessions)
