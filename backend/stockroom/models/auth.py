from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


ROLE_MANAGER = "MANAGER"
ROLE_STAFF = "STAFF"
ROLES = (ROLE_MANAGER, ROLE_STAFF)


class UserProfile(db.Model):
    """
    Account and profile for a person using the app.

    role is nullable: NULL means "no explicit assignment", in which case the
    role is resolved from the MANAGER_EMAILS allow-list at request time
    (see services/role_service.py). A stored role always wins.
    """
    __tablename__ = "profiles"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_profiles_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Stored lower-cased so lookups are case-insensitive
    email = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)
    email_verified = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_seen = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<UserProfile id={self.id} email={self.email!r} role={self.role!r}>"

    def to_dict(self, resolved_role: str | None = None) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": resolved_role or self.role or ROLE_STAFF,
            "email_verified": self.email_verified,
            "created_at": to_utc_z(self.created_at),
            "last_seen": to_utc_z(self.last_seen) if self.last_seen else None,
        }


class SessionToken(db.Model):
    """
    Bearer session issued at sign-in.

    Only the SHA-256 hash of the token is stored; the plaintext goes to the
    client once and is never persisted.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_profile", "profile_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    profile_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    profile = db.relationship(
        "UserProfile",
        backref=db.backref("sessions", lazy=True, cascade="all, delete-orphan"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "profile_id": self.profile_id,
            "created_at": to_utc_z(self.created_at),
            "expires_at": to_utc_z(self.expires_at),
            "last_used_at": to_utc_z(self.last_used_at),
        }
