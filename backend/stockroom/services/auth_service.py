# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Credential-based sign-up and sign-in. Uses bcrypt for password hashing and
issues bearer sessions through session_service.

Failure kinds are distinguished so the client can show the right message:
- InvalidCredentialsError: unknown email or wrong password
- EmailNotVerifiedError: correct password, email not confirmed yet
  (only when REQUIRE_EMAIL_VERIFICATION is on)
- SignUpError: duplicate email or weak password
"""

import bcrypt
import re

from flask import current_app

from ..extensions import db
from ..models import UserProfile, ROLE_MANAGER
from ..models.activity import ACTIVITY_LOGIN, ACTIVITY_USER_MGMT
from stockroom.time_utils import utcnow
from . import session_service
from .activity_service import append_activity
from .role_service import resolve_role


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthError(Exception):
    """Base class for authentication failures."""
    code = "auth_error"


class InvalidCredentialsError(AuthError):
    code = "invalid_credentials"


class EmailNotVerifiedError(AuthError):
    code = "email_not_verified"


class SignUpError(AuthError):
    code = "signup_failed"


class PasswordValidationError(SignUpError):
    """Raised when password doesn't meet strength requirements."""
    code = "weak_password"


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt (cost factor BCRYPT_ROUNDS, default 12).

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def find_profile(email: str) -> UserProfile | None:
    return db.session.query(UserProfile).filter_by(email=normalize_email(email)).first()


def sign_up(email: str, password: str, display_name: str | None = None) -> UserProfile:
    """
    Register a new account.

    Display name falls back to the local part of the email.
    The account starts unverified and without an explicit role.

    Raises:
        SignUpError: invalid or duplicate email
        PasswordValidationError: weak password
    """
    email = normalize_email(email)
    if not EMAIL_RE.match(email):
        raise SignUpError("A valid email address is required")

    if find_profile(email) is not None:
        raise SignUpError("An account with this email already exists")

    password_hash = hash_password(password or "")

    profile = UserProfile(
        email=email,
        name=(display_name or "").strip() or email.split("@")[0],
        password_hash=password_hash,
        email_verified=False,
    )
    db.session.add(profile)
    append_activity(ACTIVITY_LOGIN, f"New user signed up: {email}")
    db.session.commit()
    return profile


def confirm_email(email: str) -> UserProfile:
    profile = find_profile(email)
    if profile is None:
        raise InvalidCredentialsError("Invalid login credentials")
    profile.email_verified = True
    db.session.commit()
    return profile


def sign_in(email: str, password: str) -> tuple[UserProfile, str]:
    """
    Authenticate and issue a session.

    Returns (profile, plaintext_token). Updates last_seen and logs LOGIN.
    """
    profile = find_profile(email)

    if profile is None or not verify_password(password or "", profile.password_hash):
        raise InvalidCredentialsError("Invalid login credentials")

    if current_app.config.get("REQUIRE_EMAIL_VERIFICATION", True) and not profile.email_verified:
        raise EmailNotVerifiedError("Email not confirmed")

    profile.last_seen = utcnow()
    append_activity(ACTIVITY_LOGIN, f"User {profile.email} logged in", profile)
    db.session.commit()

    _, token = session_service.create_session(profile.id)
    return profile, token


def emergency_sign_in(email: str, password: str) -> tuple[UserProfile, str]:
    """
    Issue a MANAGER session for the configured emergency pair.

    Disabled unless EMERGENCY_EMAIL and EMERGENCY_PASSWORD_HASH are both set.
    The profile is created on first use (verified, role MANAGER); an existing
    profile without the MANAGER role is promoted.

    Raises:
        InvalidCredentialsError: not configured, or the pair does not match
    """
    configured_email = normalize_email(current_app.config.get("EMERGENCY_EMAIL"))
    configured_hash = current_app.config.get("EMERGENCY_PASSWORD_HASH")
    email = normalize_email(email)

    if not configured_email or not configured_hash or email != configured_email:
        raise InvalidCredentialsError("Invalid login credentials")
    if not verify_password(password or "", configured_hash):
        raise InvalidCredentialsError("Invalid login credentials")

    profile = find_profile(email)
    if profile is None:
        profile = UserProfile(
            email=email,
            name="Manager (Local)",
            role=ROLE_MANAGER,
            password_hash=configured_hash,
            email_verified=True,
        )
        db.session.add(profile)
    elif resolve_role(profile) != ROLE_MANAGER:
        profile.role = ROLE_MANAGER
        append_activity(ACTIVITY_USER_MGMT, f"Changed role for {profile.name} to {ROLE_MANAGER}")

    profile.last_seen = utcnow()
    db.session.flush()
    append_activity(ACTIVITY_LOGIN, "Manager logged in via Fallback", profile)
    db.session.commit()

    _, token = session_service.create_session(profile.id)
    return profile, token
