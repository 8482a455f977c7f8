# backend/stockroom/config.py
from __future__ import annotations
import os


def _env_list(name: str, default: str = "") -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockroom.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockroom.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Emails that resolve to MANAGER unless their profile says otherwise
    MANAGER_EMAILS = _env_list("MANAGER_EMAILS")

    # Reject sign-in until the account's email has been confirmed
    REQUIRE_EMAIL_VERIFICATION = _env_bool("REQUIRE_EMAIL_VERIFICATION", True)

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    SESSION_ABSOLUTE_TIMEOUT_HOURS = int(os.environ.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", "24"))
    SESSION_IDLE_TIMEOUT_HOURS = int(os.environ.get("SESSION_IDLE_TIMEOUT_HOURS", "2"))

    # Emergency MANAGER sign-in (POST /api/auth/emergency). Off unless both
    # are set; the password is only ever configured as a bcrypt hash.
    EMERGENCY_EMAIL = os.environ.get("EMERGENCY_EMAIL", "").strip().lower() or None
    EMERGENCY_PASSWORD_HASH = os.environ.get("EMERGENCY_PASSWORD_HASH") or None
