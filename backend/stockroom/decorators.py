# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .models import ROLE_MANAGER
from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: the authenticated UserProfile
    - g.role: the resolved role (MANAGER or STAFF)
    - g.token: the plaintext bearer token of this request

    Returns 401 if the header is missing or the token is invalid, expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.profile
        g.role = context.role
        g.token = token

        return f(*args, **kwargs)

    return decorated_function


def require_manager(f):
    """
    Require the MANAGER role. Must be stacked under @require_auth.

    Staff sessions are read-only: every mutating route carries this.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not hasattr(g, "current_user"):
            return jsonify({"error": "Authentication required"}), 401

        if g.role != ROLE_MANAGER:
            current_app.logger.warning(
                "Permission denied for %s on %s %s", g.current_user.email, request.method, request.path
            )
            return jsonify({
                "error": "Permission denied",
                "required_role": ROLE_MANAGER,
                "message": "Access Denied: Only Managers can perform this action.",
            }), 403

        return f(*args, **kwargs)

    return decorated_function
