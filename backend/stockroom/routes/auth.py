# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/stockroom/routes/auth.py
"""
Authentication API routes

- POST /signup   create an account (starts unverified)
- POST /login    issue a bearer session
- POST /logout   revoke the caller's session
- POST /emergency  issue a MANAGER session for the configured emergency pair
- GET  /session  return the caller's profile and resolved role
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services.auth_service import AuthError, EmailNotVerifiedError
from ..services.role_service import profile_to_dict
from ..decorators import require_auth, bearer_token
from ..validation import ValidationError, json_object


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/signup")
def signup_route():
    try:
        data = json_object(request.get_json(silent=True))
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        profile = auth_service.sign_up(email, password, data.get("name"))
        return jsonify({"user": profile_to_dict(profile), "message": "Account created"}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except AuthError as e:
        return jsonify({"error": str(e), "code": e.code}), 400
    except Exception:
        current_app.logger.exception("Failed to sign up user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    401 invalid_credentials, 403 email_not_verified.
    """
    try:
        data = json_object(request.get_json(silent=True))
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        profile, token = auth_service.sign_in(email, password)
        return jsonify({
            "user": profile_to_dict(profile),
            "token": token,
            "message": "Login successful",
        }), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except EmailNotVerifiedError as e:
        return jsonify({"error": str(e), "code": e.code}), 403
    except AuthError as e:
        return jsonify({"error": str(e), "code": e.code}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    try:
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authorization header required"}), 401

        if not session_service.revoke_session(token, reason="User sign-out"):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/session")
@require_auth
def session_route():
    return jsonify({"user": profile_to_dict(g.current_user), "message": "Token valid"}), 200


@auth_bp.post("/emergency")
def emergency_login_route():
    """
    Emergency MANAGER sign-in for the configured pair.

    Same response shape as /login. 401 when the pair does not match or
    emergency access is not configured.
    """
    try:
        data = json_object(request.get_json(silent=True))
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        profile, token = auth_service.emergency_sign_in(email, password)
        current_app.logger.warning("Emergency sign-in used for %s", profile.email)
        return jsonify({
            "user": profile_to_dict(profile),
            "token": token,
            "message": "Login successful",
        }), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except AuthError as e:
        return jsonify({"error": str(e), "code": e.code}), 401
    except Exception:
        current_app.logger.exception("Failed emergency sign-in")
        return jsonify({"error": "Internal server error"}), 500
