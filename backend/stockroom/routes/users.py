# Overview: Flask API routes for user profiles and role assignment.

from flask import Blueprint, request, g

from ..services import role_service
from ..services.role_service import PermissionDeniedError
from ..validation import ValidationError, NotFoundError, json_object
from ..decorators import require_auth, require_manager

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
def list_users():
    items = role_service.list_profiles()
    return {"items": items, "count": len(items)}


@users_bp.put("/<int:profile_id>/role")
@require_auth
@require_manager
def update_role_route(profile_id: int):
    """
    Request body: {"role": "MANAGER" | "STAFF"}

    A manager cannot change their own role (400).
    """
    try:
        data = json_object(request.get_json(silent=True))
    except ValidationError as e:
        return {"error": str(e)}, 400

    role = data.get("role")
    if not role:
        return {"error": "role is required"}, 400

    try:
        return role_service.update_user_role(profile_id=profile_id, role=role, actor=g.current_user), 200
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError:
        return {"error": "User not found"}, 404
