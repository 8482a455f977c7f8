# Overview: Flask API routes for reading the activity log.

from flask import Blueprint, request

from ..services import activity_service
from ..decorators import require_auth

activity_bp = Blueprint("activity", __name__, url_prefix="/api/activity")


@activity_bp.get("")
@require_auth
def list_activity():
    """Newest first. Query param: limit (optional)."""
    items = activity_service.list_activity(limit=request.args.get("limit", type=int))
    return {"items": items, "count": len(items)}
