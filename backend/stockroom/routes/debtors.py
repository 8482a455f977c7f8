# Overview: Flask API routes for debtors; parses input and returns JSON responses.

from flask import Blueprint, request, g

from ..services import debtor_service
from ..services.role_service import PermissionDeniedError
from ..models import Debtor
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_debtor,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_auth, require_manager

DEBTOR_POLICY = ModelValidationPolicy(
    writable_fields=set(debtor_service.DEBTOR_MUTABLE_FIELDS),
    required_on_create={"name", "amount_cents"},
)

debtors_bp = Blueprint("debtors", __name__, url_prefix="/api/debtors")


@debtors_bp.get("")
@require_auth
def list_debtors():
    items = debtor_service.list_debtors()
    return {"items": items, "count": len(items)}


@debtors_bp.post("")
@require_auth
@require_manager
def create_debtor_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Debtor, payload=payload, policy=DEBTOR_POLICY, partial=False)
        enforce_rules_debtor(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        return debtor_service.create_debtor(patch=patch, actor=g.current_user), 201
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403


@debtors_bp.put("/<int:debtor_id>")
@require_auth
@require_manager
def update_debtor_route(debtor_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Debtor, payload=payload, policy=DEBTOR_POLICY, partial=True)
        enforce_rules_debtor(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        return debtor_service.update_debtor(debtor_id=debtor_id, patch=patch, actor=g.current_user), 200
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403
    except NotFoundError:
        return {"error": "Debtor not found"}, 404


@debtors_bp.post("/<int:debtor_id>/toggle-paid")
@require_auth
@require_manager
def toggle_debtor_route(debtor_id: int):
    try:
        return debtor_service.toggle_debtor_status(debtor_id=debtor_id, actor=g.current_user), 200
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403
    except NotFoundError:
        return {"error": "Debtor not found"}, 404


@debtors_bp.delete("/<int:debtor_id>")
@require_auth
@require_manager
def delete_debtor_route(debtor_id: int):
    try:
        debtor_service.delete_debtor(debtor_id=debtor_id, actor=g.current_user)
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403
    except NotFoundError:
        return {"error": "Debtor not found"}, 404

    return {"ok": True}, 200
