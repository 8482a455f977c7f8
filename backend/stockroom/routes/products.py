# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/stockroom/routes/products.py
"""
Product routes.

SECURITY: All routes require authentication.
- Read operations are open to every role
- Write operations and transfers require MANAGER
"""
from flask import Blueprint, request, g, current_app

from ..services import products_service
from ..services.role_service import PermissionDeniedError
from ..services.stock_service import StockError, InsufficientStockError
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    json_object,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth, require_manager

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=set(products_service.PRODUCT_MUTABLE_FIELDS),
    required_on_create={"sku", "name"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List products ordered by name.

    Query params:
    - search: str (optional) - substring over name, sku, category, collection week
    - category: str (optional) - exact category
    """
    items = products_service.list_products(
        search=request.args.get("search"),
        category=request.args.get("category"),
    )
    return {"items": items, "count": len(items)}


@products_bp.get("/stats")
@require_auth
def inventory_stats():
    return products_service.get_inventory_stats()


@products_bp.get("/<int:product_id>")
@require_auth
def get_product(product_id: int):
    try:
        return products_service.get_product(product_id)
    except NotFoundError:
        return {"error": "Product not found"}, 404


@products_bp.post("")
@require_auth
@require_manager
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = products_service.create_product(patch=patch, actor=g.current_user)
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403
    except ConflictError as e:
        return {"error": str(e)}, 409
    except ValueError as e:
        return {"error": str(e)}, 400

    return created, 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_manager
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = products_service.update_product(product_id=product_id, patch=patch, actor=g.current_user)
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403
    except ConflictError as e:
        return {"error": str(e)}, 409
    except NotFoundError:
        return {"error": "Product not found"}, 404

    return updated, 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_manager
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id=product_id, actor=g.current_user)
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403
    except NotFoundError:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200


@products_bp.post("/<int:product_id>/transfer")
@require_auth
@require_manager
def transfer_stock_route(product_id: int):
    """
    Move unsold stock between warehouses.

    Request body:
    {
        "from": "Nsakena" | "Viv" | "YellowSack",
        "to": "Nsakena" | "Viv" | "YellowSack",
        "amount": int
    }

    Returns:
        200: {"product": {...}, "changed": bool}
        400: Invalid request or insufficient stock
        403: Forbidden
        404: Product not found
    """
    try:
        data = json_object(request.get_json(silent=True))
    except ValidationError as e:
        return {"error": str(e), "code": "invalid_transfer"}, 400

    try:
        product, changed = products_service.transfer_product_stock(
            product_id=product_id,
            from_location=data["from"],
            to_location=data["to"],
            amount=data["amount"],
            actor=g.current_user,
        )
    except KeyError as e:
        return {"error": f"Missing required field: {e}"}, 400
    except InsufficientStockError as e:
        return {"error": str(e), "code": "insufficient_stock", "available": e.available}, 400
    except StockError as e:
        return {"error": str(e), "code": "invalid_transfer"}, 400
    except PermissionDeniedError as e:
        return {"error": "Permission denied", "message": str(e)}, 403
    except NotFoundError:
        return {"error": "Product not found"}, 404
    except Exception as e:
        current_app.logger.exception("Failed to transfer stock")
        return {"error": f"Unexpected error: {e}"}, 500

    return {"product": product, "changed": changed}, 200
