# backend/stockroom/services/products_service.py
"""
Products Service

CRUD over the products collection plus the stock transfer transition.

Every mutation:
- requires the MANAGER role (PermissionDeniedError otherwise)
- stamps last_updated
- appends an activity entry in the same transaction
"""
from __future__ import annotations

from ..extensions import db
from ..models import Product, Debtor
from ..models.activity import ACTIVITY_ADD, ACTIVITY_UPDATE, ACTIVITY_DELETE, ACTIVITY_TRANSFER
from ..validation import ConflictError, NotFoundError
from . import stock_service
from .activity_service import append_activity
from .role_service import require_manager
from stockroom.time_utils import utcnow

PRODUCT_MUTABLE_FIELDS = {
    "sku", "name", "category", "size", "color", "collection_week",
    "supplier_name", "notes",
    *stock_service.STOCK_FIELDS,
    "reorder_level", "purchase_price_cents", "selling_price_cents",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _get_or_raise(product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def _ensure_unique_sku(sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product).filter(Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("SKU already exists.")


def list_products(search: str | None = None, category: str | None = None) -> list[dict]:
    products = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
    return [p.to_dict() for p in stock_service.filter_products(products, search=search, category=category)]


def get_product(product_id: int) -> dict:
    return _get_or_raise(product_id).to_dict()


def create_product(*, patch: dict, actor) -> dict:
    """
    Create product using a validated patch dict.

    Raises:
        PermissionDeniedError: actor is not a manager
        ConflictError: If SKU already exists
    """
    require_manager(actor)

    sku = patch.get("sku")
    if not sku:
        raise ValueError("sku is required")
    _ensure_unique_sku(sku)

    p = Product()
    apply_product_patch(p, patch)
    p.last_updated = utcnow()

    db.session.add(p)
    db.session.flush()

    append_activity(ACTIVITY_ADD, f"Added new item: {p.name}", actor)
    db.session.commit()
    return p.to_dict()


def update_product(*, product_id: int, patch: dict, actor) -> dict:
    """
    Apply a partial update.

    Stock fields are written as given; availability may go negative through a
    direct edit. Only transfers are guarded.
    """
    require_manager(actor)
    p = _get_or_raise(product_id)

    if patch.get("sku") and patch["sku"] != p.sku:
        _ensure_unique_sku(patch["sku"], exclude_id=p.id)

    apply_product_patch(p, patch)
    p.last_updated = utcnow()

    append_activity(ACTIVITY_UPDATE, f"Updated details for {p.name}", actor)
    db.session.commit()
    return p.to_dict()


def delete_product(*, product_id: int, actor) -> None:
    require_manager(actor)
    p = _get_or_raise(product_id)
    name = p.name

    db.session.delete(p)
    append_activity(ACTIVITY_DELETE, f"Deleted product: {name}", actor)
    db.session.commit()


def transfer_product_stock(
    *,
    product_id: int,
    from_location: str,
    to_location: str,
    amount: int,
    actor,
) -> tuple[dict, bool]:
    """
    Move unsold stock between warehouses for one product.

    Returns (product_dict, changed). changed is False for a same-location
    request, which writes nothing.

    Raises:
        PermissionDeniedError: actor is not a manager
        NotFoundError: product does not exist
        StockError / InsufficientStockError: rejected before any write
    """
    require_manager(actor)
    p = _get_or_raise(product_id)

    changed = stock_service.transfer_stock(p, from_location, to_location, amount, now=utcnow())
    if not changed:
        return p.to_dict(), False

    append_activity(
        ACTIVITY_TRANSFER,
        f"Transferred {amount} units of {p.name} from {from_location} to {to_location}",
        actor,
    )
    db.session.commit()
    return p.to_dict(), True


def get_inventory_stats() -> dict:
    products = db.session.query(Product).all()
    debtors = db.session.query(Debtor).all()
    return stock_service.inventory_stats(products, debtors)
