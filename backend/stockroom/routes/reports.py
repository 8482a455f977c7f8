# Overview: Flask API routes for inventory reports; read-only aggregates over products.

from flask import Blueprint, request

from ..extensions import db
from ..models import Product
from ..services import report_service
from ..services.stock_service import LOCATION_ALL, StockError
from ..decorators import require_auth

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _product_dicts() -> list[dict]:
    return [p.to_dict() for p in db.session.query(Product).order_by(Product.id.asc()).all()]


@reports_bp.get("/weekly")
@require_auth
def weekly_report():
    """Query param: location (Nsakena, Viv, YellowSack or All; default All)."""
    location = request.args.get("location", LOCATION_ALL)
    try:
        items = report_service.weekly_summary(_product_dicts(), location)
    except StockError as e:
        return {"error": str(e)}, 400
    return {"location": location, "items": items}


@reports_bp.get("/warehouses")
@require_auth
def warehouse_report():
    return {"items": report_service.warehouse_totals(_product_dicts())}


@reports_bp.get("/categories")
@require_auth
def category_report():
    return {"items": report_service.category_totals(_product_dicts())}
