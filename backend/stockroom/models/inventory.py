from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Product master data with stock snapshots for the three warehouses.

    STOCK DESIGN:
    Each warehouse carries a (prev, sold) pair. Available stock is never
    stored; it is always derived as prev - sold (see services/stock_service.py).
    Only current snapshots are kept, there is no transaction history.

    Prices are authoritative in cents (frontend may only format for display).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_products_sku"),
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=True)

    # Clothing specific
    size = db.Column(db.String(32), nullable=True)
    color = db.Column(db.String(64), nullable=True)
    collection_week = db.Column(db.String(64), nullable=True)

    supplier_name = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    nsakena_prev = db.Column(db.Integer, nullable=False, default=0)
    nsakena_sold = db.Column(db.Integer, nullable=False, default=0)
    viv_prev = db.Column(db.Integer, nullable=False, default=0)
    viv_sold = db.Column(db.Integer, nullable=False, default=0)
    yellow_sack_prev = db.Column(db.Integer, nullable=False, default=0)
    yellow_sack_sold = db.Column(db.Integer, nullable=False, default=0)

    reorder_level = db.Column(db.Integer, nullable=False, default=10)

    purchase_price_cents = db.Column(db.Integer, nullable=True)
    selling_price_cents = db.Column(db.Integer, nullable=True)

    last_updated = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "name": self.name,
            "category": self.category,
            "size": self.size,
            "color": self.color,
            "collection_week": self.collection_week,
            "supplier_name": self.supplier_name,
            "notes": self.notes,
            "nsakena_prev": self.nsakena_prev,
            "nsakena_sold": self.nsakena_sold,
            "viv_prev": self.viv_prev,
            "viv_sold": self.viv_sold,
            "yellow_sack_prev": self.yellow_sack_prev,
            "yellow_sack_sold": self.yellow_sack_sold,
            "reorder_level": self.reorder_level,
            "purchase_price_cents": self.purchase_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "last_updated": to_utc_z(self.last_updated),
        }
