# Overview: Stock accounting model; pure derivations over product snapshots plus the transfer transition.

"""
Stock Accounting Model

Each product carries a (prev, sold) pair per warehouse. Everything else is
derived here and never stored:

- available(location) = prev(location) - sold(location)
- available("All")    = sum over the three warehouses
- low stock           <=> available("All") <= reorder_level

Functions accept either ORM objects (server) or plain mappings (client cache
of JSON records). Missing or None numeric fields read as 0. Values are not
clamped: inconsistent data can produce negative availability.

A transfer moves unsold stock between warehouses. It is not a sale: only the
prev fields change, sold stays fixed at both ends.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from ..time_utils import utcnow


LOCATION_NSAKENA = "Nsakena"
LOCATION_VIV = "Viv"
LOCATION_YELLOW_SACK = "YellowSack"
LOCATION_ALL = "All"

LOCATIONS = (LOCATION_NSAKENA, LOCATION_VIV, LOCATION_YELLOW_SACK)

LOCATION_FIELDS = {
    LOCATION_NSAKENA: ("nsakena_prev", "nsakena_sold"),
    LOCATION_VIV: ("viv_prev", "viv_sold"),
    LOCATION_YELLOW_SACK: ("yellow_sack_prev", "yellow_sack_sold"),
}

LOCATION_LABELS = {
    LOCATION_NSAKENA: "Nsakena Warehouse",
    LOCATION_VIV: "Viv Warehouse",
    LOCATION_YELLOW_SACK: "Yellow Sack Warehouse",
    LOCATION_ALL: "All Inventory",
}

STOCK_FIELDS = tuple(field for pair in LOCATION_FIELDS.values() for field in pair)


class StockError(ValueError):
    """Raised when a stock operation is invalid."""


class InsufficientStockError(StockError):
    """Raised when the source warehouse cannot cover a transfer."""

    def __init__(self, location: str, available_qty: int, requested: int):
        self.location = location
        self.available = available_qty
        self.requested = requested
        super().__init__(
            f"Insufficient available stock in {location}. "
            f"Available: {available_qty}, requested: {requested}"
        )


def _read(product: Any, field: str) -> Any:
    if isinstance(product, Mapping):
        return product.get(field)
    return getattr(product, field, None)


def _write(product: Any, field: str, value: Any) -> None:
    if isinstance(product, Mapping):
        product[field] = value
    else:
        setattr(product, field, value)


def _as_int(value: Any) -> int:
    if value is None or value == "" or isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def validate_location(location: str, *, allow_all: bool = True) -> str:
    if location == LOCATION_ALL and allow_all:
        return location
    if location not in LOCATION_FIELDS:
        raise StockError(f"Unknown location: {location}")
    return location


def stock_figures(product: Any, location: str = LOCATION_ALL) -> tuple[int, int, int]:
    """Return (prev, sold, available) for one warehouse, or summed for "All"."""
    validate_location(location)
    locations = LOCATIONS if location == LOCATION_ALL else (location,)

    prev = 0
    sold = 0
    for loc in locations:
        prev_field, sold_field = LOCATION_FIELDS[loc]
        prev += _as_int(_read(product, prev_field))
        sold += _as_int(_read(product, sold_field))
    return prev, sold, prev - sold


def available(product: Any, location: str = LOCATION_ALL) -> int:
    return stock_figures(product, location)[2]


def is_low_stock(product: Any) -> bool:
    return available(product, LOCATION_ALL) <= _as_int(_read(product, "reorder_level"))


def total_value(products: Iterable[Any]) -> int:
    """Sum of aggregate available x purchase price (cents). Missing prices count as 0."""
    return sum(available(p) * _as_int(_read(p, "purchase_price_cents")) for p in products)


def total_items(products: Iterable[Any]) -> int:
    return sum(available(p) for p in products)


def total_debt(debtors: Iterable[Any]) -> int:
    """Outstanding debt in cents; paid debtors are excluded."""
    return sum(_as_int(_read(d, "amount_cents")) for d in debtors if not _read(d, "is_paid"))


def inventory_stats(products: Iterable[Any], debtors: Iterable[Any] = ()) -> dict:
    products = list(products)
    return {
        "total_products": len(products),
        "total_value_cents": total_value(products),
        "low_stock_count": sum(1 for p in products if is_low_stock(p)),
        "total_items": total_items(products),
        "total_debt_cents": total_debt(debtors),
    }


def transfer_stock(
    product: Any,
    from_location: str,
    to_location: str,
    amount: int,
    now: datetime | None = None,
) -> bool:
    """
    Move unsold stock between two warehouses.

    Validate-then-apply: nothing is written unless every check passes.

    Returns:
        False when from_location == to_location (no-op), True when applied.

    Raises:
        StockError: unknown location, "All" as an endpoint, or non-positive amount
        InsufficientStockError: source availability is below amount
    """
    validate_location(from_location, allow_all=False)
    validate_location(to_location, allow_all=False)

    if from_location == to_location:
        return False

    if isinstance(amount, bool) or not isinstance(amount, int):
        raise StockError("Transfer amount must be an integer")
    if amount <= 0:
        raise StockError("Transfer amount must be positive")

    source_available = available(product, from_location)
    if source_available < amount:
        raise InsufficientStockError(from_location, source_available, amount)

    from_field = LOCATION_FIELDS[from_location][0]
    to_field = LOCATION_FIELDS[to_location][0]
    new_from = _as_int(_read(product, from_field)) - amount
    new_to = _as_int(_read(product, to_field)) + amount

    _write(product, from_field, new_from)
    _write(product, to_field, new_to)
    _write(product, "last_updated", now or utcnow())
    return True


def filter_products(
    products: Iterable[Any],
    search: str | None = None,
    category: str | None = None,
) -> list:
    """Category is an exact match; search is a case-insensitive substring over name, SKU, category and week."""
    result = list(products)

    if category:
        result = [p for p in result if _read(p, "category") == category]

    if search:
        needle = search.strip().lower()
        result = [
            p for p in result
            if any(
                needle in str(_read(p, field) or "").lower()
                for field in ("name", "sku", "category", "collection_week")
            )
        ]

    return result
