# Overview: Read-only summaries over the product snapshot (weekly, per warehouse, per category).

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from . import stock_service
from .stock_service import LOCATION_ALL, LOCATIONS, LOCATION_LABELS

UNASSIGNED_WEEK = "Unassigned"


def _field(product: Any, name: str):
    if isinstance(product, dict):
        return product.get(name)
    return getattr(product, name, None)


def weekly_summary(products: Iterable[Any], location: str = LOCATION_ALL) -> list[dict]:
    """
    Group products by collection week, summing prev/sold/avail for the location.

    Groups are sorted by week label. The group's last_updated is taken from
    the first product seen in that week.
    """
    stock_service.validate_location(location)
    groups: dict[str, dict] = {}

    for p in products:
        week = (_field(p, "collection_week") or "").strip() or UNASSIGNED_WEEK
        group = groups.get(week)
        if group is None:
            group = groups[week] = {
                "week": week,
                "last_updated": _field(p, "last_updated"),
                "items": 0,
                "prev": 0,
                "sold": 0,
                "avail": 0,
            }

        prev, sold, avail = stock_service.stock_figures(p, location)
        group["items"] += 1
        group["prev"] += prev
        group["sold"] += sold
        group["avail"] += avail

    return [groups[week] for week in sorted(groups)]


def warehouse_totals(products: Iterable[Any]) -> list[dict]:
    products = list(products)
    return [
        {
            "location": loc,
            "label": LOCATION_LABELS[loc],
            "available": sum(stock_service.available(p, loc) for p in products),
        }
        for loc in LOCATIONS
    ]


def category_totals(products: Iterable[Any]) -> list[dict]:
    """Available quantity per category, in first-seen order."""
    totals: dict[str, int] = {}
    for p in products:
        category = _field(p, "category") or "Uncategorized"
        totals[category] = totals.get(category, 0) + stock_service.available(p)
    return [{"name": name, "value": value} for name, value in totals.items()]
