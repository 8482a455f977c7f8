"""
Stock accounting tests.

Verifies:
- Aggregate availability is the sum of the three warehouses
- Low stock triggers at or below the reorder level
- Transfers move prev only and never touch sold
- Rejected transfers leave the product unchanged
- Inventory value and debt totals
"""

from datetime import datetime

import pytest

from stockroom.services import stock_service
from stockroom.services.stock_service import (
    StockError,
    InsufficientStockError,
    LOCATION_NSAKENA,
    LOCATION_VIV,
    LOCATION_YELLOW_SACK,
    LOCATION_ALL,
)


def make_product(**fields):
    product = {
        "id": 1,
        "sku": "DRS-001",
        "name": "Summer Dress",
        "category": "Dresses",
        "collection_week": "Week 1",
        "nsakena_prev": 0,
        "nsakena_sold": 0,
        "viv_prev": 0,
        "viv_sold": 0,
        "yellow_sack_prev": 0,
        "yellow_sack_sold": 0,
        "reorder_level": 10,
        "purchase_price_cents": None,
    }
    product.update(fields)
    return product


# =============================================================================
# AVAILABILITY
# =============================================================================


class TestAvailability:

    def test_per_location(self):
        p = make_product(nsakena_prev=20, nsakena_sold=5, viv_prev=7, viv_sold=2, yellow_sack_prev=3)
        assert stock_service.available(p, LOCATION_NSAKENA) == 15
        assert stock_service.available(p, LOCATION_VIV) == 5
        assert stock_service.available(p, LOCATION_YELLOW_SACK) == 3

    def test_all_is_sum_of_locations(self):
        p = make_product(nsakena_prev=20, nsakena_sold=5, viv_prev=7, viv_sold=2, yellow_sack_prev=3)
        per_location = sum(
            stock_service.available(p, loc)
            for loc in (LOCATION_NSAKENA, LOCATION_VIV, LOCATION_YELLOW_SACK)
        )
        assert stock_service.available(p, LOCATION_ALL) == per_location == 23

    def test_missing_fields_read_as_zero(self):
        p = {"id": 1, "name": "Bare", "nsakena_prev": None, "viv_prev": 4}
        assert stock_service.available(p) == 4
        assert stock_service.stock_figures(p, LOCATION_NSAKENA) == (0, 0, 0)

    def test_negative_availability_is_not_clamped(self):
        p = make_product(viv_prev=2, viv_sold=5)
        assert stock_service.available(p, LOCATION_VIV) == -3

    def test_unknown_location_rejected(self):
        with pytest.raises(StockError):
            stock_service.available(make_product(), "Accra")

    def test_works_on_attribute_objects(self, product):
        assert stock_service.available(product, LOCATION_NSAKENA) == 15


# =============================================================================
# LOW STOCK
# =============================================================================


class TestLowStock:

    @pytest.mark.parametrize(
        "prev,expected",
        [
            (9, True),
            (10, True),
            (11, False),
        ],
    )
    def test_boundary_at_reorder_level(self, prev, expected):
        p = make_product(nsakena_prev=prev, reorder_level=10)
        assert stock_service.is_low_stock(p) is expected

    def test_uses_aggregate_not_single_location(self):
        p = make_product(nsakena_prev=6, viv_prev=6, reorder_level=10)
        assert stock_service.is_low_stock(p) is False

    def test_missing_reorder_level_reads_as_zero(self):
        p = make_product(reorder_level=None)
        assert stock_service.is_low_stock(p) is True


# =============================================================================
# TRANSFERS
# =============================================================================


class TestTransfer:

    def test_example_scenario(self):
        p = make_product(nsakena_prev=20, nsakena_sold=5)

        assert stock_service.transfer_stock(p, LOCATION_NSAKENA, LOCATION_VIV, 10) is True

        assert (p["nsakena_prev"], p["nsakena_sold"]) == (10, 5)
        assert (p["viv_prev"], p["viv_sold"]) == (10, 0)
        assert stock_service.available(p, LOCATION_NSAKENA) == 5
        assert stock_service.available(p, LOCATION_VIV) == 10
        assert stock_service.available(p, LOCATION_ALL) == 15

    def test_aggregate_and_sold_unchanged(self):
        p = make_product(nsakena_prev=20, nsakena_sold=5, viv_prev=4, viv_sold=1, yellow_sack_prev=9, yellow_sack_sold=3)
        before_total = stock_service.available(p)
        before_sold = (p["nsakena_sold"], p["viv_sold"], p["yellow_sack_sold"])

        stock_service.transfer_stock(p, LOCATION_YELLOW_SACK, LOCATION_NSAKENA, 6)

        assert stock_service.available(p) == before_total
        assert (p["nsakena_sold"], p["viv_sold"], p["yellow_sack_sold"]) == before_sold

    def test_stamps_last_updated(self):
        p = make_product(nsakena_prev=5, last_updated=None)
        when = datetime(2026, 3, 1, 12, 0, 0)
        stock_service.transfer_stock(p, LOCATION_NSAKENA, LOCATION_VIV, 1, now=when)
        assert p["last_updated"] == when

    def test_round_trip_restores_product(self):
        p = make_product(nsakena_prev=20, nsakena_sold=5, viv_prev=3)
        original = dict(p)

        stock_service.transfer_stock(p, LOCATION_NSAKENA, LOCATION_VIV, 7)
        stock_service.transfer_stock(p, LOCATION_VIV, LOCATION_NSAKENA, 7)

        for field in stock_service.STOCK_FIELDS:
            assert p[field] == original[field]

    def test_exact_available_amount_allowed(self):
        p = make_product(nsakena_prev=20, nsakena_sold=5)
        stock_service.transfer_stock(p, LOCATION_NSAKENA, LOCATION_VIV, 15)
        assert stock_service.available(p, LOCATION_NSAKENA) == 0

    def test_insufficient_stock_leaves_product_unchanged(self):
        p = make_product(nsakena_prev=20, nsakena_sold=5)
        original = dict(p)

        with pytest.raises(InsufficientStockError) as exc:
            stock_service.transfer_stock(p, LOCATION_NSAKENA, LOCATION_VIV, 16)

        assert exc.value.available == 15
        assert exc.value.requested == 16
        assert p == original

    def test_same_location_is_noop(self):
        p = make_product(nsakena_prev=20)
        original = dict(p)
        assert stock_service.transfer_stock(p, LOCATION_NSAKENA, LOCATION_NSAKENA, 5) is False
        assert p == original

    @pytest.mark.parametrize("amount", [0, -3, 2.5, "4", True])
    def test_invalid_amount_rejected(self, amount):
        p = make_product(nsakena_prev=20)
        original = dict(p)
        with pytest.raises(StockError):
            stock_service.transfer_stock(p, LOCATION_NSAKENA, LOCATION_VIV, amount)
        assert p == original

    @pytest.mark.parametrize(
        "from_location,to_location",
        [
            (LOCATION_ALL, LOCATION_VIV),
            (LOCATION_VIV, LOCATION_ALL),
            ("Kumasi", LOCATION_VIV),
        ],
    )
    def test_invalid_locations_rejected(self, from_location, to_location):
        with pytest.raises(StockError):
            stock_service.transfer_stock(make_product(viv_prev=5), from_location, to_location, 1)


# =============================================================================
# TOTALS
# =============================================================================


class TestTotals:

    def test_total_value_empty(self):
        assert stock_service.total_value([]) == 0

    def test_total_value(self):
        products = [
            make_product(nsakena_prev=4, purchase_price_cents=250),
            make_product(viv_prev=2, purchase_price_cents=200),
        ]
        # 4 x 2.50 + 2 x 2.00 = 14.00
        assert stock_service.total_value(products) == 1400

    def test_total_value_missing_price_counts_zero(self):
        products = [make_product(nsakena_prev=4, purchase_price_cents=None)]
        assert stock_service.total_value(products) == 0

    def test_total_debt_excludes_paid(self):
        debtors = [
            {"name": "A", "amount_cents": 5000, "is_paid": False},
            {"name": "B", "amount_cents": 7000, "is_paid": True},
            {"name": "C", "amount_cents": 1250, "is_paid": False},
        ]
        assert stock_service.total_debt(debtors) == 6250

    def test_inventory_stats(self):
        products = [
            make_product(nsakena_prev=20, nsakena_sold=5, purchase_price_cents=100),
            make_product(viv_prev=3, purchase_price_cents=100),
        ]
        debtors = [{"amount_cents": 900, "is_paid": False}]

        stats = stock_service.inventory_stats(products, debtors)

        assert stats == {
            "total_products": 2,
            "total_value_cents": 1800,
            "low_stock_count": 1,
            "total_items": 18,
            "total_debt_cents": 900,
        }


# =============================================================================
# FILTERING
# =============================================================================


class TestFilterProducts:

    def setup_method(self):
        self.products = [
            make_product(id=1, name="Summer Dress", sku="DRS-001", category="Dresses"),
            make_product(id=2, name="Denim Jacket", sku="JKT-002", category="Jackets", collection_week="Week 2"),
            make_product(id=3, name="Maxi Dress", sku="DRS-003", category="Dresses", collection_week="Week 2"),
        ]

    def test_category_exact(self):
        result = stock_service.filter_products(self.products, category="Dresses")
        assert [p["id"] for p in result] == [1, 3]

    def test_search_case_insensitive(self):
        result = stock_service.filter_products(self.products, search="denim")
        assert [p["id"] for p in result] == [2]

    def test_search_matches_sku_and_week(self):
        assert [p["id"] for p in stock_service.filter_products(self.products, search="drs-")] == [1, 3]
        assert [p["id"] for p in stock_service.filter_products(self.products, search="week 2")] == [2, 3]

    def test_search_and_category_combined(self):
        result = stock_service.filter_products(self.products, search="week 2", category="Dresses")
        assert [p["id"] for p in result] == [3]
