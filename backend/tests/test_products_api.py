"""
Product API tests.

Verifies:
- Reads are open to every signed-in role
- Writes and transfers require MANAGER (403 for STAFF)
- Transfers are validated before anything is written
- Every mutation lands in the activity log
"""

import pytest

from stockroom.extensions import db
from stockroom.models import Product, ActivityLog


NEW_PRODUCT = {
    "sku": "JKT-010",
    "name": "Denim Jacket",
    "category": "Jackets",
    "collection_week": "Week 2",
    "viv_prev": 12,
    "reorder_level": 5,
    "purchase_price_cents": 3000,
    "selling_price_cents": 5500,
}


def latest_activity():
    return db.session.query(ActivityLog).order_by(ActivityLog.id.desc()).first()


# =============================================================================
# AUTHENTICATION - 401
# =============================================================================


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/products"),
            ("GET", "/api/products/stats"),
            ("POST", "/api/products"),
            ("POST", "/api/products/1/transfer"),
            ("GET", "/api/debtors"),
            ("GET", "/api/users"),
            ("GET", "/api/activity"),
            ("GET", "/api/reports/weekly"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token_rejected(self, client, db_session):
        resp = client.get("/api/products", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid or expired token"


# =============================================================================
# READS
# =============================================================================


class TestProductReads:

    def test_staff_can_list(self, client, staff_headers, product):
        resp = client.get("/api/products", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json["count"] == 1
        item = resp.json["items"][0]
        assert item["sku"] == "DRS-001"
        assert item["nsakena_prev"] == 20
        assert item["last_updated"].endswith("Z")

    def test_list_filters(self, client, staff_headers, product, db_session):
        db_session.add(Product(sku="JKT-002", name="Denim Jacket", category="Jackets"))
        db_session.commit()

        by_category = client.get("/api/products?category=Jackets", headers=staff_headers)
        assert [p["sku"] for p in by_category.json["items"]] == ["JKT-002"]

        by_search = client.get("/api/products?search=summer", headers=staff_headers)
        assert [p["sku"] for p in by_search.json["items"]] == ["DRS-001"]

    def test_get_missing_product(self, client, staff_headers):
        resp = client.get("/api/products/999", headers=staff_headers)
        assert resp.status_code == 404

    def test_stats(self, client, staff_headers, product, debtor):
        resp = client.get("/api/products/stats", headers=staff_headers)
        assert resp.status_code == 200
        assert resp.json == {
            "total_products": 1,
            "total_value_cents": 15 * 2500,
            "low_stock_count": 0,
            "total_items": 15,
            "total_debt_cents": 15000,
        }


# =============================================================================
# WRITES
# =============================================================================


class TestProductWrites:

    def test_manager_creates_product(self, client, manager_headers, db_session):
        resp = client.post("/api/products", json=NEW_PRODUCT, headers=manager_headers)
        assert resp.status_code == 201
        assert resp.json["sku"] == "JKT-010"
        assert resp.json["viv_prev"] == 12
        assert resp.json["nsakena_prev"] == 0

        entry = latest_activity()
        assert entry.action == "ADD"
        assert entry.description == "Added new item: Denim Jacket"
        assert entry.user == "Ama Boss"

    def test_staff_cannot_create(self, client, staff_headers, db_session):
        resp = client.post("/api/products", json=NEW_PRODUCT, headers=staff_headers)
        assert resp.status_code == 403
        assert resp.json["message"] == "Access Denied: Only Managers can perform this action."
        assert db_session.query(Product).count() == 0

    def test_duplicate_sku_conflict(self, client, manager_headers, product):
        resp = client.post("/api/products", json={"sku": "DRS-001", "name": "Copy"}, headers=manager_headers)
        assert resp.status_code == 409

    @pytest.mark.parametrize(
        "payload",
        [
            {"name": "No SKU"},
            {"sku": "X-1", "name": "Bad", "viv_prev": -1},
            {"sku": "X-1", "name": "Bad", "viv_prev": 2.5},
            {"sku": "X-1", "name": "Bad", "purchase_price_cents": -100},
            {"sku": "X-1", "name": "Bad", "last_updated": "2026-01-01T00:00:00Z"},
            {"sku": "X-1", "name": ""},
        ],
    )
    def test_invalid_payload_rejected(self, client, manager_headers, payload):
        resp = client.post("/api/products", json=payload, headers=manager_headers)
        assert resp.status_code == 400

    def test_update_product(self, client, manager_headers, product):
        resp = client.put(
            f"/api/products/{product.id}",
            json={"nsakena_sold": 12, "notes": "Sold at weekend market"},
            headers=manager_headers,
        )
        assert resp.status_code == 200
        assert resp.json["nsakena_sold"] == 12
        assert resp.json["notes"] == "Sold at weekend market"
        assert latest_activity().description == "Updated details for Summer Dress"

    def test_update_to_existing_sku_conflict(self, client, manager_headers, product, db_session):
        other = Product(sku="JKT-002", name="Denim Jacket")
        db_session.add(other)
        db_session.commit()

        resp = client.put(f"/api/products/{other.id}", json={"sku": "DRS-001"}, headers=manager_headers)
        assert resp.status_code == 409

    def test_staff_cannot_update(self, client, staff_headers, product):
        resp = client.put(f"/api/products/{product.id}", json={"name": "Hacked"}, headers=staff_headers)
        assert resp.status_code == 403

    def test_delete_product(self, client, manager_headers, product, db_session):
        product_id = product.id
        resp = client.delete(f"/api/products/{product_id}", headers=manager_headers)
        assert resp.status_code == 200
        assert db_session.get(Product, product_id) is None
        assert latest_activity().description == "Deleted product: Summer Dress"

    def test_delete_missing(self, client, manager_headers):
        resp = client.delete("/api/products/999", headers=manager_headers)
        assert resp.status_code == 404


# =============================================================================
# TRANSFERS
# =============================================================================


class TestTransfers:

    def transfer(self, client, headers, product_id, **body):
        return client.post(f"/api/products/{product_id}/transfer", json=body, headers=headers)

    def test_transfer_moves_prev(self, client, manager_headers, product):
        resp = self.transfer(client, manager_headers, product.id, **{"from": "Nsakena", "to": "Viv", "amount": 10})
        assert resp.status_code == 200
        assert resp.json["changed"] is True

        moved = resp.json["product"]
        assert (moved["nsakena_prev"], moved["nsakena_sold"]) == (10, 5)
        assert (moved["viv_prev"], moved["viv_sold"]) == (10, 0)

        entry = latest_activity()
        assert entry.action == "TRANSFER"
        assert entry.description == "Transferred 10 units of Summer Dress from Nsakena to Viv"

    def test_insufficient_stock(self, client, manager_headers, product, db_session):
        activity_before = db_session.query(ActivityLog).count()

        resp = self.transfer(client, manager_headers, product.id, **{"from": "Nsakena", "to": "Viv", "amount": 16})
        assert resp.status_code == 400
        assert resp.json["code"] == "insufficient_stock"
        assert resp.json["available"] == 15

        db_session.expire_all()
        stored = db_session.get(Product, product.id)
        assert (stored.nsakena_prev, stored.viv_prev) == (20, 0)
        assert db_session.query(ActivityLog).count() == activity_before

    def test_same_location_unchanged(self, client, manager_headers, product):
        resp = self.transfer(client, manager_headers, product.id, **{"from": "Viv", "to": "Viv", "amount": 3})
        assert resp.status_code == 200
        assert resp.json["changed"] is False
        assert resp.json["product"]["viv_prev"] == 0

    @pytest.mark.parametrize(
        "body",
        [
            {"from": "Nsakena", "to": "Viv", "amount": 0},
            {"from": "Nsakena", "to": "All", "amount": 1},
            {"from": "Accra", "to": "Viv", "amount": 1},
            {"from": "Nsakena", "to": "Viv", "amount": "3"},
        ],
    )
    def test_invalid_transfer(self, client, manager_headers, product, body):
        resp = self.transfer(client, manager_headers, product.id, **body)
        assert resp.status_code == 400
        assert resp.json["code"] == "invalid_transfer"

    def test_missing_field(self, client, manager_headers, product):
        resp = self.transfer(client, manager_headers, product.id, **{"from": "Nsakena", "to": "Viv"})
        assert resp.status_code == 400

    def test_staff_cannot_transfer(self, client, staff_headers, product):
        resp = self.transfer(client, staff_headers, product.id, **{"from": "Nsakena", "to": "Viv", "amount": 1})
        assert resp.status_code == 403

    def test_missing_product(self, client, manager_headers):
        resp = self.transfer(client, manager_headers, 999, **{"from": "Nsakena", "to": "Viv", "amount": 1})
        assert resp.status_code == 404

    @pytest.mark.parametrize("body", [[1], "Nsakena", 3])
    def test_non_object_body(self, client, manager_headers, product, body):
        resp = client.post(f"/api/products/{product.id}/transfer", json=body, headers=manager_headers)
        assert resp.status_code == 400
        assert resp.json["code"] == "invalid_transfer"
