"""Integration tests for the guest order API endpoints via TestClient."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.api.routes import guest_order_router
from ordering.catalogue import ledger
from protean.integrations.fastapi import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(guest_order_router)
    register_exception_handlers(app)
    return TestClient(app)


@pytest.fixture()
def table(make_product):
    return make_product(name="Oak Dining Table", price="100.00", stock=5)


def _place_order(client, product, **overrides):
    payload = {
        "email": "guest@example.com",
        "first_name": "Ada",
        "last_name": "Lovelace",
        "phone": "555-0100",
        "items": [{"product_id": str(product.id), "quantity": 2}],
        "shipping_address": {
            "street": "1 Oak Lane",
            "city": "Portland",
            "state": "OR",
            "postal_code": "97201",
            "country": "USA",
        },
        "tax_amount": "10.00",
        "shipping_cost": "5.00",
    }
    payload.update(overrides)
    return client.post("/guest-orders", json=payload)


class TestPlaceOrderEndpoint:
    def test_place_order(self, client, table, make_coupon):
        make_coupon(code="SAVE10", discount_value="10")

        response = _place_order(client, table, coupon_code="SAVE10")

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["order_number"] == "ORD-2026-00000001"
        assert body["subtotal"] == "200.00"
        assert body["discount_amount"] == "20.00"
        assert body["total_amount"] == "195.00"
        assert body["coupon_code"] == "SAVE10"
        assert body["items"][0]["product_name"] == "Oak Dining Table"
        assert body["estimated_delivery_date"] == "2026-03-22"

    def test_insufficient_stock_is_a_bad_request(self, client, table):
        response = _place_order(client, table, items=[{"product_id": str(table.id), "quantity": 6}])
        assert response.status_code == 400
        assert ledger.find_product(table.id).stock == 5

    def test_unknown_product_is_not_found(self, client):
        response = client.post(
            "/guest-orders",
            json={
                "email": "guest@example.com",
                "first_name": "Ada",
                "last_name": "Lovelace",
                "items": [{"product_id": "missing", "quantity": 1}],
            },
        )
        assert response.status_code == 404

    def test_empty_items_rejected_by_schema(self, client, table):
        response = _place_order(client, table, items=[])
        assert response.status_code == 422


class TestLookupEndpoints:
    def test_get_by_number_and_id(self, client, table):
        created = _place_order(client, table).json()

        by_number = client.get(f"/guest-orders/{created['order_number']}")
        by_id = client.get(f"/guest-orders/id/{created['order_id']}")

        assert by_number.status_code == 200
        assert by_id.json()["order_number"] == created["order_number"]

    def test_missing_order_is_not_found(self, client):
        assert client.get("/guest-orders/ORD-2026-99999999").status_code == 404
        assert client.get("/guest-orders/id/missing").status_code == 404

    def test_list_by_email(self, client, table):
        _place_order(client, table, items=[{"product_id": str(table.id), "quantity": 1}])

        response = client.get("/guest-orders/email/guest@example.com")

        assert response.status_code == 200
        assert len(response.json()["orders"]) == 1

    def test_list_all(self, client, table):
        _place_order(client, table, items=[{"product_id": str(table.id), "quantity": 1}])
        assert len(client.get("/guest-orders").json()["orders"]) == 1


class TestLifecycleEndpoints:
    def test_status_update_and_history(self, client, table):
        order_id = _place_order(client, table).json()["order_id"]

        response = client.put(
            f"/guest-orders/{order_id}/status",
            json={"status": "confirmed", "notes": "Payment captured"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "CONFIRMED"

        history = client.get(f"/guest-orders/id/{order_id}/history").json()
        assert [e["new_status"] for e in history["entries"]] == ["PENDING", "CONFIRMED"]
        assert history["entries"][1]["notes"] == "Payment captured"

    def test_unknown_status_is_a_bad_request(self, client, table):
        order_id = _place_order(client, table).json()["order_id"]
        response = client.put(f"/guest-orders/{order_id}/status", json={"status": "LOST"})
        assert response.status_code == 400

    def test_cancel_releases_stock(self, client, table):
        order_id = _place_order(client, table).json()["order_id"]

        response = client.delete(f"/guest-orders/{order_id}", params={"reason": "Changed my mind"})

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        assert ledger.find_product(table.id).stock == 5

    def test_cancel_twice_is_rejected(self, client, table):
        order_id = _place_order(client, table).json()["order_id"]
        client.delete(f"/guest-orders/{order_id}")

        response = client.delete(f"/guest-orders/{order_id}")

        assert 400 <= response.status_code < 500
        assert ledger.find_product(table.id).stock == 5


class TestCouponEndpoints:
    def test_apply_and_remove_coupon(self, client, table, make_coupon):
        make_coupon(code="SAVE10", discount_value="10")
        order_id = _place_order(client, table).json()["order_id"]

        applied = client.post(f"/guest-orders/{order_id}/coupon", json={"coupon_code": "SAVE10"})
        assert applied.status_code == 200
        assert applied.json()["total_amount"] == "195.00"

        removed = client.delete(f"/guest-orders/{order_id}/coupon")
        assert removed.status_code == 200
        assert removed.json()["total_amount"] == "215.00"
        assert removed.json()["coupon_code"] is None

    def test_validate_coupon(self, client, make_coupon):
        make_coupon(code="SAVE10", discount_value="10")

        response = client.get("/guest-orders/coupon/save10/validate", params={"order_amount": "200.00"})

        assert response.status_code == 200
        assert response.json() == {
            "coupon_code": "SAVE10",
            "valid": True,
            "discount_amount": "20.00",
            "reason": None,
        }

    def test_validate_unknown_coupon(self, client):
        response = client.get("/guest-orders/coupon/NOPE/validate", params={"order_amount": "200.00"})
        assert response.status_code == 200
        assert response.json()["valid"] is False
