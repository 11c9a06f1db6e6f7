from datetime import timedelta
from decimal import Decimal

import pytest

from checkout_service.main import app
from checkout_service.utils.money import utcnow

USER = {"X-User-Id": "user-1"}
GUEST = {"X-Session-Id": "sess-abc"}

CHECKOUT = {
    "customer_name": "Nguyen Van A",
    "customer_email": "a@example.com",
    "customer_phone": "0900000000",
    "payment_method": "BankTransfer",
}


@pytest.fixture
def filled_cart(client, products):
    r = client.post("/cart/items", json={"product_id": products["espresso"], "quantity": 2}, headers=USER)
    assert r.status_code == 200
    return r.json()


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}

    def test_module_app_serves_every_router(self):
        paths = {route.path for route in app.routes}
        assert {"/health", "/cart/checkout", "/coupons/system", "/payments/bank-configs"} <= paths


class TestCartApi:
    def test_identity_header_required(self, client):
        r = client.get("/cart")
        assert r.status_code == 400
        assert r.json()["detail"]["code"] == "VALIDATION_ERROR"

    def test_add_get_count(self, client, products, filled_cart):
        assert Decimal(filled_cart["sub_total"]) == Decimal("200")

        r = client.get("/cart", headers=USER)
        assert [i["quantity"] for i in r.json()["items"]] == [2]
        assert client.get("/cart/count", headers=USER).json() == {"count": 2}
        assert client.get("/cart/count", headers=GUEST).json() == {"count": 0}

    def test_update_and_remove(self, client, filled_cart):
        item_id = filled_cart["items"][0]["id"]

        r = client.put(f"/cart/items/{item_id}", json={"quantity": 3}, headers=USER)
        assert r.json()["items"][0]["quantity"] == 3

        r = client.delete(f"/cart/items/{item_id}", headers=USER)
        assert r.json()["items"] == []

    def test_foreign_item_is_404(self, client, filled_cart):
        item_id = filled_cart["items"][0]["id"]
        r = client.delete(f"/cart/items/{item_id}", headers=GUEST)
        assert r.status_code == 404

    def test_out_of_stock_is_409(self, client, products):
        r = client.post("/cart/items", json={"product_id": products["phin"], "quantity": 2}, headers=USER)
        assert r.status_code == 409
        body = r.json()["detail"]
        assert body["code"] == "OUT_OF_STOCK"
        assert body["details"]["items"][0]["product_id"] == products["phin"]

    def test_clear(self, client, filled_cart):
        assert client.delete("/cart", headers=USER).status_code == 204
        assert client.get("/cart/count", headers=USER).json() == {"count": 0}


class TestCouponApi:
    def test_validate(self, client, make_coupon):
        make_coupon("TEN", max_discount_amount=Decimal("5"))
        r = client.post("/coupons/validate", json={"code": "ten", "order_amount": "100"}, headers=USER)
        assert r.status_code == 200
        assert Decimal(r.json()["estimated_discount"]) == Decimal("5")

    def test_unknown_coupon(self, client):
        r = client.post("/coupons/validate", json={"code": "NOPE", "order_amount": "100"}, headers=USER)
        assert r.status_code == 404
        assert r.json()["detail"]["code"] == "COUPON_NOT_FOUND"

    def _new(self, **overrides):
        now = utcnow()
        payload = {
            "code": "WELCOME",
            "discount_value": "15",
            "start_date": (now - timedelta(days=1)).isoformat(),
            "end_date": (now + timedelta(days=7)).isoformat(),
        }
        payload.update(overrides)
        return payload

    def test_create_and_fetch(self, client):
        r = client.post("/coupons", json=self._new())
        assert r.status_code == 201
        body = r.json()
        assert body["code"] == "WELCOME"
        assert body["usage_count"] == 0

        r = client.get("/coupons/code/welcome")
        assert r.status_code == 200
        assert r.json()["id"] == body["id"]

    def test_create_duplicate_code_is_409(self, client):
        assert client.post("/coupons", json=self._new()).status_code == 201
        r = client.post("/coupons", json=self._new(code="welcome"))
        assert r.status_code == 409
        assert r.json()["detail"]["code"] == "COUPON_CODE_EXISTS"

    def test_create_rejects_bad_rules(self, client):
        r = client.post("/coupons", json=self._new(discount_value="150"))
        assert r.status_code == 400
        assert r.json()["detail"]["code"] == "VALIDATION_ERROR"

        r = client.post("/coupons", json=self._new(is_system_coupon=False))
        assert r.status_code == 400

        r = client.post("/coupons", json=self._new(coupon_type="Gradual", discount_type="Fixed"))
        assert r.status_code == 400

    def test_fetch_unknown_code(self, client):
        r = client.get("/coupons/code/NOPE")
        assert r.status_code == 404
        assert r.json()["detail"]["code"] == "COUPON_NOT_FOUND"

    def test_user_and_system_lists(self, client, make_coupon):
        make_coupon("SYS1")
        make_coupon("MINE", is_system_coupon=False, user_id="user-1")
        make_coupon("THEIRS", is_system_coupon=False, user_id="user-2")

        r = client.get("/coupons/user/user-1")
        assert r.status_code == 200
        assert [c["code"] for c in r.json()["items"]] == ["MINE"]

        r = client.get("/coupons/system")
        assert [c["code"] for c in r.json()["items"]] == ["SYS1"]

        r = client.get("/coupons", params={"page": 1, "page_size": 2})
        body = r.json()
        assert body["total"] == 3
        assert len(body["items"]) == 2
        assert body["page_size"] == 2


class TestCheckoutFlow:
    def test_checkout_then_pay(self, client, bank, filled_cart):
        r = client.post("/cart/checkout", json=CHECKOUT, headers=USER)
        assert r.status_code == 201
        body = r.json()
        order, payment = body["order"], body["payment"]
        assert Decimal(order["total_amount"]) == Decimal("200")
        assert payment["qr_data"].startswith("000201")

        assert client.get("/cart/count", headers=USER).json() == {"count": 0}

        r = client.get(f"/orders/{order['order_number']}")
        assert r.status_code == 200
        assert r.json()["items"][0]["quantity"] == 2

        r = client.get(f"/payments/order/{order['id']}")
        assert r.json()["id"] == payment["id"]

        r = client.get(f"/payments/{payment['id']}/qr-image", params={"module_size": 4})
        assert r.json()["image"].startswith("data:image/png;base64,")

        r = client.post(f"/payments/{payment['id']}/mark-paid")
        assert r.json()["status"] == "Paid"
        assert client.get(f"/orders/{order['order_number']}").json()["status"] == "Confirmed"

        r = client.post(f"/payments/{payment['id']}/verify")
        assert r.json()["success"] is True

        r = client.post(f"/payments/{payment['id']}/cancel")
        assert r.status_code == 422
        assert r.json()["detail"]["code"] == "PAYMENT_ERROR"

    def test_empty_cart_checkout(self, client):
        r = client.post("/cart/checkout", json=CHECKOUT, headers=GUEST)
        assert r.status_code == 400

    def test_unknown_order(self, client):
        assert client.get("/orders/ORD-00000000-DEADBEEF").status_code == 404

    def test_bank_configs(self, client, bank):
        r = client.get("/payments/bank-configs")
        assert [b["bank_code"] for b in r.json()] == ["970422", "970436"]
