"""Tests for the HTTP API."""

from datetime import datetime, timedelta

from order_service.models import CustomOrder, Notification, Order, Profile

from tests.conftest import ADMIN_TOKEN, CUSTOMER_TOKEN, OTHER_TOKEN, auth_headers


class TestHealthCheck:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["service"] == "order-service"


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get("/orders")
        assert response.status_code == 401
        assert response.json()["type"] == "Unauthenticated"
        assert "error" in response.json()

    def test_expired_token(self, client):
        response = client.get("/orders", headers=auth_headers("expired"))
        assert response.status_code == 401

    def test_first_sight_creates_profile(self, client, db_session):
        db_session.query(Profile).filter_by(id="user-2").delete()
        db_session.commit()
        response = client.get("/orders", headers=auth_headers(OTHER_TOKEN))
        assert response.status_code == 200
        assert db_session.get(Profile, "user-2").email == "bola@example.com"


class TestCatalogAndCart:
    def test_product_listing_shows_effective_price(self, client, catalog, dress_promotion):
        response = client.get("/products", params={"category": "dresses"})
        assert response.status_code == 200
        product = response.json()["products"][0]
        assert product["price"] == 12000.0
        assert product["discount_percentage"] == 10
        assert product["effective_price"] == 10800.0
        assert len(product["variants"]) == 2

    def test_only_admin_creates_products(self, client):
        body = {"name": "Kaftan", "price": 18000, "category": "men",
                "variants": [{"size": "XL", "color": "White", "stock": 4}]}
        assert client.post("/products", json=body, headers=auth_headers()).status_code == 403
        response = client.post("/products", json=body, headers=auth_headers(ADMIN_TOKEN))
        assert response.status_code == 201
        assert response.json()["variants"][0]["stock"] == 4

    def test_promotion_window_validated(self, client):
        now = datetime.utcnow()
        body = {
            "name": "Backwards",
            "discount_percentage": 20,
            "start_date": now.isoformat(),
            "end_date": (now - timedelta(days=1)).isoformat(),
        }
        response = client.post("/promotions", json=body, headers=auth_headers(ADMIN_TOKEN))
        assert response.status_code == 400
        assert "end_date" in response.json()["error"]

    def test_shipping_fee_upsert(self, client, catalog):
        response = client.put("/shipping-fees", json={"state_name": "Lagos", "shipping_fee": 2000},
                              headers=auth_headers(ADMIN_TOKEN))
        assert response.status_code == 200
        fees = client.get("/shipping-fees").json()
        assert [(f["state_name"], f["shipping_fee"]) for f in fees] == [("Lagos", 2000.0)]

    def test_cart_add_merge_and_remove(self, client, catalog):
        body = {"product_id": catalog["dress"].id, "variant_id": catalog["medium"].id, "quantity": 1}
        client.post("/cart/items", json=body, headers=auth_headers())
        response = client.post("/cart/items", json=body, headers=auth_headers())
        assert response.status_code == 201
        cart = response.json()
        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 2
        assert cart["subtotal"] == 24000.0

        item_id = cart["items"][0]["id"]
        response = client.patch(f"/cart/items/{item_id}", json={"quantity": 0}, headers=auth_headers())
        assert response.json()["items"] == []

    def test_cart_stock_checked(self, client, catalog):
        body = {"product_id": catalog["dress"].id, "variant_id": catalog["large"].id, "quantity": 2}
        response = client.post("/cart/items", json=body, headers=auth_headers())
        assert response.status_code == 400
        assert "Insufficient stock" in response.json()["error"]


class TestOrderFlow:
    def test_checkout_pay_and_ship(self, client, network, catalog, filled_cart):
        response = client.post("/orders", json={"address": "12 Marina Road, Lagos", "state_name": "Lagos"},
                               headers=auth_headers())
        assert response.status_code == 201
        order = response.json()
        assert order["status"] == "awaiting_payment"
        assert order["total"] == 30500.0

        session = client.post(f"/orders/{order['id']}/payments", headers=auth_headers()).json()
        assert session["amount"] == 3050000
        network.payments[session["reference"]] = session["amount"]

        response = client.post(f"/orders/{order['id']}/payments/verify",
                               json={"reference": session["reference"]}, headers=auth_headers())
        assert response.status_code == 200
        body = response.json()
        assert body["order"]["status"] == "processing"
        assert body["receipt"]["payment_reference"] == session["reference"]
        assert body["warnings"] == []

        response = client.patch(f"/orders/{order['id']}/status", json={"status": "shipped"},
                                headers=auth_headers(ADMIN_TOKEN))
        assert response.status_code == 200
        assert response.json()["order"]["status"] == "shipped"

    def test_empty_cart(self, client, catalog):
        response = client.post("/orders", json={"address": "Lagos"}, headers=auth_headers())
        assert response.status_code == 400
        assert response.json()["type"] == "EmptyCartError"

    def test_failed_verification_is_402(self, client, db_session, catalog, filled_cart):
        order = client.post("/orders", json={"address": "Lagos"}, headers=auth_headers()).json()
        response = client.post(f"/orders/{order['id']}/payments/verify",
                               json={"reference": "VIAN_nope"}, headers=auth_headers())
        assert response.status_code == 402
        assert response.json()["type"] == "VerificationFailed"
        assert db_session.get(Order, order["id"]).status == "awaiting_payment"

    def test_invalid_transition_is_409(self, client, catalog, filled_cart):
        order = client.post("/orders", json={"address": "Lagos"}, headers=auth_headers()).json()
        response = client.patch(f"/orders/{order['id']}/status", json={"status": "delivered"},
                                headers=auth_headers(ADMIN_TOKEN))
        assert response.status_code == 409

    def test_foreign_order_is_404(self, client, catalog, filled_cart):
        order = client.post("/orders", json={"address": "Lagos"}, headers=auth_headers()).json()
        response = client.get(f"/orders/{order['id']}", headers=auth_headers(OTHER_TOKEN))
        assert response.status_code == 404

    def test_receipt_reissued_by_admin(self, client, network, catalog, filled_cart):
        order = client.post("/orders", json={"address": "Lagos"}, headers=auth_headers()).json()
        network.payments["VIAN_http"] = 2900000
        network.documents_fail = True
        body = client.post(f"/orders/{order['id']}/payments/verify",
                           json={"reference": "VIAN_http"}, headers=auth_headers()).json()
        assert body["receipt"] is None
        assert body["warnings"]

        network.documents_fail = False
        response = client.post(f"/orders/{order['id']}/receipt", headers=auth_headers())
        assert response.status_code == 403
        response = client.post(f"/orders/{order['id']}/receipt", headers=auth_headers(ADMIN_TOKEN))
        assert response.status_code == 201
        assert response.json()["receipt"]["payment_reference"] == "VIAN_http"

    def test_admin_listing(self, client, catalog, filled_cart):
        client.post("/orders", json={"address": "Lagos"}, headers=auth_headers())
        assert client.get("/admin/orders", headers=auth_headers()).status_code == 403
        response = client.get("/admin/orders", headers=auth_headers(ADMIN_TOKEN))
        assert response.json()["total"] == 1


class TestCustomOrderFlow:
    def submit(self, client):
        body = {
            "full_name": "Ada Obi",
            "phone": "2348012345678",
            "fabric": "Aso-oke",
            "style": "Agbada",
            "address": "12 Marina Road, Lagos",
        }
        response = client.post("/custom-orders", json=body, headers=auth_headers())
        assert response.status_code == 201
        return response.json()["custom_order"]

    def test_missing_price_rejected(self, client, db_session):
        custom_order = self.submit(client)
        response = client.patch(f"/custom-orders/{custom_order['id']}/status", json={"status": "in progress"},
                                headers=auth_headers(ADMIN_TOKEN))
        assert response.status_code == 400
        assert response.json()["type"] == "MissingPriceError"
        assert db_session.get(CustomOrder, custom_order["id"]).status == "pending"

    def test_price_at_deposit_rejected(self, client, db_session):
        custom_order = self.submit(client)
        response = client.patch(f"/custom-orders/{custom_order['id']}/status",
                                json={"status": "in progress", "price": 5000},
                                headers=auth_headers(ADMIN_TOKEN))
        assert response.status_code == 400
        assert response.json()["type"] == "ValidationError"
        assert db_session.get(CustomOrder, custom_order["id"]).status == "pending"

    def test_delivery_gate_on_http_surface(self, client):
        custom_order = self.submit(client)
        response = client.patch(f"/custom-orders/{custom_order['id']}/delivery-status",
                                json={"delivery_status": "in_progress"}, headers=auth_headers(ADMIN_TOKEN))
        assert response.status_code == 409

    def test_invoice_and_balance_payment(self, client, network, db_session):
        custom_order = self.submit(client)
        response = client.patch(f"/custom-orders/{custom_order['id']}/status",
                                json={"status": "in progress", "price": 45000},
                                headers=auth_headers(ADMIN_TOKEN))
        assert response.status_code == 200
        invoice = response.json()["invoice"]
        assert invoice["amount"] == 45000.0

        invoices = client.get("/invoices", headers=auth_headers()).json()
        assert [i["id"] for i in invoices] == [invoice["id"]]

        session = client.post(f"/invoices/{invoice['id']}/payments", headers=auth_headers()).json()
        assert session["amount"] == 4000000
        network.payments[session["reference"]] = session["amount"]

        response = client.post(f"/invoices/{invoice['id']}/payments/verify",
                               json={"reference": session["reference"]}, headers=auth_headers())
        assert response.status_code == 200
        assert response.json()["invoice"]["paid"] is True
        assert db_session.get(CustomOrder, custom_order["id"]).delivery_status == "in_progress"

        receipts = client.get("/receipts", headers=auth_headers()).json()
        assert [r["payment_reference"] for r in receipts] == [session["reference"]]

    def test_document_failure_is_warning(self, client, network):
        custom_order = self.submit(client)
        network.documents_fail = True
        response = client.patch(f"/custom-orders/{custom_order['id']}/status",
                                json={"status": "in progress", "price": 30000},
                                headers=auth_headers(ADMIN_TOKEN))
        assert response.status_code == 200
        body = response.json()
        assert body["custom_order"]["status"] == "in progress"
        assert body["invoice"] is None
        assert body["warnings"]

        network.documents_fail = False
        response = client.post("/invoices", json={"custom_order_id": custom_order["id"]},
                               headers=auth_headers(ADMIN_TOKEN))
        assert response.status_code == 201
        assert response.json()["invoice"]["custom_order_id"] == custom_order["id"]


class TestAccount:
    def test_notifications_inbox(self, client, db_session):
        db_session.add(Notification(user_id="user-1", message="Hello", read=False))
        db_session.commit()
        notifications = client.get("/notifications", headers=auth_headers()).json()
        assert [n["message"] for n in notifications] == ["Hello"]

        response = client.post(f"/notifications/{notifications[0]['id']}/read", headers=auth_headers(OTHER_TOKEN))
        assert response.status_code == 404
        response = client.post(f"/notifications/{notifications[0]['id']}/read", headers=auth_headers())
        assert response.json()["read"] is True

    def test_delete_account(self, client, db_session, catalog, filled_cart):
        client.post("/orders", json={"address": "Lagos"}, headers=auth_headers(CUSTOMER_TOKEN))
        response = client.delete("/account", headers=auth_headers())
        assert response.status_code == 200
        deleted = response.json()["deleted"]
        assert deleted["orders"] == 1
        assert deleted["profiles"] == 1
        assert db_session.query(Order).filter_by(user_id="user-1").count() == 0
        assert db_session.get(Profile, "user-1") is None
