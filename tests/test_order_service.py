"""Tests for the product order lifecycle."""

from decimal import Decimal

import pytest

from order_service.errors import (
    EmptyCartError, GenerationError, InvalidTransition, NotFoundError, Unauthorized, ValidationError,
    VerificationFailed
)
from order_service.models import CartItem, Notification, Order, ProcessedPayment, Receipt
from order_service.repositories.catalog_repository import CatalogRepository
from order_service.repositories.order_repository import OrderRepository


async def place_order(order_service, customer):
    return await order_service.checkout(customer, "12 Marina Road, Lagos", state_name="Lagos")


class TestCheckout:
    async def test_snapshots_prices_and_clears_cart(
        self, db_session, order_service, customer, catalog, dress_promotion, filled_cart
    ):
        order = await place_order(order_service, customer)

        assert order.status == "awaiting_payment"
        # 2 x 12000 at 10% off + 1 x 5000, plus 1500 Lagos shipping
        assert Decimal(order.total) == Decimal("28100.00")
        assert Decimal(order.shipping_fee) == Decimal("1500.00")
        dress_line = next(line for line in order.items if line["name"] == "Ankara Dress")
        assert dress_line["discount_percentage"] == 10
        assert dress_line["price"] == 12000.0
        assert dress_line["size"] == "M"
        assert (order.lat, order.lng) == (6.455, 3.3941)
        assert db_session.query(CartItem).filter_by(user_id="user-1").count() == 0
        db_session.refresh(catalog["medium"])
        assert catalog["medium"].stock == 3

    async def test_snapshot_frozen_after_price_change(
        self, db_session, order_service, customer, catalog, filled_cart
    ):
        order = await place_order(order_service, customer)
        catalog["dress"].price = Decimal("99999.00")
        db_session.commit()

        reloaded = order_service.get_order(customer, order.id)
        assert Decimal(reloaded.total) == Decimal("30500.00")
        assert reloaded.items[0]["price"] == 12000.0

    async def test_empty_cart(self, order_service, customer, catalog):
        with pytest.raises(EmptyCartError):
            await place_order(order_service, customer)

    async def test_unresolvable_address(self, db_session, network, order_service, customer, filled_cart):
        network.geocode_results = []
        with pytest.raises(ValidationError):
            await order_service.checkout(customer, "Nowhere in particular")
        assert db_session.query(Order).count() == 0
        assert db_session.query(CartItem).count() == 2

    async def test_supplied_coordinates_skip_geocoding(self, network, order_service, customer, filled_cart):
        order = await order_service.checkout(customer, "Lekki Phase 1", coords=(6.44, 3.47))
        assert (order.lat, order.lng) == (6.44, 3.47)
        assert network.calls_to("geo.test") == []

    async def test_default_shipping_fee_for_unknown_state(self, order_service, customer, filled_cart):
        order = await order_service.checkout(customer, "Ring Road, Ibadan", state_name="Oyo")
        assert Decimal(order.shipping_fee) == Decimal("0.00")
        assert Decimal(order.total) == Decimal("29000.00")

    async def test_state_name_is_matched_literally(self, db_session, order_service, customer, catalog, filled_cart):
        repository = CatalogRepository(db_session)
        assert repository.get_shipping_fee(" lagos ").state_name == "Lagos"
        assert repository.get_shipping_fee("%") is None
        assert repository.get_shipping_fee("L_gos") is None

        order = await order_service.checkout(customer, "12 Marina Road, Lagos", state_name="%")
        assert Decimal(order.shipping_fee) == Decimal("0.00")

    async def test_insufficient_stock(self, db_session, order_service, customer, catalog):
        db_session.add(CartItem(user_id="user-1", product_id=catalog["dress"].id,
                                variant_id=catalog["large"].id, quantity=3))
        db_session.commit()
        with pytest.raises(ValidationError, match="Insufficient stock"):
            await place_order(order_service, customer)


class TestConfirmPayment:
    async def test_verified_payment_moves_to_processing(
        self, db_session, network, order_service, customer, filled_cart
    ):
        order = await place_order(order_service, customer)
        session = order_service.begin_payment(customer, order.id)
        assert session.amount == 3050000
        network.payments[session.reference] = session.amount

        result = await order_service.confirm_payment(customer, order.id, session.reference)

        assert result.entity.status == "processing"
        assert result.entity.payment_reference == session.reference
        assert result.warnings == []
        assert result.receipt is not None
        assert result.receipt.pdf_url.startswith("https://files.test/receipt-")
        assert Decimal(result.receipt.amount) == Decimal("30500.00")
        receipt_payload = network.document_payloads("receipt")[0]["data"]
        assert receipt_payload["PAYMENTREF"] == session.reference
        assert db_session.query(Notification).filter_by(user_id="user-1").count() == 1

    async def test_failed_verification_changes_nothing(
        self, db_session, network, order_service, customer, filled_cart
    ):
        order = await place_order(order_service, customer)

        with pytest.raises(VerificationFailed):
            await order_service.confirm_payment(customer, order.id, "VIAN_ORDER_unknown")

        db_session.refresh(order)
        assert order.status == "awaiting_payment"
        assert db_session.query(Receipt).count() == 0
        assert db_session.query(Notification).count() == 0
        assert network.calls_to("messaging.test") == []

    async def test_amount_mismatch_rejected(self, db_session, network, order_service, customer, filled_cart):
        order = await place_order(order_service, customer)
        network.payments["VIAN_cheap"] = 100
        with pytest.raises(VerificationFailed, match="does not match"):
            await order_service.confirm_payment(customer, order.id, "VIAN_cheap")
        db_session.refresh(order)
        assert order.status == "awaiting_payment"

    async def test_replayed_reference_is_a_no_op(
        self, db_session, network, order_service, customer, filled_cart
    ):
        order = await place_order(order_service, customer)
        network.payments["VIAN_paid"] = 3050000
        first = await order_service.confirm_payment(customer, order.id, "VIAN_paid")
        second = await order_service.confirm_payment(customer, order.id, "VIAN_paid")

        assert second.replayed is True
        assert second.receipt.id == first.receipt.id
        assert db_session.query(Receipt).count() == 1
        assert db_session.query(ProcessedPayment).count() == 1
        assert len(network.calls_to("paystack.test")) == 1
        assert len(network.document_payloads("receipt")) == 1

    async def test_reference_of_another_order_rejected(
        self, db_session, network, order_service, customer, catalog, filled_cart
    ):
        first = await place_order(order_service, customer)
        network.payments["VIAN_once"] = 3050000
        await order_service.confirm_payment(customer, first.id, "VIAN_once")

        db_session.add(CartItem(user_id="user-1", product_id=catalog["shirt"].id, quantity=1))
        db_session.commit()
        second = await place_order(order_service, customer)
        with pytest.raises(ValidationError, match="already been used"):
            await order_service.confirm_payment(customer, second.id, "VIAN_once")

    async def test_receipt_failure_is_a_warning(self, db_session, network, order_service, customer, filled_cart):
        order = await place_order(order_service, customer)
        network.payments["VIAN_ok"] = 3050000
        network.documents_fail = True

        result = await order_service.confirm_payment(customer, order.id, "VIAN_ok")

        assert result.entity.status == "processing"
        assert result.receipt is None
        assert any("receipt generation failed" in w for w in result.warnings)
        assert db_session.query(Receipt).count() == 0

    async def test_manual_receipt_after_failure(
        self, db_session, network, order_service, customer, admin, filled_cart
    ):
        order = await place_order(order_service, customer)
        network.payments["VIAN_retry"] = 3050000
        network.documents_fail = True
        await order_service.confirm_payment(customer, order.id, "VIAN_retry")

        replay = await order_service.confirm_payment(customer, order.id, "VIAN_retry")
        assert replay.replayed is True
        assert replay.receipt is None
        with pytest.raises(GenerationError):
            await order_service.create_receipt(admin, order.id)

        network.documents_fail = False
        result = await order_service.create_receipt(admin, order.id)
        assert result.receipt.payment_reference == "VIAN_retry"
        assert result.receipt.order_id == order.id
        assert Decimal(result.receipt.amount) == Decimal("30500.00")
        again = await order_service.create_receipt(admin, order.id)
        assert again.replayed is True
        assert again.receipt.id == result.receipt.id
        assert db_session.query(Receipt).count() == 1

    async def test_manual_receipt_needs_payment(self, order_service, customer, admin, filled_cart):
        order = await place_order(order_service, customer)
        with pytest.raises(ValidationError, match="paid orders"):
            await order_service.create_receipt(admin, order.id)
        with pytest.raises(Unauthorized):
            await order_service.create_receipt(customer, order.id)

    async def test_other_users_order_is_not_found(
        self, network, order_service, customer, other_customer, filled_cart
    ):
        order = await place_order(order_service, customer)
        network.payments["VIAN_x"] = 3050000
        with pytest.raises(NotFoundError):
            await order_service.confirm_payment(other_customer, order.id, "VIAN_x")


class TestStatusUpdates:
    async def paid_order(self, network, order_service, customer):
        order = await place_order(order_service, customer)
        network.payments[f"VIAN_{order.id}"] = 3050000
        result = await order_service.confirm_payment(customer, order.id, f"VIAN_{order.id}")
        return result.entity

    async def test_admin_ships_and_delivers(self, db_session, network, order_service, customer, admin, filled_cart):
        order = await self.paid_order(network, order_service, customer)
        shipped = await order_service.update_status(admin, order.id, "shipped")
        assert shipped.entity.status == "shipped"
        delivered = await order_service.update_status(admin, order.id, "delivered")
        assert delivered.entity.status == "delivered"
        messages = [n.message for n in db_session.query(Notification).filter_by(user_id="user-1")]
        assert any("Shipped" in m for m in messages)

    async def test_skipping_a_state_is_rejected(self, db_session, network, order_service, customer, admin, filled_cart):
        order = await self.paid_order(network, order_service, customer)
        with pytest.raises(InvalidTransition):
            await order_service.update_status(admin, order.id, "delivered")
        db_session.refresh(order)
        assert order.status == "processing"

    async def test_admin_cannot_mark_paid(self, order_service, customer, admin, filled_cart):
        order = await place_order(order_service, customer)
        with pytest.raises(InvalidTransition):
            await order_service.update_status(admin, order.id, "processing")

    async def test_customer_cannot_update_status(self, order_service, customer, filled_cart):
        order = await place_order(order_service, customer)
        with pytest.raises(Unauthorized):
            await order_service.update_status(customer, order.id, "shipped")

    async def test_terminal_state_is_final(self, network, order_service, customer, admin, filled_cart):
        order = await place_order(order_service, customer)
        await order_service.update_status(admin, order.id, "cancelled")
        with pytest.raises(InvalidTransition, match="final"):
            await order_service.update_status(admin, order.id, "shipped")

    async def test_conditional_write_rejects_stale_status(self, db_session, order_service, customer, filled_cart):
        order = await place_order(order_service, customer)
        repository = OrderRepository(db_session)
        with pytest.raises(InvalidTransition, match="concurrently"):
            repository.stage_status(order.id, "shipped", "delivered")
        assert repository.get_by_id(order.id).status == "awaiting_payment"

    async def test_store_rejects_unreachable_status(self, db_session, order_service, customer, filled_cart):
        order = await place_order(order_service, customer)
        repository = OrderRepository(db_session)
        with pytest.raises(InvalidTransition):
            repository.stage_status(order.id, "awaiting_payment", "delivered")
        db_session.refresh(order)
        assert order.status == "awaiting_payment"


class TestCancel:
    async def test_customer_cancels_unpaid_order_and_stock_returns(
        self, db_session, order_service, customer, catalog, filled_cart
    ):
        order = await place_order(order_service, customer)
        result = await order_service.cancel(customer, order.id)
        assert result.entity.status == "cancelled"
        db_session.refresh(catalog["medium"])
        assert catalog["medium"].stock == 5

    async def test_customer_cannot_cancel_paid_order(self, network, order_service, customer, filled_cart):
        order = await place_order(order_service, customer)
        network.payments["VIAN_c"] = 3050000
        await order_service.confirm_payment(customer, order.id, "VIAN_c")
        with pytest.raises(InvalidTransition):
            await order_service.cancel(customer, order.id)

    async def test_admin_cancels_paid_order(self, network, order_service, customer, admin, filled_cart):
        order = await place_order(order_service, customer)
        network.payments["VIAN_d"] = 3050000
        await order_service.confirm_payment(customer, order.id, "VIAN_d")
        result = await order_service.cancel(admin, order.id)
        assert result.entity.status == "cancelled"


class TestListing:
    async def test_newest_first_and_scoped_to_owner(
        self, db_session, order_service, customer, other_customer, admin, catalog, filled_cart
    ):
        first = await place_order(order_service, customer)
        db_session.add(CartItem(user_id="user-1", product_id=catalog["shirt"].id, quantity=1))
        db_session.commit()
        second = await place_order(order_service, customer)

        assert [o.id for o in order_service.list_orders(customer)] == [second.id, first.id]
        assert order_service.list_orders(other_customer) == []
        assert len(order_service.list_all_orders(admin)) == 2
        with pytest.raises(Unauthorized):
            order_service.list_all_orders(customer)
