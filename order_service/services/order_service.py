"""
Order Service - product order lifecycle
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from order_service.config import settings
from order_service.errors import (
    EmptyCartError, InvalidTransition, ValidationError, VerificationFailed
)
from order_service.models.order import Order
from order_service.repositories.billing_repository import InvoiceRepository, ProcessedPaymentRepository
from order_service.repositories.cart_repository import CartRepository
from order_service.repositories.catalog_repository import CatalogRepository
from order_service.repositories.notification_repository import NotificationRepository
from order_service.repositories.order_repository import OrderRepository
from order_service.services import templates
from order_service.services.auth_client import CurrentUser
from order_service.services.document_generator import DocumentGenerator, format_naira, receipt_fields
from order_service.services.geocoder import Geocoder
from order_service.services.lifecycle import LifecycleOrchestrator, OperationResult, require_admin
from order_service.services.notifications import NotificationEvent, NotificationFanout
from order_service.services.payment_gateway import ChargeSession, PaystackClient, to_kobo
from order_service.services.pricing import (
    active_discount, effective_unit_price, line_total, order_subtotal, order_total, to_decimal, to_money
)
from order_service.services.state_machine import OrderStatus, label, transition

logger = logging.getLogger(__name__)

PAYMENT_KIND = "order"


class OrderService(LifecycleOrchestrator):
    """Service layer for product order business logic"""

    def __init__(
        self,
        db: Session,
        gateway: Optional[PaystackClient] = None,
        documents: Optional[DocumentGenerator] = None,
        fanout: Optional[NotificationFanout] = None,
        geocoder: Optional[Geocoder] = None,
    ):
        self.repository = OrderRepository(db)
        self.cart_repository = CartRepository(db)
        self.catalog_repository = CatalogRepository(db)
        self.processed_repository = ProcessedPaymentRepository(db)
        self.notification_repository = NotificationRepository(db)
        self.gateway = gateway or PaystackClient()
        self.geocoder = geocoder or Geocoder()
        super().__init__(
            InvoiceRepository(db),
            documents or DocumentGenerator(),
            fanout or NotificationFanout(self.notification_repository),
        )

    def get_order(self, user: CurrentUser, order_id: int) -> Order:
        """Get an order the caller owns (admins see all)"""
        return self.repository.get_for_user(order_id, user.id, user.is_admin)

    def list_orders(self, user: CurrentUser) -> List[Order]:
        """Caller's orders, newest first"""
        return self.repository.list_for_user(user.id)

    def list_all_orders(self, user: CurrentUser, status: Optional[str] = None) -> List[Order]:
        require_admin(user)
        return self.repository.list_all(status)

    async def checkout(
        self,
        user: CurrentUser,
        address: str,
        state_name: Optional[str] = None,
        coords: Optional[Tuple[float, float]] = None,
    ) -> Order:
        """
        Turn the caller's cart into an order awaiting payment

        Steps:
        1. Load the cart (must not be empty)
        2. Resolve the delivery address to coordinates
        3. Snapshot price and discount per line at this instant
        4. Compute subtotal, shipping fee and total
        5. Persist the order, take stock and clear the cart in one commit

        Raises:
            EmptyCartError: If the cart has no lines
            ValidationError: If the address is missing or cannot be resolved,
                or a line is out of stock
        """
        # Step 1: Load cart
        cart_items = self.cart_repository.list_for_user(user.id)
        if not cart_items:
            raise EmptyCartError()

        # Step 2: Resolve coordinates
        address = (address or "").strip()
        if not address:
            raise ValidationError("Please enter or select a delivery address")
        if coords is None:
            coords = await self.geocoder.resolve(address)
            if coords is None:
                raise ValidationError(f"Address could not be resolved to a location: {address}")

        # Step 3: Snapshot prices
        lines = self._snapshot_lines(cart_items)

        # Step 4: Totals
        subtotal = order_subtotal(lines)
        shipping_fee = self._shipping_fee_for(state_name)
        total = order_total(subtotal, shipping_fee)

        # Step 5: Persist order, stock and cart together
        order = self.repository.build(
            user.id,
            lines,
            address,
            coords,
            state_name=state_name,
            status=OrderStatus.AWAITING_PAYMENT.value,
            shipping_fee=shipping_fee,
            total=total,
        )
        for item in cart_items:
            if item.variant is not None:
                item.variant.stock -= item.quantity
        self.cart_repository.stage_clear(user.id)
        self.repository.commit()
        self.repository.db.refresh(order)

        logger.info("Order %s created for user %s: total=%s", order.id, user.id, total)
        return order

    def begin_payment(self, user: CurrentUser, order_id: int) -> ChargeSession:
        """Open a charge session for an order awaiting payment"""
        order = self.get_order(user, order_id)
        if order.status != OrderStatus.AWAITING_PAYMENT.value:
            raise InvalidTransition(order.status, OrderStatus.PROCESSING.value, "order is not awaiting payment")
        reference = self.gateway.new_reference("ORDER", order.id)
        return self.gateway.begin_charge(user.email, to_money(order.total), reference)

    async def confirm_payment(self, user: CurrentUser, order_id: int, reference: str) -> OperationResult:
        """
        Apply a client-reported payment after verifying it with the gateway

        Replaying an already-applied reference returns the current order and
        creates nothing.

        Raises:
            InvalidTransition: If the order is not awaiting payment
            VerificationFailed: If the gateway does not confirm the charge;
                the order is left untouched
        """
        order = self.get_order(user, order_id)

        processed = self.processed_repository.get(reference)
        if processed is not None:
            if processed.kind == PAYMENT_KIND and processed.entity_id == order.id:
                logger.info("Payment %s already applied to order %s; nothing to do", reference, order.id)
                return OperationResult(
                    entity=order,
                    receipt=self.invoice_repository.get_receipt_by_reference(reference),
                    replayed=True,
                )
            raise ValidationError("Payment reference has already been used")

        current = OrderStatus(order.status)
        transition(current, OrderStatus.PROCESSING)

        verification = await self.gateway.verify_charge(reference)
        expected = to_kobo(order.total)
        if verification.amount is not None and int(verification.amount) != expected:
            logger.warning(
                "Amount mismatch for %s: gateway=%s expected=%s", reference, verification.amount, expected
            )
            raise VerificationFailed(reference, "paid amount does not match the order total")

        # Status, payment reference and processed marker commit together
        self.repository.stage_status(
            order.id, current.value, OrderStatus.PROCESSING.value, payment_reference=reference
        )
        self.processed_repository.stage_processed(reference, PAYMENT_KIND, order.id)
        self.repository.commit()
        order = self.repository.get_by_id(order.id)
        self.repository.db.refresh(order)
        logger.info("Payment %s verified; order %s is processing", reference, order.id)

        warnings: List[str] = []
        receipt = await self._issue_receipt(
            warnings,
            user_id=order.user_id,
            amount=order.total,
            reference=reference,
            fields=self._receipt_fields(order, reference),
            order_id=order.id,
        )
        await self._notify(warnings, self._payment_event(order, receipt))
        return OperationResult(entity=order, warnings=warnings, receipt=receipt)

    async def update_status(self, user: CurrentUser, order_id: int, status: str) -> OperationResult:
        """
        Admin status change with a customer notification

        Moving to 'processing' is reserved for verified payments.
        """
        require_admin(user)
        order = self.repository.get_for_user(order_id, user.id, is_admin=True)
        current = OrderStatus(order.status)
        target = OrderStatus(status)
        if target == OrderStatus.PROCESSING:
            raise InvalidTransition(current.value, target.value, "only a verified payment can mark an order as paid")
        transition(current, target)

        order = self._write_status(order, current, target)
        warnings: List[str] = []
        await self._notify(warnings, self._status_event(order, target))
        return OperationResult(entity=order, warnings=warnings)

    async def cancel(self, user: CurrentUser, order_id: int) -> OperationResult:
        """Customers may cancel while awaiting payment; admins from any non-final status"""
        if user.is_admin:
            return await self.update_status(user, order_id, OrderStatus.CANCELLED.value)

        order = self.get_order(user, order_id)
        current = OrderStatus(order.status)
        if current != OrderStatus.AWAITING_PAYMENT:
            raise InvalidTransition(
                current.value, OrderStatus.CANCELLED.value, "paid orders can only be cancelled by support"
            )
        transition(current, OrderStatus.CANCELLED)
        order = self._write_status(order, current, OrderStatus.CANCELLED)
        warnings: List[str] = []
        await self._notify(warnings, self._status_event(order, OrderStatus.CANCELLED))
        return OperationResult(entity=order, warnings=warnings)

    async def create_receipt(self, user: CurrentUser, order_id: int) -> OperationResult:
        """
        Manually issue the receipt of a paid order

        Used to recover from a failed automatic receipt. Returns the existing
        receipt if there already is one.

        Raises:
            ValidationError: If the order has no verified payment
            GenerationError: If the document cannot be generated
        """
        require_admin(user)
        order = self.repository.get_for_user(order_id, user.id, is_admin=True)
        reference = order.payment_reference
        if not reference or self.processed_repository.get(reference) is None:
            raise ValidationError("Receipts can only be issued for paid orders")

        existing = self.invoice_repository.get_receipt_by_reference(reference)
        if existing is not None:
            return OperationResult(entity=order, receipt=existing, replayed=True)

        warnings: List[str] = []
        receipt = await self._issue_receipt(
            warnings,
            user_id=order.user_id,
            amount=order.total,
            reference=reference,
            fields=self._receipt_fields(order, reference),
            order_id=order.id,
            raise_on_failure=True,
        )
        logger.info("Receipt %s issued manually for order %s", receipt.id, order.id)
        await self._notify(warnings, self._payment_event(order, receipt))
        return OperationResult(entity=order, warnings=warnings, receipt=receipt)

    def _write_status(self, order: Order, current: OrderStatus, target: OrderStatus) -> Order:
        """Conditional status write; cancelling returns stock in the same commit"""
        self.repository.stage_status(order.id, current.value, target.value)
        if target == OrderStatus.CANCELLED:
            for line in order.items:
                variant_id = line.get("variant_id")
                variant = self.catalog_repository.get_variant(variant_id) if variant_id else None
                if variant is not None:
                    variant.stock += int(line["quantity"])
        self.repository.commit()
        order = self.repository.get_by_id(order.id)
        self.repository.db.refresh(order)
        logger.info("Order %s moved %s -> %s", order.id, current.value, target.value)
        return order

    def _snapshot_lines(self, cart_items) -> List[Dict[str, Any]]:
        """Freeze name, price, discount and variant details of every cart line"""
        now = datetime.utcnow()
        promotions = self.catalog_repository.list_promotions(active_only=True)
        lines = []
        for item in cart_items:
            product = item.product
            if product is None or not product.is_active:
                raise ValidationError(f"Product {item.product_id} is no longer available")
            price = to_decimal(product.price)
            variant = item.variant
            if variant is not None:
                if variant.stock < item.quantity:
                    raise ValidationError(
                        f"Insufficient stock for {product.name}. "
                        f"Requested: {item.quantity}, Available: {variant.stock}"
                    )
                price += to_decimal(variant.price_delta or 0)
            discount = active_discount(product.category, promotions, now)
            lines.append({
                "product_id": product.id,
                "variant_id": variant.id if variant is not None else None,
                "name": product.name,
                "category": product.category,
                "price": float(to_money(price)),
                "discount_percentage": discount,
                "quantity": item.quantity,
                "size": item.size or (variant.size if variant is not None else None),
                "color": item.color or (variant.color if variant is not None else None),
                "image_url": product.image_url,
            })
        return lines

    def _shipping_fee_for(self, state_name: Optional[str]):
        if state_name:
            fee = self.catalog_repository.get_shipping_fee(state_name)
            if fee is not None:
                return to_money(fee.shipping_fee)
        return to_money(settings.DEFAULT_SHIPPING_FEE)

    def _customer_contact(self, user_id: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        profile = self.notification_repository.get_profile(user_id)
        if profile is None:
            return None, None, None
        return profile.email, profile.phone, profile.full_name

    def _receipt_fields(self, order: Order, reference: str) -> Dict[str, Any]:
        email, _, full_name = self._customer_contact(order.user_id)
        products = [
            {
                "product_id": line["product_id"],
                "name": line["name"],
                "price": float(to_money(effective_unit_price(line["price"], line.get("discount_percentage", 0)))),
                "quantity": line["quantity"],
            }
            for line in order.items
        ]
        return receipt_fields(
            reference=reference,
            order_id=order.id,
            full_name=full_name or email or "",
            address=order.address,
            amount=order.total,
            products=products,
            extra={
                "SUBTOTAL": format_naira(to_money(order.total) - to_money(order.shipping_fee)),
                "SHIPPING": format_naira(order.shipping_fee),
            },
        )

    def _payment_event(self, order: Order, receipt) -> NotificationEvent:
        email, phone, _ = self._customer_contact(order.user_id)
        pdf_url = receipt.pdf_url if receipt is not None else None
        heading = f"Receipt #{order.id}"
        paragraphs = [f"Your payment for order #{order.id} has been received and your order is being processed."]
        details = [
            ("Payment reference", order.payment_reference),
            ("Delivery address", order.address),
        ]
        for line in order.items:
            amount = line_total(line["price"], line.get("discount_percentage", 0), line["quantity"])
            details.append((f"{line['name']} ({line['quantity']}x)", f"₦{format_naira(amount)}"))
        details.extend([
            ("Subtotal", f"₦{format_naira(to_money(order.total) - to_money(order.shipping_fee))}"),
            ("Shipping", f"₦{format_naira(order.shipping_fee)}"),
            ("Total", f"₦{format_naira(order.total)}"),
        ])
        actions = templates.document_action("Download PDF Receipt", pdf_url)
        return NotificationEvent(
            subject=f"Order #{order.id} Receipt",
            message=f"Payment received for order #{order.id}. Your order is now being processed.",
            user_id=order.user_id,
            email=email,
            phone=phone,
            html=templates.render_html(heading, paragraphs, details, actions),
            text=templates.render_text(heading, paragraphs, details, actions),
        )

    def _status_event(self, order: Order, status: OrderStatus) -> NotificationEvent:
        email, phone, _ = self._customer_contact(order.user_id)
        message = f"Your order #{order.id} status has been updated: {label(status)}."
        heading = f"Order #{order.id} Status Updated"
        paragraphs = [message]
        actions = [("Go to Dashboard", templates.dashboard_url())]
        return NotificationEvent(
            subject=heading,
            message=message,
            user_id=order.user_id,
            email=email,
            phone=phone,
            html=templates.render_html(heading, paragraphs, actions=actions),
            text=templates.render_text(heading, paragraphs, actions=actions),
        )
