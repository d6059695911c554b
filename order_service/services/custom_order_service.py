"""
Custom Order Service - tailored order, invoice and balance payment lifecycle
"""
import logging
import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from order_service.config import settings
from order_service.errors import (
    GenerationError, InvalidTransition, MissingPriceError, NotFoundError, StorageError,
    ValidationError, VerificationFailed
)
from order_service.models.billing import Invoice
from order_service.models.custom_order import CustomOrder
from order_service.repositories.billing_repository import InvoiceRepository, ProcessedPaymentRepository
from order_service.repositories.custom_order_repository import CustomOrderRepository
from order_service.repositories.notification_repository import NotificationRepository
from order_service.services import templates
from order_service.services.auth_client import CurrentUser
from order_service.services.document_generator import (
    INVOICE, DocumentGenerator, format_naira, invoice_fields, receipt_fields
)
from order_service.services.lifecycle import LifecycleOrchestrator, OperationResult, require_admin
from order_service.services.notifications import NotificationEvent, NotificationFanout
from order_service.services.payment_gateway import ChargeSession, PaystackClient, to_kobo
from order_service.services.pricing import to_money
from order_service.services.state_machine import (
    DELIVERY_READY, CustomOrderStatus, DeliveryStatus, check_delivery_gate, is_terminal, label, transition
)

logger = logging.getLogger(__name__)

PAYMENT_KIND = "invoice"


class CustomOrderService(LifecycleOrchestrator):
    """Service layer for custom order business logic"""

    def __init__(
        self,
        db: Session,
        gateway: Optional[PaystackClient] = None,
        documents: Optional[DocumentGenerator] = None,
        fanout: Optional[NotificationFanout] = None,
    ):
        self.repository = CustomOrderRepository(db)
        self.processed_repository = ProcessedPaymentRepository(db)
        self.notification_repository = NotificationRepository(db)
        self.gateway = gateway or PaystackClient()
        super().__init__(
            InvoiceRepository(db),
            documents or DocumentGenerator(),
            fanout or NotificationFanout(self.notification_repository),
        )

    def get_custom_order(self, user: CurrentUser, custom_order_id: int) -> CustomOrder:
        return self.repository.get_for_user(custom_order_id, user.id, user.is_admin)

    def list_custom_orders(self, user: CurrentUser) -> List[CustomOrder]:
        return self.repository.list_for_user(user.id)

    def list_all_custom_orders(self, user: CurrentUser, status: Optional[str] = None) -> List[CustomOrder]:
        require_admin(user)
        return self.repository.list_all(status)

    def get_invoice(self, user: CurrentUser, invoice_id: int) -> Invoice:
        return self.invoice_repository.get_for_user(invoice_id, user.id, user.is_admin)

    def list_invoices(self, user: CurrentUser) -> List[Invoice]:
        return self.invoice_repository.list_for_user(user.id)

    def list_receipts(self, user: CurrentUser):
        return self.invoice_repository.list_receipts_for_user(user.id)

    async def submit(self, user: CurrentUser, custom_order_data: dict) -> OperationResult:
        """
        Create a custom order in 'pending' and alert the customer and admins

        Args:
            user: Submitting customer
            custom_order_data: Contact, fabric, style, measurements, address

        Returns:
            OperationResult with the created custom order
        """
        data = dict(custom_order_data)
        data["email"] = data.get("email") or user.email
        if data.get("deposit") is None:
            data["deposit"] = to_money(settings.DEFAULT_DEPOSIT)
        custom_order = self.repository.create({
            **data,
            "user_id": user.id,
            "status": CustomOrderStatus.PENDING.value,
            "delivery_status": DeliveryStatus.NOT_STARTED.value,
        })
        logger.info("Custom order %s submitted by user %s", custom_order.id, user.id)

        warnings: List[str] = []
        message = (
            f"Your custom order has been submitted! Fabric: {custom_order.fabric}, "
            f"Style: {custom_order.style}. A non-refundable deposit of "
            f"₦{format_naira(custom_order.deposit)} is required. Check your dashboard for updates."
        )
        await self._notify(warnings, NotificationEvent(
            subject="Custom Order Received",
            message=message,
            user_id=user.id,
            email=custom_order.email,
            phone=custom_order.phone,
        ))

        admin_message = (
            f"New custom order submitted by {custom_order.full_name} (ID: {custom_order.id}). "
            f"Fabric: {custom_order.fabric}, Style: {custom_order.style}. "
            f"Please set the outfit price in the admin dashboard."
        )
        report = await self.fanout.notify_admins(admin_message, subject="New custom order")
        warnings.extend(report.warnings())
        return OperationResult(entity=custom_order, warnings=warnings)

    def set_price(self, user: CurrentUser, custom_order_id: int, price: Decimal) -> CustomOrder:
        """Set or change the price while the order is still open"""
        require_admin(user)
        custom_order = self.repository.get_for_user(custom_order_id, user.id, is_admin=True)
        current = CustomOrderStatus(custom_order.status)
        if is_terminal(current):
            raise InvalidTransition(current.value, current.value, "price cannot change on a closed order")
        return self.repository.update(
            custom_order.id,
            {"status": current.value},
            {"price": self._check_price(custom_order, price)},
        )

    async def update_status(
        self,
        user: CurrentUser,
        custom_order_id: int,
        status: str,
        price: Optional[Decimal] = None,
    ) -> OperationResult:
        """
        Admin status change

        Entering 'in progress' requires a price. The status (and price) are
        committed first; the invoice and the notification follow and never
        undo that write.

        Raises:
            MissingPriceError: If moving to 'in progress' with no price
            ValidationError: If the price does not exceed the deposit
            InvalidTransition: If the status is not reachable
        """
        require_admin(user)
        custom_order = self.repository.get_for_user(custom_order_id, user.id, is_admin=True)
        current = CustomOrderStatus(custom_order.status)
        target = CustomOrderStatus(status)
        transition(current, target)

        values = {"status": target.value}
        if price is not None:
            values["price"] = self._check_price(custom_order, price)
        effective_price = values.get("price", custom_order.price)
        if target == CustomOrderStatus.IN_PROGRESS:
            if effective_price is None:
                raise MissingPriceError(custom_order.id)
            self._check_price(custom_order, effective_price)

        custom_order = self.repository.update(custom_order.id, {"status": current.value}, values)
        logger.info("Custom order %s moved %s -> %s", custom_order.id, current.value, target.value)

        warnings: List[str] = []
        invoice = None
        if target == CustomOrderStatus.IN_PROGRESS:
            invoice = await self._issue_invoice(custom_order, warnings)
            event = self._invoice_event(custom_order, invoice)
        else:
            event = self._status_event(custom_order, f"Your custom order #{custom_order.id} is now: {label(target)}.")
        await self._notify(warnings, event)
        return OperationResult(entity=custom_order, warnings=warnings, invoice=invoice)

    async def update_delivery_status(
        self,
        user: CurrentUser,
        custom_order_id: int,
        delivery_status: str,
    ) -> OperationResult:
        """Admin delivery change; delivery opens only once the order is in progress"""
        require_admin(user)
        custom_order = self.repository.get_for_user(custom_order_id, user.id, is_admin=True)
        status = CustomOrderStatus(custom_order.status)
        current = DeliveryStatus(custom_order.delivery_status)
        target = DeliveryStatus(delivery_status)
        check_delivery_gate(status, target)
        transition(current, target)

        custom_order = self.repository.update(
            custom_order.id,
            {"status": status.value, "delivery_status": current.value},
            {"delivery_status": target.value},
        )
        logger.info("Custom order %s delivery %s -> %s", custom_order.id, current.value, target.value)

        warnings: List[str] = []
        await self._notify(warnings, self._status_event(
            custom_order, f"Delivery update for custom order #{custom_order.id}: {label(target)}."
        ))
        return OperationResult(entity=custom_order, warnings=warnings)

    async def create_invoice(self, user: CurrentUser, custom_order_id: int) -> OperationResult:
        """
        Manually create the invoice of an order already in progress

        Used to recover from a failed automatic invoice. Returns the existing
        invoice if there already is one.

        Raises:
            GenerationError: If the document cannot be generated
        """
        require_admin(user)
        custom_order = self.repository.get_for_user(custom_order_id, user.id, is_admin=True)
        status = CustomOrderStatus(custom_order.status)
        if status not in DELIVERY_READY:
            raise ValidationError("Invoices can only be created for custom orders in progress or completed")
        if custom_order.price is None:
            raise MissingPriceError(custom_order.id)

        existing = self.invoice_repository.get_by_custom_order(custom_order.id)
        if existing is not None:
            return OperationResult(entity=existing, invoice=existing, replayed=True)

        warnings: List[str] = []
        invoice = await self._issue_invoice(custom_order, warnings, raise_on_failure=True)
        await self._notify(warnings, self._invoice_event(custom_order, invoice))
        return OperationResult(entity=invoice, warnings=warnings, invoice=invoice)

    async def create_receipt(self, user: CurrentUser, invoice_id: int) -> OperationResult:
        """
        Manually issue the receipt of a paid invoice

        Returns the existing receipt if there already is one.

        Raises:
            ValidationError: If the invoice has no verified payment
            GenerationError: If the document cannot be generated
        """
        require_admin(user)
        invoice = self.invoice_repository.get_for_user(invoice_id, user.id, is_admin=True)
        processed = self.processed_repository.get_for_entity(PAYMENT_KIND, invoice.id)
        if not invoice.paid or processed is None:
            raise ValidationError("Receipts can only be issued for paid invoices")

        reference = processed.reference
        existing = self.invoice_repository.get_receipt_by_reference(reference)
        if existing is not None:
            return OperationResult(entity=invoice, invoice=invoice, receipt=existing, replayed=True)

        custom_order = invoice.custom_order
        warnings: List[str] = []
        receipt = await self._issue_receipt(
            warnings,
            user_id=invoice.user_id,
            amount=invoice.amount,
            reference=reference,
            fields=self._receipt_fields(invoice, custom_order, reference, self._balance(invoice)),
            invoice_id=invoice.id,
            raise_on_failure=True,
        )
        logger.info("Receipt %s issued manually for invoice %s", receipt.id, invoice.id)
        await self._notify(warnings, self._payment_event(invoice, custom_order, receipt, reference, False))
        return OperationResult(entity=invoice, warnings=warnings, invoice=invoice, receipt=receipt)

    def begin_invoice_payment(self, user: CurrentUser, invoice_id: int) -> ChargeSession:
        """Open a charge session for the balance (amount minus deposit)"""
        invoice = self.get_invoice(user, invoice_id)
        if invoice.paid:
            raise ValidationError("Invoice is already paid")
        balance = self._balance(invoice)
        reference = self.gateway.new_reference("INVOICE", invoice.id)
        return self.gateway.begin_charge(user.email, balance, reference)

    async def pay_invoice(self, user: CurrentUser, invoice_id: int, reference: str) -> OperationResult:
        """
        Apply a balance payment after verifying it with the gateway

        On success the invoice is marked paid and delivery starts in one
        commit, then a receipt is generated and the customer notified.
        Replaying an applied reference is a no-op.

        Raises:
            VerificationFailed: If the gateway does not confirm the charge
        """
        invoice = self.get_invoice(user, invoice_id)

        processed = self.processed_repository.get(reference)
        if processed is not None:
            if processed.kind == PAYMENT_KIND and processed.entity_id == invoice.id:
                logger.info("Payment %s already applied to invoice %s; nothing to do", reference, invoice.id)
                return OperationResult(
                    entity=invoice,
                    invoice=invoice,
                    receipt=self.invoice_repository.get_receipt_by_reference(reference),
                    replayed=True,
                )
            raise ValidationError("Payment reference has already been used")

        if invoice.paid:
            raise ValidationError("Invoice is already paid")

        custom_order = invoice.custom_order
        status = CustomOrderStatus(custom_order.status)
        if status == CustomOrderStatus.CANCELLED:
            raise InvalidTransition(status.value, "paid", "custom order is cancelled")

        balance = self._balance(invoice)
        verification = await self.gateway.verify_charge(reference)
        expected = to_kobo(balance)
        if verification.amount is not None and int(verification.amount) != expected:
            logger.warning(
                "Amount mismatch for %s: gateway=%s expected=%s", reference, verification.amount, expected
            )
            raise VerificationFailed(reference, "paid amount does not match the invoice balance")

        # Paid flag, processed marker and delivery start commit together
        warnings: List[str] = []
        self.invoice_repository.stage_mark_paid(invoice)
        self.processed_repository.stage_processed(reference, PAYMENT_KIND, invoice.id)
        delivery = DeliveryStatus(custom_order.delivery_status)
        delivery_started = False
        if delivery == DeliveryStatus.NOT_STARTED and status in DELIVERY_READY:
            check_delivery_gate(status, DeliveryStatus.IN_PROGRESS)
            transition(delivery, DeliveryStatus.IN_PROGRESS)
            self.repository.stage_update(
                custom_order.id,
                {"delivery_status": delivery.value},
                {"delivery_status": DeliveryStatus.IN_PROGRESS.value},
            )
            delivery_started = True
        else:
            logger.warning(
                "Invoice %s paid but delivery not started (status=%s, delivery=%s)",
                invoice.id, status.value, delivery.value
            )
            warnings.append(
                f"Payment applied but delivery was not started (order status '{status.value}', "
                f"delivery '{delivery.value}')"
            )
        self.invoice_repository.commit()
        self.invoice_repository.db.refresh(invoice)
        custom_order = self.repository.get_by_id(custom_order.id)
        self.repository.db.refresh(custom_order)
        logger.info("Payment %s verified; invoice %s paid", reference, invoice.id)

        receipt = await self._issue_receipt(
            warnings,
            user_id=invoice.user_id,
            amount=invoice.amount,
            reference=reference,
            fields=self._receipt_fields(invoice, custom_order, reference, balance),
            invoice_id=invoice.id,
        )
        await self._notify(warnings, self._payment_event(invoice, custom_order, receipt, reference, delivery_started))
        return OperationResult(entity=invoice, warnings=warnings, invoice=invoice, receipt=receipt)

    async def _issue_invoice(
        self,
        custom_order: CustomOrder,
        warnings: List[str],
        raise_on_failure: bool = False,
    ) -> Optional[Invoice]:
        """Generate and store the single invoice of a custom order"""
        existing = self.invoice_repository.get_by_custom_order(custom_order.id)
        if existing is not None:
            return existing

        amount = to_money(custom_order.price)
        document_number = uuid.uuid4().hex[:12].upper()
        try:
            pdf_url = await self.documents.generate_document(
                INVOICE, invoice_fields(document_number, custom_order, amount)
            )
        except GenerationError as e:
            if raise_on_failure:
                raise
            logger.error("Invoice generation failed for custom order %s: %s", custom_order.id, e)
            warnings.append(f"Status updated but invoice generation failed ({e.message}); retry manually")
            return None

        try:
            invoice = self.invoice_repository.create_invoice(
                custom_order.id, custom_order.user_id, amount, pdf_url
            )
        except StorageError as e:
            if raise_on_failure:
                raise
            logger.error(
                "Invoice PDF for custom order %s was generated at %s but the invoice could not be saved: %s",
                custom_order.id, pdf_url, e
            )
            warnings.append(f"Status updated but the invoice could not be saved ({e.message}); retry manually")
            return None

        logger.info("Invoice %s created for custom order %s", invoice.id, custom_order.id)
        return invoice

    def _check_price(self, custom_order: CustomOrder, price) -> Decimal:
        """The price must leave a positive balance after the deposit"""
        amount = to_money(price)
        if amount <= 0:
            raise ValidationError("Price must be greater than zero")
        deposit = to_money(custom_order.deposit or 0)
        if amount <= deposit:
            raise ValidationError(f"Price must be greater than the deposit of ₦{format_naira(deposit)}")
        return amount

    def _balance(self, invoice: Invoice) -> Decimal:
        custom_order = invoice.custom_order
        if custom_order is None:
            raise NotFoundError("Custom order", invoice.custom_order_id)
        return to_money(invoice.amount) - to_money(custom_order.deposit)

    def _receipt_fields(self, invoice: Invoice, custom_order: CustomOrder, reference: str, balance: Decimal):
        return receipt_fields(
            reference=reference,
            order_id=custom_order.id,
            full_name=custom_order.full_name,
            address=custom_order.address,
            amount=invoice.amount,
            products=[{"product_id": "custom", "name": "Custom Order", "price": float(to_money(invoice.amount))}],
            invoice_id=invoice.id,
            extra={
                "FABRIC": custom_order.fabric,
                "STYLE": custom_order.style,
                "DEPOSIT": format_naira(custom_order.deposit),
                "BALANCE": format_naira(balance),
            },
        )

    def _status_event(self, custom_order: CustomOrder, message: str) -> NotificationEvent:
        heading = f"Custom Order #{custom_order.id} Update"
        actions = [("Go to Dashboard", templates.dashboard_url())]
        return NotificationEvent(
            subject=heading,
            message=message,
            user_id=custom_order.user_id,
            email=custom_order.email,
            phone=custom_order.phone,
            html=templates.render_html(heading, [message], actions=actions),
            text=templates.render_text(heading, [message], actions=actions),
        )

    def _invoice_event(self, custom_order: CustomOrder, invoice: Optional[Invoice]) -> NotificationEvent:
        if invoice is None:
            message = (
                f"Your custom order #{custom_order.id} is now in progress. "
                f"Your invoice will be available on your dashboard shortly."
            )
            return self._status_event(custom_order, message)

        balance = self._balance(invoice)
        message = (
            f"Your custom order #{custom_order.id} is now in progress. An invoice of "
            f"₦{format_naira(invoice.amount)} has been issued; balance due ₦{format_naira(balance)}. "
            f"Pay here: {templates.pay_invoice_url(invoice.id)}"
        )
        heading = "New Invoice Created"
        paragraphs = [
            f"Dear {custom_order.full_name},",
            "Your order is in progress and an invoice has been created. "
            "Please review the details below and make the payment at your earliest convenience.",
        ]
        details = [
            ("Invoice ID", invoice.id),
            ("Order ID", custom_order.id),
            ("Fabric", custom_order.fabric),
            ("Style", custom_order.style),
            ("Delivery Address", custom_order.address),
            ("Deposit", f"₦{format_naira(custom_order.deposit)}"),
            ("Balance", f"₦{format_naira(balance)}"),
            ("Total Amount", f"₦{format_naira(invoice.amount)}"),
        ]
        actions = templates.document_action("View/Download Invoice", invoice.pdf_url)
        actions.append(("Pay Now", templates.pay_invoice_url(invoice.id)))
        return NotificationEvent(
            subject="New Invoice from Vian Clothing Hub",
            message=message,
            user_id=custom_order.user_id,
            email=custom_order.email,
            phone=custom_order.phone,
            html=templates.render_html(heading, paragraphs, details, actions),
            text=templates.render_text(heading, paragraphs, details, actions),
        )

    def _payment_event(
        self,
        invoice: Invoice,
        custom_order: CustomOrder,
        receipt,
        reference: str,
        delivery_started: bool,
    ) -> NotificationEvent:
        message = f"Payment successful for order ID: {custom_order.id}."
        if delivery_started:
            message += " Delivery has started."
        message += " Check your dashboard for the receipt."
        heading = "Payment Confirmation"
        details = [
            ("Order ID", custom_order.id),
            ("Customer", custom_order.full_name),
            ("Fabric", custom_order.fabric),
            ("Style", custom_order.style),
            ("Delivery Address", custom_order.address),
            ("Deposit", f"₦{format_naira(custom_order.deposit)}"),
            ("Balance Paid", f"₦{format_naira(self._balance(invoice))}"),
            ("Total Amount", f"₦{format_naira(invoice.amount)}"),
            ("Payment Reference", reference),
        ]
        actions = templates.document_action("View/Download Receipt", receipt.pdf_url if receipt else None)
        return NotificationEvent(
            subject="Payment Receipt",
            message=message,
            user_id=custom_order.user_id,
            email=custom_order.email,
            phone=custom_order.phone,
            html=templates.render_html(heading, [message], details, actions),
            text=templates.render_text(heading, [message], details, actions),
        )
