"""
Invoice, Receipt and processed-payment Repository - Data Access Layer
"""
from typing import List, Optional

from sqlalchemy import desc

from order_service.errors import NotFoundError
from order_service.models.billing import Invoice, Receipt, ProcessedPayment
from order_service.repositories.base import BaseRepository


class InvoiceRepository(BaseRepository):
    """Repository for invoices and receipts"""

    def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        return self.db.query(Invoice).filter(Invoice.id == invoice_id).first()

    def get_for_user(self, invoice_id: int, user_id: str, is_admin: bool = False) -> Invoice:
        invoice = self.get_by_id(invoice_id)
        if not invoice or (not is_admin and invoice.user_id != user_id):
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    def get_by_custom_order(self, custom_order_id: int) -> Optional[Invoice]:
        return self.db.query(Invoice).filter(Invoice.custom_order_id == custom_order_id).first()

    def list_for_user(self, user_id: str) -> List[Invoice]:
        return self.db.query(Invoice).filter(
            Invoice.user_id == user_id
        ).order_by(desc(Invoice.created_at), desc(Invoice.id)).all()

    def create_invoice(self, custom_order_id: int, user_id: str, amount, pdf_url: str) -> Invoice:
        """Persist a new unpaid invoice"""
        return self.save(Invoice(
            custom_order_id=custom_order_id,
            user_id=user_id,
            amount=amount,
            paid=False,
            pdf_url=pdf_url,
        ))

    def stage_mark_paid(self, invoice: Invoice) -> None:
        """Flip paid false -> true in the current unit of work"""
        invoice.paid = True

    def create_receipt(
        self,
        user_id: str,
        amount,
        payment_reference: str,
        pdf_url: Optional[str],
        invoice_id: Optional[int] = None,
        order_id: Optional[int] = None,
    ) -> Receipt:
        """Persist a receipt; payment_reference is unique"""
        return self.save(Receipt(
            user_id=user_id,
            amount=amount,
            payment_reference=payment_reference,
            pdf_url=pdf_url,
            invoice_id=invoice_id,
            order_id=order_id,
        ))

    def get_receipt_by_reference(self, payment_reference: str) -> Optional[Receipt]:
        return self.db.query(Receipt).filter(Receipt.payment_reference == payment_reference).first()

    def list_receipts_for_user(self, user_id: str) -> List[Receipt]:
        return self.db.query(Receipt).filter(
            Receipt.user_id == user_id
        ).order_by(desc(Receipt.created_at), desc(Receipt.id)).all()


class ProcessedPaymentRepository(BaseRepository):
    """Repository for tracking applied payment references (idempotency)"""

    def get(self, reference: str) -> Optional[ProcessedPayment]:
        return self.db.query(ProcessedPayment).filter(
            ProcessedPayment.reference == reference
        ).first()

    def get_for_entity(self, kind: str, entity_id: int) -> Optional[ProcessedPayment]:
        """The applied payment of an order or invoice, if any"""
        return self.db.query(ProcessedPayment).filter(
            ProcessedPayment.kind == kind,
            ProcessedPayment.entity_id == entity_id
        ).first()

    def stage_processed(self, reference: str, kind: str, entity_id: int) -> ProcessedPayment:
        """Record a reference as applied in the current unit of work"""
        processed = ProcessedPayment(reference=reference, kind=kind, entity_id=entity_id)
        self.db.add(processed)
        return processed
