"""
SQLAlchemy Invoice, Receipt and ProcessedPayment models
"""
from sqlalchemy import Column, Integer, String, Numeric, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from order_service.database import Base


class Invoice(Base):
    """Billing document for a custom order; at most one per custom order"""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    custom_order_id = Column(
        Integer, ForeignKey("custom_orders.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    user_id = Column(String(64), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    paid = Column(Boolean, nullable=False, default=False)
    pdf_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    custom_order = relationship("CustomOrder")

    def __repr__(self):
        return f"<Invoice(id={self.id}, custom_order_id={self.custom_order_id}, amount={self.amount}, paid={self.paid})>"


class Receipt(Base):
    """Proof of a verified payment, for an invoice or a product order"""

    __tablename__ = "receipts"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_reference = Column(String(100), nullable=False, unique=True)
    pdf_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Receipt(id={self.id}, payment_reference='{self.payment_reference}')>"


class ProcessedPayment(Base):
    """Payment references whose verification has already been applied"""

    __tablename__ = "processed_payments"

    reference = Column(String(100), primary_key=True, unique=True, nullable=False)
    kind = Column(String(20), nullable=False)  # order, invoice
    entity_id = Column(Integer, nullable=False)
    processed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<ProcessedPayment(reference='{self.reference}', kind='{self.kind}', entity_id={self.entity_id})>"
