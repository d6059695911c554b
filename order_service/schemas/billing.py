"""
Pydantic schemas for invoices and receipts
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


class InvoiceCreate(BaseModel):
    """Schema for manually creating a custom order's invoice"""
    custom_order_id: int = Field(..., gt=0)


class InvoiceResponse(BaseModel):
    """Schema for invoice response"""
    id: int
    custom_order_id: int
    user_id: str
    amount: float
    paid: bool
    pdf_url: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReceiptResponse(BaseModel):
    """Schema for receipt response"""
    id: int
    invoice_id: Optional[int]
    order_id: Optional[int]
    user_id: str
    amount: float
    payment_reference: str
    pdf_url: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvoicePaymentResponse(BaseModel):
    """Outcome of a verified invoice payment"""
    invoice: InvoiceResponse
    receipt: Optional[ReceiptResponse] = None
    warnings: list[str] = []
    replayed: bool = False


class InvoiceActionResponse(BaseModel):
    """Outcome of a manual invoice creation"""
    invoice: InvoiceResponse
    warnings: list[str] = []
    replayed: bool = False
