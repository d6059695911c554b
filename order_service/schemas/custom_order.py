"""
Pydantic schemas for custom (tailored) orders
"""
from pydantic import BaseModel, Field, EmailStr, ConfigDict
from typing import Optional, Literal
from datetime import datetime

from order_service.schemas.billing import InvoiceResponse


class CustomOrderCreate(BaseModel):
    """Schema for submitting a custom order"""
    full_name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = Field(None, description="Contact email, defaults to the account email")
    phone: str = Field(..., min_length=1, max_length=32)
    fabric: str = Field(..., min_length=1, max_length=255)
    style: str = Field(..., min_length=1, max_length=255)
    measurements: Optional[str] = None
    additional_notes: Optional[str] = None
    address: str = Field(..., min_length=1)


class CustomOrderPriceUpdate(BaseModel):
    """Schema for setting a custom order's price"""
    price: float = Field(..., gt=0, description="Outfit price in Naira")


class CustomOrderStatusUpdate(BaseModel):
    """Schema for an admin status change"""
    status: Literal['pending', 'in progress', 'completed', 'cancelled']
    price: Optional[float] = Field(None, gt=0, description="Price to set along with the status")


class DeliveryStatusUpdate(BaseModel):
    """Schema for an admin delivery change"""
    delivery_status: Literal['not_started', 'in_progress', 'delivered']


class CustomOrderResponse(BaseModel):
    """Schema for custom order response"""
    id: int
    user_id: str
    full_name: str
    email: str
    phone: str
    fabric: str
    style: str
    measurements: Optional[str]
    additional_notes: Optional[str]
    address: str
    status: str
    delivery_status: str
    price: Optional[float]
    deposit: float
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CustomOrderActionResponse(BaseModel):
    """Custom order after a lifecycle operation plus side-effect warnings"""
    custom_order: CustomOrderResponse
    invoice: Optional[InvoiceResponse] = None
    warnings: list[str] = []
