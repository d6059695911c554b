"""
Pydantic schemas for product orders
"""
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional, Literal
from datetime import datetime

from order_service.schemas.billing import ReceiptResponse


class OrderCreate(BaseModel):
    """Schema for checking out the caller's cart"""
    address: str = Field(..., min_length=1, description="Delivery address")
    state_name: Optional[str] = Field(None, max_length=100, description="State used for the shipping fee")
    lat: Optional[float] = Field(None, ge=-90, le=90, description="Latitude, geocoded when omitted")
    lng: Optional[float] = Field(None, ge=-180, le=180, description="Longitude, geocoded when omitted")

    @model_validator(mode="after")
    def check_coordinates(self):
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be given together")
        return self


class OrderStatusUpdate(BaseModel):
    """Schema for an admin status change"""
    status: Literal['processing', 'shipped', 'delivered', 'cancelled'] = Field(
        ...,
        description="Order status"
    )


class OrderItem(BaseModel):
    """Frozen line snapshot taken at checkout"""
    product_id: int
    variant_id: Optional[int] = None
    name: str
    price: float
    discount_percentage: int = 0
    quantity: int
    size: Optional[str] = None
    color: Optional[str] = None
    image_url: Optional[str] = None


class OrderResponse(BaseModel):
    """Schema for order response"""
    id: int
    user_id: str
    items: list[OrderItem]
    address: str
    state_name: Optional[str]
    lat: float
    lng: float
    status: str
    shipping_fee: float
    total: float
    payment_reference: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderListResponse(BaseModel):
    """Schema for list of orders response"""
    orders: list[OrderResponse]
    total: int


class OrderActionResponse(BaseModel):
    """Order after a lifecycle operation plus side-effect warnings"""
    order: OrderResponse
    receipt: Optional[ReceiptResponse] = None
    warnings: list[str] = []
    replayed: bool = False
