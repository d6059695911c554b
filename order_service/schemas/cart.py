"""
Pydantic schemas for the server-side cart
"""
from pydantic import BaseModel, Field
from typing import Optional


class CartItemCreate(BaseModel):
    """Schema for adding a line to the cart"""
    product_id: int = Field(..., gt=0, description="Product ID")
    variant_id: Optional[int] = Field(None, gt=0, description="Variant ID")
    size: Optional[str] = Field(None, max_length=20)
    color: Optional[str] = Field(None, max_length=50)
    quantity: int = Field(1, gt=0, description="Quantity to add")


class CartItemUpdate(BaseModel):
    """Schema for changing a line's quantity; below 1 removes the line"""
    quantity: int


class CartLineResponse(BaseModel):
    """One cart line priced with the promotion running now"""
    id: int
    product_id: int
    variant_id: Optional[int]
    name: str
    size: Optional[str]
    color: Optional[str]
    image_url: Optional[str]
    quantity: int
    unit_price: float
    discount_percentage: int
    effective_price: float
    line_total: float


class CartResponse(BaseModel):
    """Schema for the caller's cart"""
    items: list[CartLineResponse]
    subtotal: float
