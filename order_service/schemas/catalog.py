"""
Pydantic schemas for catalog request/response validation
"""
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import List, Optional
from datetime import datetime


class VariantBase(BaseModel):
    """Base ProductVariant schema"""
    size: Optional[str] = Field(None, max_length=20, description="Size label, e.g. M or 42")
    color: Optional[str] = Field(None, max_length=50, description="Color name")
    stock: int = Field(0, ge=0, description="Units in stock (must be non-negative)")
    price_delta: float = Field(0, description="Amount added to the product price for this variant")


class VariantCreate(VariantBase):
    """Schema for adding a variant to a product"""
    pass


class VariantResponse(VariantBase):
    """Schema for variant response"""
    id: int
    product_id: int

    model_config = ConfigDict(from_attributes=True)


class ProductBase(BaseModel):
    """Base Product schema with common fields"""
    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    price: float = Field(..., gt=0, description="Product price in Naira (must be positive)")
    category: Optional[str] = Field(None, max_length=100, description="Product category")
    image_url: Optional[str] = Field(None, max_length=500, description="Product image URL")


class ProductCreate(ProductBase):
    """Schema for creating a new product"""
    variants: List[VariantCreate] = Field(default_factory=list, description="Initial variants")


class ProductUpdate(BaseModel):
    """Schema for updating a product (all fields optional)"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    category: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class ProductResponse(ProductBase):
    """Schema for product response, with the promotion applied right now"""
    id: int
    is_active: bool
    discount_percentage: int = 0
    effective_price: float
    variants: List[VariantResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductListResponse(BaseModel):
    """Schema for list of products response"""
    products: list[ProductResponse]
    total: int


class PromotionCreate(BaseModel):
    """Schema for creating a promotion"""
    name: str = Field(..., min_length=1, max_length=255)
    discount_percentage: int = Field(..., ge=0, le=100, description="Percent off, 0 to 100")
    category: Optional[str] = Field(None, max_length=100, description="Category; empty means all")
    start_date: datetime
    end_date: datetime
    active: bool = True

    @model_validator(mode="after")
    def check_window(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class PromotionActiveUpdate(BaseModel):
    """Schema for switching a promotion on or off"""
    active: bool


class PromotionResponse(BaseModel):
    """Schema for promotion response"""
    id: int
    name: str
    discount_percentage: int
    category: Optional[str]
    start_date: datetime
    end_date: datetime
    active: bool

    model_config = ConfigDict(from_attributes=True)


class ShippingFeeUpsert(BaseModel):
    """Schema for setting the shipping fee of a state"""
    state_name: str = Field(..., min_length=1, max_length=100)
    shipping_fee: float = Field(..., ge=0)


class ShippingFeeResponse(BaseModel):
    """Schema for shipping fee response"""
    id: int
    state_name: str
    shipping_fee: float

    model_config = ConfigDict(from_attributes=True)
