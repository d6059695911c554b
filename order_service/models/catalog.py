"""
SQLAlchemy catalog models: products, variants, promotions, shipping fees
"""
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Text, Boolean, ForeignKey, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from order_service.database import Base


class Product(Base):
    """Product database model"""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    category = Column(String(100), nullable=True, index=True)
    image_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.id",
    )

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_price_positive'),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', price={self.price})>"


class ProductVariant(Base):
    """A size/color combination with its own stock and price delta"""

    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    size = Column(String(20), nullable=True)
    color = Column(String(50), nullable=True)
    stock = Column(Integer, nullable=False, default=0)
    price_delta = Column(Numeric(12, 2), nullable=False, default=0)

    product = relationship("Product", back_populates="variants")

    __table_args__ = (
        CheckConstraint('stock >= 0', name='check_stock_non_negative'),
    )

    def __repr__(self):
        return f"<ProductVariant(id={self.id}, product_id={self.product_id}, size='{self.size}', color='{self.color}')>"


class Promotion(Base):
    """Time-boxed percentage discount, optionally scoped to one category"""

    __tablename__ = "promotions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    discount_percentage = Column(Integer, nullable=False)
    category = Column(String(100), nullable=True, index=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint(
            'discount_percentage >= 0 AND discount_percentage <= 100',
            name='check_discount_range'
        ),
    )

    def __repr__(self):
        return f"<Promotion(id={self.id}, name='{self.name}', discount={self.discount_percentage})>"


class ShippingFee(Base):
    """Flat shipping fee per delivery state"""

    __tablename__ = "shipping_fees"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    state_name = Column(String(100), nullable=False, unique=True)
    shipping_fee = Column(Numeric(12, 2), nullable=False)

    __table_args__ = (
        CheckConstraint('shipping_fee >= 0', name='check_shipping_fee_non_negative'),
    )

    def __repr__(self):
        return f"<ShippingFee(state_name='{self.state_name}', shipping_fee={self.shipping_fee})>"
