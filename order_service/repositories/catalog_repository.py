"""
Catalog Repository - products, variants, promotions and shipping fees
"""
from typing import List, Optional

from sqlalchemy import func

from order_service.errors import NotFoundError
from order_service.models.catalog import Product, ProductVariant, Promotion, ShippingFee
from order_service.repositories.base import BaseRepository


class CatalogRepository(BaseRepository):
    """Repository for catalog reads and admin writes"""

    def get_all(self, category: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Product]:
        """Active products with pagination"""
        query = self.db.query(Product).filter(Product.is_active.is_(True))
        if category:
            query = query.filter(Product.category == category)
        return query.order_by(Product.id).offset(skip).limit(limit).all()

    def get_by_id(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).filter(Product.id == product_id).first()

    def get_product(self, product_id: int) -> Product:
        product = self.get_by_id(product_id)
        if not product:
            raise NotFoundError("Product", product_id)
        return product

    def create_product(self, product_data: dict) -> Product:
        return self.save(Product(**product_data))

    def update_product(self, product_id: int, product_data: dict) -> Product:
        """Update only provided fields"""
        product = self.get_product(product_id)
        for field, value in product_data.items():
            setattr(product, field, value)
        self.commit()
        self.db.refresh(product)
        return product

    def get_variant(self, variant_id: int) -> Optional[ProductVariant]:
        return self.db.query(ProductVariant).filter(ProductVariant.id == variant_id).first()

    def add_variant(self, product_id: int, variant_data: dict) -> ProductVariant:
        self.get_product(product_id)
        return self.save(ProductVariant(product_id=product_id, **variant_data))

    def check_stock(self, variant_id: int, required_quantity: int) -> bool:
        """Check if a variant has sufficient stock"""
        variant = self.get_variant(variant_id)
        if not variant:
            return False
        return variant.stock >= required_quantity

    def list_promotions(self, active_only: bool = False) -> List[Promotion]:
        query = self.db.query(Promotion)
        if active_only:
            query = query.filter(Promotion.active.is_(True))
        return query.order_by(Promotion.start_date.desc()).all()

    def create_promotion(self, promotion_data: dict) -> Promotion:
        return self.save(Promotion(**promotion_data))

    def set_promotion_active(self, promotion_id: int, active: bool) -> Promotion:
        promotion = self.db.query(Promotion).filter(Promotion.id == promotion_id).first()
        if not promotion:
            raise NotFoundError("Promotion", promotion_id)
        promotion.active = active
        self.commit()
        self.db.refresh(promotion)
        return promotion

    def list_shipping_fees(self) -> List[ShippingFee]:
        return self.db.query(ShippingFee).order_by(ShippingFee.state_name).all()

    def get_shipping_fee(self, state_name: str) -> Optional[ShippingFee]:
        return self.db.query(ShippingFee).filter(
            func.lower(ShippingFee.state_name) == state_name.strip().lower()
        ).first()

    def upsert_shipping_fee(self, state_name: str, shipping_fee) -> ShippingFee:
        """Insert or replace the fee for a state"""
        fee = self.get_shipping_fee(state_name)
        if fee:
            fee.shipping_fee = shipping_fee
            self.commit()
            self.db.refresh(fee)
            return fee
        return self.save(ShippingFee(state_name=state_name.strip(), shipping_fee=shipping_fee))

    def delete_shipping_fee(self, fee_id: int) -> bool:
        fee = self.db.query(ShippingFee).filter(ShippingFee.id == fee_id).first()
        if not fee:
            return False
        self.db.delete(fee)
        self.commit()
        return True
