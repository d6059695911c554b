"""
Catalog Service - products, promotions and shipping fees
"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from order_service.errors import NotFoundError, ValidationError
from order_service.models.catalog import Product
from order_service.repositories.catalog_repository import CatalogRepository
from order_service.schemas.catalog import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    PromotionCreate,
    PromotionResponse,
    ShippingFeeResponse,
    VariantCreate,
    VariantResponse
)
from order_service.services.auth_client import CurrentUser
from order_service.services.lifecycle import require_admin
from order_service.services.pricing import active_discount, effective_unit_price, to_money

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for catalog business logic"""

    def __init__(self, db: Session):
        self.repository = CatalogRepository(db)

    def get_all_products(
        self,
        category: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> ProductListResponse:
        """Active products with their current effective prices"""
        products = self.repository.get_all(category=category, skip=skip, limit=limit)
        promotions = self.repository.list_promotions(active_only=True)
        return ProductListResponse(
            products=[self._to_response(p, promotions) for p in products],
            total=len(products)
        )

    def get_product(self, product_id: int) -> ProductResponse:
        product = self.repository.get_product(product_id)
        if not product.is_active:
            raise NotFoundError("Product", product_id)
        return self._to_response(product, self.repository.list_promotions(active_only=True))

    def create_product(self, user: CurrentUser, product_data: ProductCreate) -> ProductResponse:
        require_admin(user)
        data = product_data.model_dump(exclude={"variants"})
        data["price"] = to_money(data["price"])
        product = self.repository.create_product(data)
        for variant in product_data.variants:
            self.repository.add_variant(product.id, self._variant_values(variant))
        self.repository.db.refresh(product)
        logger.info("Product %s created: %s", product.id, product.name)
        return self._to_response(product, self.repository.list_promotions(active_only=True))

    def update_product(self, user: CurrentUser, product_id: int, product_data: ProductUpdate) -> ProductResponse:
        """Update only provided fields"""
        require_admin(user)
        data = product_data.model_dump(exclude_unset=True)
        if "price" in data:
            data["price"] = to_money(data["price"])
        product = self.repository.update_product(product_id, data)
        return self._to_response(product, self.repository.list_promotions(active_only=True))

    def add_variant(self, user: CurrentUser, product_id: int, variant_data: VariantCreate) -> VariantResponse:
        require_admin(user)
        variant = self.repository.add_variant(product_id, self._variant_values(variant_data))
        return VariantResponse.model_validate(variant)

    def list_promotions(self, active_only: bool = False) -> List[PromotionResponse]:
        return [PromotionResponse.model_validate(p) for p in self.repository.list_promotions(active_only)]

    def create_promotion(self, user: CurrentUser, promotion_data: PromotionCreate) -> PromotionResponse:
        """
        Create a promotion

        Raises:
            ValidationError: If the discount is outside [0, 100] or the
                window ends before it starts
        """
        require_admin(user)
        if not 0 <= promotion_data.discount_percentage <= 100:
            raise ValidationError("Discount percentage must be between 0 and 100")
        if promotion_data.end_date <= promotion_data.start_date:
            raise ValidationError("Promotion end date must be after its start date")
        data = promotion_data.model_dump()
        data["category"] = data["category"] or None
        promotion = self.repository.create_promotion(data)
        logger.info("Promotion %s created: %s%% off %s", promotion.id, promotion.discount_percentage,
                    promotion.category or "all categories")
        return PromotionResponse.model_validate(promotion)

    def set_promotion_active(self, user: CurrentUser, promotion_id: int, active: bool) -> PromotionResponse:
        require_admin(user)
        return PromotionResponse.model_validate(self.repository.set_promotion_active(promotion_id, active))

    def list_shipping_fees(self) -> List[ShippingFeeResponse]:
        return [ShippingFeeResponse.model_validate(f) for f in self.repository.list_shipping_fees()]

    def upsert_shipping_fee(self, user: CurrentUser, state_name: str, shipping_fee: float) -> ShippingFeeResponse:
        require_admin(user)
        if not state_name.strip():
            raise ValidationError("State name is required")
        fee = self.repository.upsert_shipping_fee(state_name, to_money(shipping_fee))
        return ShippingFeeResponse.model_validate(fee)

    def delete_shipping_fee(self, user: CurrentUser, fee_id: int) -> None:
        require_admin(user)
        if not self.repository.delete_shipping_fee(fee_id):
            raise NotFoundError("Shipping fee", fee_id)

    def _variant_values(self, variant_data: VariantCreate) -> dict:
        data = variant_data.model_dump()
        data["price_delta"] = to_money(data["price_delta"])
        return data

    def _to_response(self, product: Product, promotions: Sequence) -> ProductResponse:
        discount = active_discount(product.category, promotions, datetime.utcnow())
        return ProductResponse(
            id=product.id,
            name=product.name,
            description=product.description,
            price=float(product.price),
            category=product.category,
            image_url=product.image_url,
            is_active=product.is_active,
            discount_percentage=discount,
            effective_price=float(to_money(effective_unit_price(product.price, discount))),
            variants=[VariantResponse.model_validate(v) for v in product.variants],
            created_at=product.created_at,
            updated_at=product.updated_at,
        )
