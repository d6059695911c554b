"""
Cart Service - server-side cart with stock checks
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from order_service.errors import NotFoundError, ValidationError
from order_service.repositories.cart_repository import CartRepository
from order_service.repositories.catalog_repository import CatalogRepository
from order_service.schemas.cart import CartItemCreate, CartLineResponse, CartResponse
from order_service.services.auth_client import CurrentUser
from order_service.services.pricing import (
    active_discount, effective_unit_price, line_total, to_decimal, to_money
)

logger = logging.getLogger(__name__)


class CartService:
    """Service layer for cart business logic"""

    def __init__(self, db: Session):
        self.repository = CartRepository(db)
        self.catalog_repository = CatalogRepository(db)

    def get_cart(self, user: CurrentUser) -> CartResponse:
        """Cart lines priced with the promotions running now"""
        now = datetime.utcnow()
        promotions = self.catalog_repository.list_promotions(active_only=True)
        lines = []
        subtotal = to_money(0)
        for item in self.repository.list_for_user(user.id):
            product = item.product
            unit_price = to_decimal(product.price)
            if item.variant is not None:
                unit_price += to_decimal(item.variant.price_delta or 0)
            discount = active_discount(product.category, promotions, now)
            total = line_total(unit_price, discount, item.quantity)
            subtotal += total
            lines.append(CartLineResponse(
                id=item.id,
                product_id=product.id,
                variant_id=item.variant_id,
                name=product.name,
                size=item.size,
                color=item.color,
                image_url=product.image_url,
                quantity=item.quantity,
                unit_price=float(to_money(unit_price)),
                discount_percentage=discount,
                effective_price=float(to_money(effective_unit_price(unit_price, discount))),
                line_total=float(total),
            ))
        return CartResponse(items=lines, subtotal=float(subtotal))

    def add_item(self, user: CurrentUser, item_data: CartItemCreate) -> CartResponse:
        """
        Add a product to the cart, merging with an identical line

        Raises:
            NotFoundError: If the product or variant does not exist
            ValidationError: If the variant has too little stock
        """
        product = self.catalog_repository.get_product(item_data.product_id)
        if not product.is_active:
            raise NotFoundError("Product", item_data.product_id)

        variant = None
        if item_data.variant_id is not None:
            variant = self.catalog_repository.get_variant(item_data.variant_id)
            if variant is None or variant.product_id != product.id:
                raise NotFoundError("Variant", item_data.variant_id)

        existing = self.repository.find_line(user.id, product.id, item_data.variant_id)
        quantity = item_data.quantity + (existing.quantity if existing else 0)
        self._check_stock(variant, quantity, product.name)

        if existing:
            self.repository.set_quantity(existing, quantity)
        else:
            self.repository.add({
                "user_id": user.id,
                "product_id": product.id,
                "variant_id": item_data.variant_id,
                "size": item_data.size or (variant.size if variant else None),
                "color": item_data.color or (variant.color if variant else None),
                "quantity": quantity,
            })
        logger.info("User %s cart: product %s x%s", user.id, product.id, quantity)
        return self.get_cart(user)

    def update_item(self, user: CurrentUser, item_id: int, quantity: int) -> CartResponse:
        """Change a line's quantity; a quantity below 1 removes it"""
        item = self.repository.get_for_user(item_id, user.id)
        if quantity >= 1:
            self._check_stock(item.variant, quantity, item.product.name)
        self.repository.set_quantity(item, quantity)
        return self.get_cart(user)

    def remove_item(self, user: CurrentUser, item_id: int) -> CartResponse:
        self.repository.remove(self.repository.get_for_user(item_id, user.id))
        return self.get_cart(user)

    def _check_stock(self, variant: Optional[object], quantity: int, name: str) -> None:
        if variant is None:
            return
        if not self.catalog_repository.check_stock(variant.id, quantity):
            raise ValidationError(
                f"Insufficient stock for {name}. Requested: {quantity}, Available: {variant.stock}"
            )
