"""
Cart Repository - Data Access Layer
"""
from typing import List, Optional

from order_service.errors import NotFoundError
from order_service.models.cart import CartItem
from order_service.repositories.base import BaseRepository


class CartRepository(BaseRepository):
    """Repository for a user's server-side cart"""

    def list_for_user(self, user_id: str) -> List[CartItem]:
        return self.db.query(CartItem).filter(
            CartItem.user_id == user_id
        ).order_by(CartItem.id).all()

    def get_for_user(self, item_id: int, user_id: str) -> CartItem:
        item = self.db.query(CartItem).filter(CartItem.id == item_id).first()
        if not item or item.user_id != user_id:
            raise NotFoundError("Cart item", item_id)
        return item

    def find_line(self, user_id: str, product_id: int, variant_id: Optional[int]) -> Optional[CartItem]:
        return self.db.query(CartItem).filter(
            CartItem.user_id == user_id,
            CartItem.product_id == product_id,
            CartItem.variant_id == variant_id if variant_id is not None else CartItem.variant_id.is_(None),
        ).first()

    def add(self, cart_item_data: dict) -> CartItem:
        return self.save(CartItem(**cart_item_data))

    def set_quantity(self, item: CartItem, quantity: int) -> Optional[CartItem]:
        """Change a line's quantity; below 1 removes the line and returns None"""
        if quantity < 1:
            self.db.delete(item)
            self.commit()
            return None
        item.quantity = quantity
        self.commit()
        self.db.refresh(item)
        return item

    def remove(self, item: CartItem) -> None:
        self.db.delete(item)
        self.commit()

    def stage_clear(self, user_id: str) -> int:
        """Delete every line of the cart in the current unit of work"""
        return self.db.query(CartItem).filter(
            CartItem.user_id == user_id
        ).delete(synchronize_session=False)
