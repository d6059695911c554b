"""
Order Repository - Data Access Layer
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import desc, update

from order_service.errors import InvalidTransition, NotFoundError, ValidationError
from order_service.models.order import Order
from order_service.repositories.base import BaseRepository
from order_service.services.state_machine import OrderStatus, transition


class OrderRepository(BaseRepository):
    """Repository for Order CRUD operations"""

    def get_by_id(self, order_id: int) -> Optional[Order]:
        """Get order by ID"""
        return self.db.query(Order).filter(Order.id == order_id).first()

    def get_for_user(self, order_id: int, user_id: str, is_admin: bool = False) -> Order:
        """
        Get an order the caller may see

        Raises:
            NotFoundError: If the order does not exist or belongs to someone else
        """
        order = self.get_by_id(order_id)
        if not order or (not is_admin and order.user_id != user_id):
            raise NotFoundError("Order", order_id)
        return order

    def list_for_user(self, user_id: str) -> List[Order]:
        """All orders of a user, newest first"""
        return self.db.query(Order).filter(
            Order.user_id == user_id
        ).order_by(desc(Order.created_at), desc(Order.id)).all()

    def list_all(self, status: Optional[str] = None) -> List[Order]:
        """All orders, optionally filtered by status, newest first"""
        query = self.db.query(Order)
        if status:
            query = query.filter(Order.status == status)
        return query.order_by(desc(Order.created_at), desc(Order.id)).all()

    def build(
        self,
        user_id: str,
        lines: Sequence[Dict[str, Any]],
        address: str,
        coords: Tuple[float, float],
        **fields
    ) -> Order:
        """
        Validate and stage a new order without committing

        Raises:
            ValidationError: If there are no lines or a quantity is below 1
        """
        if not lines:
            raise ValidationError("An order needs at least one line item")
        for line in lines:
            if int(line.get("quantity", 0)) < 1:
                raise ValidationError(f"Invalid quantity for {line.get('name', 'item')}")
        if not address:
            raise ValidationError("Delivery address is required")

        lat, lng = coords
        order = Order(
            user_id=user_id,
            items=list(lines),
            address=address,
            lat=lat,
            lng=lng,
            **fields
        )
        self.db.add(order)
        return order

    def stage_status(self, order_id: int, expected_status: str, new_status: str, **fields) -> None:
        """
        Conditional status write keyed on the expected previous status

        The write is staged in the current unit of work; callers commit.

        Raises:
            InvalidTransition: If ``new_status`` is not reachable from
                ``expected_status``, or the row is no longer in it
        """
        transition(OrderStatus(expected_status), OrderStatus(new_status))
        result = self.db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status == expected_status)
            .values(status=new_status, **fields)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise InvalidTransition(expected_status, new_status, "order status changed concurrently")
