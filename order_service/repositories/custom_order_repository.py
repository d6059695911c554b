"""
Custom Order Repository - Data Access Layer
"""
from typing import List, Optional

from sqlalchemy import desc, update

from order_service.errors import InvalidTransition, NotFoundError
from order_service.models.custom_order import CustomOrder
from order_service.repositories.base import BaseRepository


class CustomOrderRepository(BaseRepository):
    """Repository for CustomOrder CRUD operations"""

    def get_by_id(self, custom_order_id: int) -> Optional[CustomOrder]:
        return self.db.query(CustomOrder).filter(CustomOrder.id == custom_order_id).first()

    def get_for_user(self, custom_order_id: int, user_id: str, is_admin: bool = False) -> CustomOrder:
        """Get a custom order the caller may see, else NotFoundError"""
        custom_order = self.get_by_id(custom_order_id)
        if not custom_order or (not is_admin and custom_order.user_id != user_id):
            raise NotFoundError("Custom order", custom_order_id)
        return custom_order

    def list_for_user(self, user_id: str) -> List[CustomOrder]:
        return self.db.query(CustomOrder).filter(
            CustomOrder.user_id == user_id
        ).order_by(desc(CustomOrder.created_at), desc(CustomOrder.id)).all()

    def list_all(self, status: Optional[str] = None) -> List[CustomOrder]:
        query = self.db.query(CustomOrder)
        if status:
            query = query.filter(CustomOrder.status == status)
        return query.order_by(desc(CustomOrder.created_at), desc(CustomOrder.id)).all()

    def create(self, custom_order_data: dict) -> CustomOrder:
        """Create a new custom order"""
        return self.save(CustomOrder(**custom_order_data))

    def stage_update(self, custom_order_id: int, expected: dict, values: dict) -> None:
        """
        Conditional update keyed on expected current column values

        Raises:
            InvalidTransition: If any expected value no longer matches
        """
        conditions = [CustomOrder.id == custom_order_id]
        conditions.extend(getattr(CustomOrder, column) == value for column, value in expected.items())
        result = self.db.execute(
            update(CustomOrder)
            .where(*conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            current = ", ".join(f"{k}={v}" for k, v in expected.items())
            target = ", ".join(f"{k}={v}" for k, v in values.items())
            raise InvalidTransition(current, target, "custom order changed concurrently")

    def update(self, custom_order_id: int, expected: dict, values: dict) -> CustomOrder:
        """Conditional update, committed and reloaded"""
        self.stage_update(custom_order_id, expected, values)
        self.commit()
        custom_order = self.get_by_id(custom_order_id)
        self.db.refresh(custom_order)
        return custom_order
