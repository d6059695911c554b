"""
Notification Repository - Data Access Layer
"""
from typing import List, Optional

from sqlalchemy import desc

from order_service.errors import NotFoundError
from order_service.models.notification import Notification
from order_service.models.profile import Profile
from order_service.repositories.base import BaseRepository


class NotificationRepository(BaseRepository):
    """Repository for in-app notifications"""

    def create(self, user_id: str, message: str) -> Notification:
        return self.save(Notification(user_id=user_id, message=message, read=False))

    def list_for_user(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        return query.order_by(desc(Notification.created_at), desc(Notification.id)).all()

    def mark_read(self, notification_id: int, user_id: str) -> Notification:
        """Only the recipient may flip the read flag"""
        notification = self.db.query(Notification).filter(
            Notification.id == notification_id
        ).first()
        if not notification or notification.user_id != user_id:
            raise NotFoundError("Notification", notification_id)
        notification.read = True
        self.commit()
        self.db.refresh(notification)
        return notification

    def admin_ids(self) -> List[str]:
        return [row.id for row in self.db.query(Profile.id).filter(Profile.is_admin.is_(True)).all()]

    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self.db.query(Profile).filter(Profile.id == user_id).first()
