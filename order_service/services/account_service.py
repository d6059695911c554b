"""
Account Service - in-app inbox and account-data deletion
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from order_service.models.notification import Notification
from order_service.repositories.account_repository import AccountRepository
from order_service.repositories.notification_repository import NotificationRepository
from order_service.schemas.account import AccountDeletionResponse
from order_service.services import templates
from order_service.services.auth_client import CurrentUser
from order_service.services.notifications import NotificationEvent, NotificationFanout

logger = logging.getLogger(__name__)


class AccountService:
    """Service layer for data the account owns outright"""

    def __init__(self, db: Session, fanout: Optional[NotificationFanout] = None):
        self.repository = AccountRepository(db)
        self.notification_repository = NotificationRepository(db)
        self.fanout = fanout or NotificationFanout(self.notification_repository)

    def list_notifications(self, user: CurrentUser, unread_only: bool = False) -> List[Notification]:
        return self.notification_repository.list_for_user(user.id, unread_only=unread_only)

    def mark_notification_read(self, user: CurrentUser, notification_id: int) -> Notification:
        return self.notification_repository.mark_read(notification_id, user.id)

    async def delete_account(self, user: CurrentUser) -> AccountDeletionResponse:
        """
        Delete every row the caller owns, then confirm by email

        The confirmation goes to the address captured before deletion and
        is best-effort; the deletion itself is one transaction.
        """
        profile = self.repository.get_profile(user.id)
        email = profile.email if profile else user.email
        full_name = profile.full_name if profile and profile.full_name else "Customer"

        deleted = self.repository.delete_user_data(user.id)
        logger.info("Account %s deleted: %s", user.id, deleted)

        heading = "Account Deleted"
        paragraphs = [
            f"Dear {full_name},",
            "Your account and all associated data have been deleted as requested.",
            "If this was not you, please contact our support team immediately.",
        ]
        report = await self.fanout.notify(NotificationEvent(
            subject="Your Vian Clothing Hub account has been deleted",
            message="Your account and all associated data have been deleted.",
            email=email,
            html=templates.render_html(heading, paragraphs),
            text=templates.render_text(heading, paragraphs),
        ))
        return AccountDeletionResponse(deleted=deleted, warnings=report.warnings())
