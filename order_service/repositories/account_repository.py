"""
Account Repository - profiles and the account-deletion cascade
"""
from typing import Dict, Optional

from order_service.models import (
    CartItem, CustomOrder, Invoice, Notification, Order, ProcessedPayment, Profile, Receipt
)
from order_service.repositories.base import BaseRepository


class AccountRepository(BaseRepository):
    """Repository for profiles and full account-data deletion"""

    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self.db.query(Profile).filter(Profile.id == user_id).first()

    def ensure_profile(self, user_id: str, email: str) -> Profile:
        """Return the profile for an authenticated user, creating it on first sight"""
        profile = self.get_profile(user_id)
        if profile:
            if email and profile.email != email:
                profile.email = email
                self.commit()
                self.db.refresh(profile)
            return profile
        return self.save(Profile(id=user_id, email=email, is_admin=False))

    def delete_user_data(self, user_id: str) -> Dict[str, int]:
        """
        Delete every row owned by a user in one transaction

        Returns:
            Number of deleted rows per table
        """
        order_ids = [row.id for row in self.db.query(Order.id).filter(Order.user_id == user_id)]
        invoice_ids = [row.id for row in self.db.query(Invoice.id).filter(Invoice.user_id == user_id)]

        deleted = {
            "receipts": self.db.query(Receipt).filter(
                Receipt.user_id == user_id
            ).delete(synchronize_session=False),
            "processed_payments": 0,
        }
        if order_ids:
            deleted["processed_payments"] += self.db.query(ProcessedPayment).filter(
                ProcessedPayment.kind == "order", ProcessedPayment.entity_id.in_(order_ids)
            ).delete(synchronize_session=False)
        if invoice_ids:
            deleted["processed_payments"] += self.db.query(ProcessedPayment).filter(
                ProcessedPayment.kind == "invoice", ProcessedPayment.entity_id.in_(invoice_ids)
            ).delete(synchronize_session=False)

        for name, model in (
            ("invoices", Invoice),
            ("custom_orders", CustomOrder),
            ("orders", Order),
            ("cart_items", CartItem),
            ("notifications", Notification),
        ):
            deleted[name] = self.db.query(model).filter(
                model.user_id == user_id
            ).delete(synchronize_session=False)
        deleted["profiles"] = self.db.query(Profile).filter(
            Profile.id == user_id
        ).delete(synchronize_session=False)

        self.commit()
        return deleted
