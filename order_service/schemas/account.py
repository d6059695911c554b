"""
Pydantic schemas for notifications and account data
"""
from pydantic import BaseModel, ConfigDict
from datetime import datetime


class NotificationResponse(BaseModel):
    """Schema for an in-app notification"""
    id: int
    message: str
    read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AccountDeletionResponse(BaseModel):
    """Rows removed per table, plus side-effect warnings"""
    deleted: dict[str, int]
    warnings: list[str] = []
