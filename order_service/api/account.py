"""
Notification inbox and account endpoints
"""
from typing import List

from fastapi import APIRouter, Depends, Query

from order_service.api.deps import get_account_service, get_current_user
from order_service.services.account_service import AccountService
from order_service.services.auth_client import CurrentUser
from order_service.schemas.account import AccountDeletionResponse, NotificationResponse

router = APIRouter(tags=["account"])


@router.get("/notifications", response_model=List[NotificationResponse], summary="Get my notifications")
def get_notifications(
    unread_only: bool = Query(False, description="Only unread notifications"),
    user: CurrentUser = Depends(get_current_user),
    service: AccountService = Depends(get_account_service)
):
    return [NotificationResponse.model_validate(n) for n in service.list_notifications(user, unread_only)]


@router.post("/notifications/{notification_id}/read", response_model=NotificationResponse,
             summary="Mark notification read")
def mark_notification_read(
    notification_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: AccountService = Depends(get_account_service)
):
    return NotificationResponse.model_validate(service.mark_notification_read(user, notification_id))


@router.delete("/account", response_model=AccountDeletionResponse, summary="Delete my account data")
async def delete_account(
    user: CurrentUser = Depends(get_current_user),
    service: AccountService = Depends(get_account_service)
):
    """
    Delete the caller's cart, orders, custom orders, invoices, receipts,
    notifications and profile, then send a confirmation email
    """
    return await service.delete_account(user)
