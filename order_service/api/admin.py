"""
Admin listing endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from order_service.api.deps import get_current_user, get_custom_order_service, get_order_service
from order_service.services.auth_client import CurrentUser
from order_service.services.custom_order_service import CustomOrderService
from order_service.services.order_service import OrderService
from order_service.schemas.custom_order import CustomOrderResponse
from order_service.schemas.order import OrderListResponse, OrderResponse

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/orders", response_model=OrderListResponse, summary="Get all orders")
def get_all_orders(
    status: Optional[str] = Query(None, description="Filter by status"),
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    orders = service.list_all_orders(user, status)
    return OrderListResponse(orders=[OrderResponse.model_validate(o) for o in orders], total=len(orders))


@router.get("/custom-orders", response_model=List[CustomOrderResponse], summary="Get all custom orders")
def get_all_custom_orders(
    status: Optional[str] = Query(None, description="Filter by status"),
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    return [CustomOrderResponse.model_validate(c) for c in service.list_all_custom_orders(user, status)]
