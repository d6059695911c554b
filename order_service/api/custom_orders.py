"""
Custom order API endpoints
"""
from typing import List

from fastapi import APIRouter, Depends, status

from order_service.api.deps import get_current_user, get_custom_order_service
from order_service.services.auth_client import CurrentUser
from order_service.services.custom_order_service import CustomOrderService
from order_service.services.lifecycle import OperationResult
from order_service.schemas.billing import InvoiceResponse
from order_service.schemas.custom_order import (
    CustomOrderCreate,
    CustomOrderPriceUpdate,
    CustomOrderStatusUpdate,
    DeliveryStatusUpdate,
    CustomOrderResponse,
    CustomOrderActionResponse
)

router = APIRouter(prefix="/custom-orders", tags=["custom-orders"])


def to_action_response(result: OperationResult) -> CustomOrderActionResponse:
    return CustomOrderActionResponse(
        custom_order=CustomOrderResponse.model_validate(result.entity),
        invoice=InvoiceResponse.model_validate(result.invoice) if result.invoice else None,
        warnings=result.warnings
    )


@router.post(
    "",
    response_model=CustomOrderActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit custom order"
)
async def create_custom_order(
    custom_order_data: CustomOrderCreate,
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    """
    Submit a tailored order request

    - **full_name**, **phone**, **address**: Contact details (required)
    - **fabric**, **style**: What to make (required)
    - **measurements**, **additional_notes**: Free text (optional)
    """
    result = await service.submit(user, custom_order_data.model_dump())
    return to_action_response(result)


@router.get("", response_model=List[CustomOrderResponse], summary="Get my custom orders")
def get_custom_orders(
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    return [CustomOrderResponse.model_validate(c) for c in service.list_custom_orders(user)]


@router.get("/{custom_order_id}", response_model=CustomOrderResponse, summary="Get custom order by ID")
def get_custom_order(
    custom_order_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    return CustomOrderResponse.model_validate(service.get_custom_order(user, custom_order_id))


@router.patch("/{custom_order_id}/price", response_model=CustomOrderResponse, summary="Set price")
def set_custom_order_price(
    custom_order_id: int,
    price_data: CustomOrderPriceUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    """
    Set the outfit price (admin)

    - **price**: Price in Naira, must be positive
    """
    return CustomOrderResponse.model_validate(service.set_price(user, custom_order_id, price_data.price))


@router.patch("/{custom_order_id}/status", response_model=CustomOrderActionResponse, summary="Update status")
async def update_custom_order_status(
    custom_order_id: int,
    status_data: CustomOrderStatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    """
    Update custom order status (admin)

    Moving to 'in progress' requires a price and issues the invoice.

    - **status**: pending, in progress, completed, cancelled
    - **price**: Optional price to set in the same write
    """
    result = await service.update_status(user, custom_order_id, status_data.status, status_data.price)
    return to_action_response(result)


@router.patch(
    "/{custom_order_id}/delivery-status",
    response_model=CustomOrderActionResponse,
    summary="Update delivery status"
)
async def update_delivery_status(
    custom_order_id: int,
    delivery_data: DeliveryStatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    """
    Update delivery status (admin)

    Delivery can only move once the order is in progress or completed.
    """
    result = await service.update_delivery_status(user, custom_order_id, delivery_data.delivery_status)
    return to_action_response(result)
