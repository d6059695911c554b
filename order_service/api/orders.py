"""
Order API endpoints
"""
from fastapi import APIRouter, Depends, status

from order_service.api.deps import get_current_user, get_order_service
from order_service.services.auth_client import CurrentUser
from order_service.services.lifecycle import OperationResult
from order_service.services.order_service import OrderService
from order_service.schemas.billing import ReceiptResponse
from order_service.schemas.order import (
    OrderCreate,
    OrderStatusUpdate,
    OrderResponse,
    OrderListResponse,
    OrderActionResponse
)
from order_service.schemas.payment import ChargeSessionResponse, PaymentVerifyRequest

router = APIRouter(prefix="/orders", tags=["orders"])


def to_action_response(result: OperationResult) -> OrderActionResponse:
    return OrderActionResponse(
        order=OrderResponse.model_validate(result.entity),
        receipt=ReceiptResponse.model_validate(result.receipt) if result.receipt else None,
        warnings=result.warnings,
        replayed=result.replayed
    )


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED, summary="Create order")
async def create_order(
    order_data: OrderCreate,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Check out the caller's cart

    Process:
    1. Snapshot the price and discount of every cart line
    2. Geocode the address when no coordinates are given
    3. Add the shipping fee of the state
    4. Save the order as awaiting payment and clear the cart

    - **address**: Delivery address (required)
    - **state_name**: State for the shipping fee (optional)
    - **lat** / **lng**: Coordinates (optional, both or neither)
    """
    coords = (order_data.lat, order_data.lng) if order_data.lat is not None else None
    order = await service.checkout(user, order_data.address, order_data.state_name, coords)
    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse, summary="Get my orders")
def get_orders(
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Retrieve the caller's orders, newest first"""
    orders = service.list_orders(user)
    return OrderListResponse(orders=[OrderResponse.model_validate(o) for o in orders], total=len(orders))


@router.get("/{order_id}", response_model=OrderResponse, summary="Get order by ID")
def get_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Retrieve a specific order by ID

    - **order_id**: Order ID
    """
    return OrderResponse.model_validate(service.get_order(user, order_id))


@router.post("/{order_id}/payments", response_model=ChargeSessionResponse, summary="Begin payment")
def begin_payment(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Open a payment session for an order awaiting payment"""
    return ChargeSessionResponse.model_validate(service.begin_payment(user, order_id))


@router.post("/{order_id}/payments/verify", response_model=OrderActionResponse, summary="Verify payment")
async def verify_payment(
    order_id: int,
    payment: PaymentVerifyRequest,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Verify a payment with the gateway and mark the order as processing

    Repeating the call with the same reference returns the current order.

    - **reference**: Reference returned by the payment SDK
    """
    result = await service.confirm_payment(user, order_id, payment.reference)
    return to_action_response(result)


@router.post(
    "/{order_id}/receipt",
    response_model=OrderActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue receipt"
)
async def create_receipt(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Issue the receipt of a paid order whose automatic receipt failed (admin)

    Returns the existing receipt when one was already issued.
    """
    result = await service.create_receipt(user, order_id)
    return to_action_response(result)


@router.patch("/{order_id}/status", response_model=OrderActionResponse, summary="Update order status")
async def update_order_status(
    order_id: int,
    status_data: OrderStatusUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """
    Update order status (admin)

    - **order_id**: Order ID
    - **status**: New status (shipped, delivered, cancelled)
    """
    result = await service.update_status(user, order_id, status_data.status)
    return to_action_response(result)


@router.post("/{order_id}/cancel", response_model=OrderActionResponse, summary="Cancel order")
async def cancel_order(
    order_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Cancel an order; customers only while it is awaiting payment"""
    result = await service.cancel(user, order_id)
    return to_action_response(result)
