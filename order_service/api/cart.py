"""
Cart API endpoints
"""
from fastapi import APIRouter, Depends, status

from order_service.api.deps import get_cart_service, get_current_user
from order_service.services.auth_client import CurrentUser
from order_service.services.cart_service import CartService
from order_service.schemas.cart import CartItemCreate, CartItemUpdate, CartResponse

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartResponse, summary="Get my cart")
def get_cart(
    user: CurrentUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """Cart lines with current effective prices and the subtotal"""
    return service.get_cart(user)


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED, summary="Add to cart")
def add_cart_item(
    item_data: CartItemCreate,
    user: CurrentUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """
    Add a product to the cart

    - **product_id**: Product ID (required)
    - **variant_id**: Variant ID; stock is checked when given
    - **quantity**: Quantity (default: 1)
    """
    return service.add_item(user, item_data)


@router.patch("/items/{item_id}", response_model=CartResponse, summary="Change quantity")
def update_cart_item(
    item_id: int,
    item_data: CartItemUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """
    Change a line's quantity

    A quantity below 1 removes the line.
    """
    return service.update_item(user, item_id, item_data.quantity)


@router.delete("/items/{item_id}", response_model=CartResponse, summary="Remove from cart")
def remove_cart_item(
    item_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    return service.remove_item(user, item_id)
