"""
Catalog API endpoints: products, promotions and shipping fees
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status, Query

from order_service.api.deps import get_catalog_service, get_current_user
from order_service.services.auth_client import CurrentUser
from order_service.services.catalog_service import CatalogService
from order_service.schemas.catalog import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    PromotionActiveUpdate,
    PromotionCreate,
    PromotionResponse,
    ShippingFeeResponse,
    ShippingFeeUpsert,
    VariantCreate,
    VariantResponse
)

router = APIRouter(tags=["catalog"])


@router.get("/products", response_model=ProductListResponse, summary="Get all products")
def get_products(
    category: Optional[str] = Query(None, description="Filter by category"),
    skip: int = Query(0, ge=0, description="Number of products to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of products to return"),
    service: CatalogService = Depends(get_catalog_service)
):
    """
    Retrieve active products with pagination

    - **category**: Category filter (optional)
    - **skip**: Number of products to skip (default: 0)
    - **limit**: Maximum number of products to return (default: 100, max: 1000)
    """
    return service.get_all_products(category=category, skip=skip, limit=limit)


@router.get("/products/{product_id}", response_model=ProductResponse, summary="Get product by ID")
def get_product(
    product_id: int,
    service: CatalogService = Depends(get_catalog_service)
):
    """
    Retrieve a product with its variants and current effective price

    - **product_id**: Product ID
    """
    return service.get_product(product_id)


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED,
             summary="Create product")
def create_product(
    product_data: ProductCreate,
    user: CurrentUser = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service)
):
    """
    Create a new product (admin)

    - **name**: Product name (required)
    - **price**: Product price (required, must be positive)
    - **variants**: Sizes/colors with stock (optional)
    """
    return service.create_product(user, product_data)


@router.patch("/products/{product_id}", response_model=ProductResponse, summary="Update product")
def update_product(
    product_id: int,
    product_data: ProductUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service)
):
    """
    Update an existing product (admin)

    All fields are optional. Only provided fields will be updated.
    """
    return service.update_product(user, product_id, product_data)


@router.post("/products/{product_id}/variants", response_model=VariantResponse,
             status_code=status.HTTP_201_CREATED, summary="Add variant")
def add_variant(
    product_id: int,
    variant_data: VariantCreate,
    user: CurrentUser = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service)
):
    return service.add_variant(user, product_id, variant_data)


@router.get("/promotions", response_model=List[PromotionResponse], summary="Get promotions")
def get_promotions(
    active_only: bool = Query(False, description="Only promotions flagged active"),
    service: CatalogService = Depends(get_catalog_service)
):
    return service.list_promotions(active_only)


@router.post("/promotions", response_model=PromotionResponse, status_code=status.HTTP_201_CREATED,
             summary="Create promotion")
def create_promotion(
    promotion_data: PromotionCreate,
    user: CurrentUser = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service)
):
    """
    Create a promotion (admin)

    - **discount_percentage**: 0 to 100
    - **category**: Applies to one category, or all when omitted
    - **start_date** / **end_date**: Window; end must be after start
    """
    return service.create_promotion(user, promotion_data)


@router.patch("/promotions/{promotion_id}/active", response_model=PromotionResponse,
              summary="Toggle promotion")
def set_promotion_active(
    promotion_id: int,
    active_data: PromotionActiveUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service)
):
    return service.set_promotion_active(user, promotion_id, active_data.active)


@router.get("/shipping-fees", response_model=List[ShippingFeeResponse], summary="Get shipping fees")
def get_shipping_fees(service: CatalogService = Depends(get_catalog_service)):
    return service.list_shipping_fees()


@router.put("/shipping-fees", response_model=ShippingFeeResponse, summary="Set shipping fee")
def upsert_shipping_fee(
    fee_data: ShippingFeeUpsert,
    user: CurrentUser = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service)
):
    """
    Set the shipping fee of a state, replacing any existing one (admin)

    - **state_name**: State name
    - **shipping_fee**: Fee in Naira (non-negative)
    """
    return service.upsert_shipping_fee(user, fee_data.state_name, fee_data.shipping_fee)


@router.delete("/shipping-fees/{fee_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete shipping fee")
def delete_shipping_fee(
    fee_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service)
):
    service.delete_shipping_fee(user, fee_id)
    return None
