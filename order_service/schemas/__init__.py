"""
Schemas package
"""
from order_service.schemas.catalog import (
    VariantCreate,
    VariantResponse,
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    PromotionCreate,
    PromotionActiveUpdate,
    PromotionResponse,
    ShippingFeeUpsert,
    ShippingFeeResponse
)
from order_service.schemas.cart import CartItemCreate, CartItemUpdate, CartLineResponse, CartResponse
from order_service.schemas.payment import ChargeSessionResponse, PaymentVerifyRequest
from order_service.schemas.billing import (
    InvoiceCreate,
    InvoiceResponse,
    ReceiptResponse,
    InvoicePaymentResponse,
    InvoiceActionResponse
)
from order_service.schemas.order import (
    OrderCreate,
    OrderStatusUpdate,
    OrderItem,
    OrderResponse,
    OrderListResponse,
    OrderActionResponse
)
from order_service.schemas.custom_order import (
    CustomOrderCreate,
    CustomOrderPriceUpdate,
    CustomOrderStatusUpdate,
    DeliveryStatusUpdate,
    CustomOrderResponse,
    CustomOrderActionResponse
)
from order_service.schemas.account import NotificationResponse, AccountDeletionResponse

__all__ = [
    "VariantCreate",
    "VariantResponse",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductListResponse",
    "PromotionCreate",
    "PromotionActiveUpdate",
    "PromotionResponse",
    "ShippingFeeUpsert",
    "ShippingFeeResponse",
    "CartItemCreate",
    "CartItemUpdate",
    "CartLineResponse",
    "CartResponse",
    "ChargeSessionResponse",
    "PaymentVerifyRequest",
    "InvoiceCreate",
    "InvoiceResponse",
    "ReceiptResponse",
    "InvoicePaymentResponse",
    "InvoiceActionResponse",
    "OrderCreate",
    "OrderStatusUpdate",
    "OrderItem",
    "OrderResponse",
    "OrderListResponse",
    "OrderActionResponse",
    "CustomOrderCreate",
    "CustomOrderPriceUpdate",
    "CustomOrderStatusUpdate",
    "DeliveryStatusUpdate",
    "CustomOrderResponse",
    "CustomOrderActionResponse",
    "NotificationResponse",
    "AccountDeletionResponse"
]
