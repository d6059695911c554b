"""
Models package
"""
from order_service.models.profile import Profile
from order_service.models.catalog import Product, ProductVariant, Promotion, ShippingFee
from order_service.models.cart import CartItem
from order_service.models.order import Order
from order_service.models.custom_order import CustomOrder
from order_service.models.billing import Invoice, Receipt, ProcessedPayment
from order_service.models.notification import Notification

__all__ = [
    "Profile",
    "Product",
    "ProductVariant",
    "Promotion",
    "ShippingFee",
    "CartItem",
    "Order",
    "CustomOrder",
    "Invoice",
    "Receipt",
    "ProcessedPayment",
    "Notification",
]
