"""
Repositories package
"""
from order_service.repositories.order_repository import OrderRepository
from order_service.repositories.custom_order_repository import CustomOrderRepository
from order_service.repositories.billing_repository import InvoiceRepository, ProcessedPaymentRepository
from order_service.repositories.notification_repository import NotificationRepository
from order_service.repositories.catalog_repository import CatalogRepository
from order_service.repositories.cart_repository import CartRepository
from order_service.repositories.account_repository import AccountRepository

__all__ = [
    "OrderRepository",
    "CustomOrderRepository",
    "InvoiceRepository",
    "ProcessedPaymentRepository",
    "NotificationRepository",
    "CatalogRepository",
    "CartRepository",
    "AccountRepository",
]
