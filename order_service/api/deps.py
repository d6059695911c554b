"""
Request dependencies: authentication and service factories
"""
from typing import Optional

import httpx
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from order_service.database import get_db
from order_service.errors import Unauthenticated
from order_service.repositories.account_repository import AccountRepository
from order_service.repositories.notification_repository import NotificationRepository
from order_service.services.account_service import AccountService
from order_service.services.auth_client import AuthClient, CurrentUser
from order_service.services.cart_service import CartService
from order_service.services.catalog_service import CatalogService
from order_service.services.custom_order_service import CustomOrderService
from order_service.services.document_generator import DocumentGenerator
from order_service.services.geocoder import Geocoder
from order_service.services.notifications import (
    EmailChannel, InAppChannel, MessagingChannel, NotificationFanout
)
from order_service.services.order_service import OrderService
from order_service.services.payment_gateway import PaystackClient

bearer_scheme = HTTPBearer(auto_error=False)


def get_http_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport shared by all outbound clients; None means the real network"""
    return None


def get_auth_client(transport=Depends(get_http_transport)) -> AuthClient:
    return AuthClient(transport=transport)


def get_fanout(db: Session = Depends(get_db), transport=Depends(get_http_transport)) -> NotificationFanout:
    repository = NotificationRepository(db)
    return NotificationFanout(repository, channels=[
        EmailChannel(transport=transport),
        MessagingChannel(transport=transport),
        InAppChannel(repository),
    ])


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    auth_client: AuthClient = Depends(get_auth_client)
) -> CurrentUser:
    """
    Resolve the bearer token to the acting user

    Admin rights and contact details come from the local profile, which is
    created the first time a user is seen.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    auth_user = await auth_client.get_current_user(credentials.credentials)
    if auth_user is None:
        raise Unauthenticated("Session expired, please sign in again")

    profile = AccountRepository(db).ensure_profile(auth_user.id, auth_user.email)
    return CurrentUser(
        id=auth_user.id,
        email=auth_user.email or profile.email,
        is_admin=bool(profile.is_admin),
        full_name=profile.full_name,
        phone=profile.phone,
    )


def get_order_service(
    db: Session = Depends(get_db),
    transport=Depends(get_http_transport),
    fanout: NotificationFanout = Depends(get_fanout)
) -> OrderService:
    """Dependency to get OrderService instance"""
    return OrderService(
        db,
        gateway=PaystackClient(transport=transport),
        documents=DocumentGenerator(transport=transport),
        fanout=fanout,
        geocoder=Geocoder(transport=transport),
    )


def get_custom_order_service(
    db: Session = Depends(get_db),
    transport=Depends(get_http_transport),
    fanout: NotificationFanout = Depends(get_fanout)
) -> CustomOrderService:
    """Dependency to get CustomOrderService instance"""
    return CustomOrderService(
        db,
        gateway=PaystackClient(transport=transport),
        documents=DocumentGenerator(transport=transport),
        fanout=fanout,
    )


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency to get CatalogService instance"""
    return CatalogService(db)


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    """Dependency to get CartService instance"""
    return CartService(db)


def get_account_service(
    db: Session = Depends(get_db),
    fanout: NotificationFanout = Depends(get_fanout)
) -> AccountService:
    """Dependency to get AccountService instance"""
    return AccountService(db, fanout=fanout)
