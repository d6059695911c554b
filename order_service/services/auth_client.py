"""
HTTP client for the hosted authentication service
"""
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from order_service.config import settings
from order_service.errors import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass
class AuthUser:
    """Identity returned by the auth service"""
    id: str
    email: str


class AuthClient:
    """Resolve bearer tokens to users"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = settings.AUTH_SERVICE_URL.rstrip("/")
        self.api_key = settings.AUTH_API_KEY
        self.timeout = settings.AUTH_TIMEOUT
        self.transport = transport

    async def get_current_user(self, access_token: str) -> Optional[AuthUser]:
        """
        Look up the user behind an access token

        Returns:
            AuthUser, or None when the token is missing, invalid or expired

        Raises:
            ExternalServiceError: If the auth service cannot be reached
        """
        if not access_token:
            return None

        headers = {"Authorization": f"Bearer {access_token}"}
        if self.api_key:
            headers["apikey"] = self.api_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(f"{self.base_url}/auth/v1/user", headers=headers)
        except httpx.HTTPError as e:
            logger.error("Auth service unreachable: %s", e)
            raise ExternalServiceError(f"Auth service unavailable: {e}")

        if response.status_code in (401, 403):
            return None
        if response.status_code != 200:
            raise ExternalServiceError(f"Auth service returned status {response.status_code}")

        data = response.json()
        if not data.get("id"):
            return None
        return AuthUser(id=str(data["id"]), email=data.get("email") or "")


@dataclass
class CurrentUser:
    """Request-scoped identity passed explicitly into every service call"""
    id: str
    email: str
    is_admin: bool = False
    full_name: Optional[str] = None
    phone: Optional[str] = None
