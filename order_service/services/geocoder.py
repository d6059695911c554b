"""
HTTP client for address geocoding (Nominatim search API)
"""
import logging
from typing import Optional, Tuple

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from order_service.config import settings
from order_service.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class Geocoder:
    """Resolve a free-text delivery address to coordinates"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = settings.GEOCODER_URL
        self.user_agent = settings.GEOCODER_USER_AGENT
        self.timeout = settings.GEOCODER_TIMEOUT
        self.transport = transport

    async def resolve(self, address: str) -> Optional[Tuple[float, float]]:
        """
        Look up an address

        Returns:
            (lat, lng) of the best match, or None when nothing matches

        Raises:
            ExternalServiceError: If the geocoding service is unavailable
        """
        try:
            response = await self._search(address)
        except httpx.HTTPError as e:
            logger.error("Geocoder unreachable: %s", e)
            raise ExternalServiceError(f"Geocoding service unavailable: {e}")

        if response.status_code != 200:
            logger.error("Geocoder returned status %s", response.status_code)
            raise ExternalServiceError(f"Geocoding service returned status {response.status_code}")

        try:
            results = response.json()
        except ValueError:
            raise ExternalServiceError("Failed to parse geocoding response")

        if not results:
            return None
        first = results[0]
        try:
            return float(first["lat"]), float(first["lon"])
        except (KeyError, TypeError, ValueError):
            return None

    @retry(
        stop=stop_after_attempt(settings.MAX_RETRIES),
        wait=wait_exponential(multiplier=settings.RETRY_DELAY, min=1, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        reraise=True
    )
    async def _search(self, address: str) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.get(
                self.url,
                params={"q": address, "format": "json", "limit": 1},
                headers={"User-Agent": self.user_agent},
            )
