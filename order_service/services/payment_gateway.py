"""
HTTP client for the card-payment gateway (Paystack) with retry logic
"""
import logging
import secrets
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from order_service.config import settings
from order_service.errors import ConfigurationError, ValidationError, VerificationFailed
from order_service.services.pricing import Number, to_money

logger = logging.getLogger(__name__)


@dataclass
class ChargeSession:
    """Everything the browser SDK needs to open a charge"""
    public_key: str
    email: str
    amount: int  # kobo
    currency: str
    reference: str


@dataclass
class ChargeVerification:
    """Outcome of a server-side verification that succeeded"""
    reference: str
    succeeded: bool
    amount: Optional[int] = None  # kobo, as reported by the gateway
    raw_result: Dict[str, Any] = field(default_factory=dict)


def to_kobo(amount: Number) -> int:
    """Convert a Naira amount to the gateway's smallest currency unit"""
    return int((to_money(amount) * 100).to_integral_value())


class PaystackClient:
    """Client for initiating and verifying card payments"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = settings.PAYSTACK_BASE_URL.rstrip("/")
        self.public_key = settings.PAYSTACK_PUBLIC_KEY
        self.secret_key = settings.PAYSTACK_SECRET_KEY
        self.currency = settings.PAYMENT_CURRENCY
        self.prefix = settings.PAYMENT_REFERENCE_PREFIX
        self.timeout = settings.GATEWAY_TIMEOUT
        self.transport = transport

    def new_reference(self, *parts) -> str:
        """Mint a per-attempt reference: PREFIX_<parts>_<ms timestamp><salt>"""
        pieces = [self.prefix, *[str(p) for p in parts], f"{int(time.time() * 1000)}{secrets.token_hex(2)}"]
        return "_".join(pieces)

    def begin_charge(self, email: str, amount: Decimal, reference: str) -> ChargeSession:
        """
        Build a charge session for the client-side SDK

        Args:
            email: Payer email
            amount: Amount in Naira
            reference: Unique per-attempt reference

        Returns:
            ChargeSession with the amount in kobo

        Raises:
            ConfigurationError: If the public key is not configured
            ValidationError: If the amount is not positive or the email is empty
        """
        if not self.public_key:
            raise ConfigurationError("Payment gateway public key is missing")
        if not email:
            raise ValidationError("No valid email found for payment")
        if to_money(amount) <= 0:
            raise ValidationError("Invalid payment amount")

        session = ChargeSession(
            public_key=self.public_key,
            email=email,
            amount=to_kobo(amount),
            currency=self.currency,
            reference=reference,
        )
        logger.info("Charge session opened: reference=%s amount=%s", reference, session.amount)
        return session

    async def verify_charge(self, reference: str) -> ChargeVerification:
        """
        Verify a payment reference against the gateway

        Must only be called from the server; it uses the secret key.

        Raises:
            ConfigurationError: If the secret key is not configured
            VerificationFailed: If the gateway does not report success, the
                response is unreadable, or the call itself fails
        """
        if not self.secret_key:
            raise ConfigurationError("Payment gateway secret key is missing")
        if not reference:
            raise ValidationError("Valid reference is required")

        try:
            response = await self._fetch_verification(reference)
        except httpx.HTTPError as e:
            logger.error("Gateway verification call failed for %s: %s", reference, e)
            raise VerificationFailed(reference, f"gateway unreachable: {e}")

        try:
            result = response.json()
        except ValueError:
            logger.error("Unreadable gateway response for %s (HTTP %s)", reference, response.status_code)
            raise VerificationFailed(reference, "failed to parse gateway response")
        if not isinstance(result, dict):
            raise VerificationFailed(reference, "unexpected gateway response")

        data = result.get("data") or {}
        if not isinstance(data, dict):
            raise VerificationFailed(reference, "unexpected gateway response")
        tx_status = data.get("status")
        if response.status_code != 200 or result.get("status") is not True or tx_status != "success":
            logger.warning(
                "Verification failure: reference=%s http=%s gateway_status=%s tx_status=%s",
                reference, response.status_code, result.get("status"), tx_status
            )
            raise VerificationFailed(
                reference,
                result.get("message") or "Payment verification failed",
                tx_status
            )

        return ChargeVerification(
            reference=reference,
            succeeded=True,
            amount=data.get("amount"),
            raw_result=result,
        )

    @retry(
        stop=stop_after_attempt(settings.MAX_RETRIES),
        wait=wait_exponential(multiplier=settings.RETRY_DELAY, min=1, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        reraise=True
    )
    async def _fetch_verification(self, reference: str) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.get(
                f"{self.base_url}/transaction/verify/{quote(reference, safe='')}",
                headers={
                    "Authorization": f"Bearer {self.secret_key}",
                    "Content-Type": "application/json",
                }
            )
