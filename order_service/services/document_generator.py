"""
Document Generator - client for the hosted PDF function

The renderer takes a document type plus a flat record of fields and
answers with the public URL of the uploaded PDF.
"""
import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from order_service.config import settings
from order_service.errors import GenerationError
from order_service.services.pricing import Number, to_money

logger = logging.getLogger(__name__)

INVOICE = "invoice"
RECEIPT = "receipt"
DOCUMENT_KINDS = (INVOICE, RECEIPT)


def format_naira(amount: Number) -> str:
    """12500 -> '12,500' and 12500.5 -> '12,500.50'"""
    value = to_money(amount)
    if value == value.to_integral_value():
        return f"{int(value):,}"
    return f"{value:,.2f}"


def invoice_fields(invoice_id, custom_order, amount: Decimal) -> Dict[str, Any]:
    """Field record for a custom-order invoice"""
    deposit = to_money(custom_order.deposit)
    return {
        "INVOICEID": str(invoice_id),
        "ORDERID": str(custom_order.id),
        "FULLNAME": custom_order.full_name,
        "FABRIC": custom_order.fabric,
        "STYLE": custom_order.style,
        "ADDRESS": custom_order.address,
        "DEPOSIT": format_naira(deposit),
        "BALANCE": format_naira(to_money(amount) - deposit),
        "AMOUNT": format_naira(amount),
        "DATE": date.today().strftime("%d/%m/%Y"),
        "products": [{"product_id": "custom", "name": "Custom Order", "price": float(to_money(amount))}],
    }


def receipt_fields(
    reference: str,
    order_id,
    full_name: str,
    address: str,
    amount: Number,
    products: List[Dict[str, Any]],
    invoice_id=None,
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Field record for a payment receipt"""
    fields = {
        "RECEIPTID": str(uuid.uuid4()),
        "INVOICEID": str(invoice_id) if invoice_id is not None else "",
        "ORDERID": str(order_id),
        "PAYMENTREF": reference,
        "FULLNAME": full_name,
        "ADDRESS": address,
        "AMOUNT": format_naira(amount),
        "DATE": date.today().strftime("%d/%m/%Y"),
        "products": products,
    }
    if extra:
        fields.update(extra)
    return fields


class DocumentGenerator:
    """Client for generating invoice and receipt PDFs"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = settings.DOCUMENT_SERVICE_URL
        self.api_key = settings.DOCUMENT_SERVICE_KEY
        self.timeout = settings.DOCUMENT_TIMEOUT
        self.transport = transport

    async def generate_document(self, kind: str, fields: Dict[str, Any]) -> str:
        """
        Render a document and return its durable URL

        Args:
            kind: 'invoice' or 'receipt'
            fields: Flat field record for the template

        Returns:
            Public URL of the generated PDF

        Raises:
            GenerationError: On any rendering, upload or transport failure
        """
        if kind not in DOCUMENT_KINDS:
            raise GenerationError(f"Unknown document type: {kind}")

        try:
            response = await self._invoke(kind, fields)
        except httpx.HTTPError as e:
            raise GenerationError(f"Document service unreachable: {e}")

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}

        if response.status_code >= 400:
            raise GenerationError(
                body.get("error") or f"Document service returned status {response.status_code}"
            )

        pdf_url = body.get("pdfUrl") or body.get("url")
        if not pdf_url:
            raise GenerationError("Document service returned no PDF URL")

        logger.info("Generated %s document: %s", kind, pdf_url)
        return pdf_url

    @retry(
        stop=stop_after_attempt(settings.MAX_RETRIES),
        wait=wait_exponential(multiplier=settings.RETRY_DELAY, min=1, max=10),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
        reraise=True
    )
    async def _invoke(self, kind: str, fields: Dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.post(self.url, json={"type": kind, "data": fields}, headers=headers)
