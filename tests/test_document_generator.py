"""Tests for the PDF document client."""

import json
from decimal import Decimal
from types import SimpleNamespace

import httpx
import pytest

from order_service.errors import GenerationError
from order_service.services.document_generator import (
    DocumentGenerator,
    format_naira,
    invoice_fields,
)


def generator_with(handler) -> DocumentGenerator:
    return DocumentGenerator(transport=httpx.MockTransport(handler))


class TestFields:
    def test_format_naira(self):
        assert format_naira(12500) == "12,500"
        assert format_naira(Decimal("12500.5")) == "12,500.50"

    def test_invoice_balance_subtracts_deposit(self):
        custom_order = SimpleNamespace(
            id=4, full_name="Ada Obi", fabric="Lace", style="Iro and buba",
            address="Lagos", deposit=Decimal("5000.00"),
        )
        fields = invoice_fields("INV1", custom_order, Decimal("45000"))
        assert fields["AMOUNT"] == "45,000"
        assert fields["DEPOSIT"] == "5,000"
        assert fields["BALANCE"] == "40,000"
        assert fields["ORDERID"] == "4"


class TestGenerateDocument:
    async def test_returns_pdf_url(self):
        captured = {}

        def handler(request):
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"pdfUrl": "https://files.test/receipt.pdf"})

        url = await generator_with(handler).generate_document("receipt", {"ORDERID": "1"})
        assert url == "https://files.test/receipt.pdf"
        assert captured["body"] == {"type": "receipt", "data": {"ORDERID": "1"}}

    async def test_unknown_kind(self):
        with pytest.raises(GenerationError):
            await generator_with(lambda r: httpx.Response(200)).generate_document("quote", {})

    async def test_renderer_failure(self):
        def handler(request):
            return httpx.Response(500, json={"error": "template missing"})

        with pytest.raises(GenerationError, match="template missing"):
            await generator_with(handler).generate_document("invoice", {})

    async def test_missing_url(self):
        with pytest.raises(GenerationError, match="no PDF URL"):
            await generator_with(lambda r: httpx.Response(200, json={})).generate_document("invoice", {})

    async def test_non_object_response(self):
        with pytest.raises(GenerationError, match="no PDF URL"):
            await generator_with(lambda r: httpx.Response(200, json=[])).generate_document("receipt", {})

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ReadError("reset", request=request)

        with pytest.raises(GenerationError, match="unreachable"):
            await generator_with(handler).generate_document("invoice", {})
