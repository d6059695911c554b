"""
Invoice and receipt API endpoints
"""
from typing import List

from fastapi import APIRouter, Depends, status

from order_service.api.deps import get_current_user, get_custom_order_service
from order_service.services.auth_client import CurrentUser
from order_service.services.custom_order_service import CustomOrderService
from order_service.schemas.billing import (
    InvoiceCreate,
    InvoiceResponse,
    ReceiptResponse,
    InvoicePaymentResponse,
    InvoiceActionResponse
)
from order_service.schemas.payment import ChargeSessionResponse, PaymentVerifyRequest

router = APIRouter(tags=["invoices"])


@router.post(
    "/invoices",
    response_model=InvoiceActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create invoice"
)
async def create_invoice(
    invoice_data: InvoiceCreate,
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    """
    Create the invoice of a custom order in progress (admin)

    Returns the existing invoice when one was already issued.

    - **custom_order_id**: Custom order ID
    """
    result = await service.create_invoice(user, invoice_data.custom_order_id)
    return InvoiceActionResponse(
        invoice=InvoiceResponse.model_validate(result.invoice),
        warnings=result.warnings,
        replayed=result.replayed
    )


@router.get("/invoices", response_model=List[InvoiceResponse], summary="Get my invoices")
def get_invoices(
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    return [InvoiceResponse.model_validate(i) for i in service.list_invoices(user)]


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse, summary="Get invoice by ID")
def get_invoice(
    invoice_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    return InvoiceResponse.model_validate(service.get_invoice(user, invoice_id))


@router.post("/invoices/{invoice_id}/payments", response_model=ChargeSessionResponse, summary="Begin payment")
def begin_invoice_payment(
    invoice_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    """Open a payment session for the balance (amount minus deposit)"""
    return ChargeSessionResponse.model_validate(service.begin_invoice_payment(user, invoice_id))


@router.post(
    "/invoices/{invoice_id}/payments/verify",
    response_model=InvoicePaymentResponse,
    summary="Verify invoice payment"
)
async def pay_invoice(
    invoice_id: int,
    payment: PaymentVerifyRequest,
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    """
    Verify a balance payment, mark the invoice paid and start delivery

    - **reference**: Reference returned by the payment SDK
    """
    result = await service.pay_invoice(user, invoice_id, payment.reference)
    return InvoicePaymentResponse(
        invoice=InvoiceResponse.model_validate(result.invoice),
        receipt=ReceiptResponse.model_validate(result.receipt) if result.receipt else None,
        warnings=result.warnings,
        replayed=result.replayed
    )


@router.post(
    "/invoices/{invoice_id}/receipt",
    response_model=InvoicePaymentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue receipt"
)
async def create_receipt(
    invoice_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    """
    Issue the receipt of a paid invoice whose automatic receipt failed (admin)

    Returns the existing receipt when one was already issued.
    """
    result = await service.create_receipt(user, invoice_id)
    return InvoicePaymentResponse(
        invoice=InvoiceResponse.model_validate(result.invoice),
        receipt=ReceiptResponse.model_validate(result.receipt),
        warnings=result.warnings,
        replayed=result.replayed
    )


@router.get("/receipts", response_model=List[ReceiptResponse], summary="Get my receipts")
def get_receipts(
    user: CurrentUser = Depends(get_current_user),
    service: CustomOrderService = Depends(get_custom_order_service)
):
    return [ReceiptResponse.model_validate(r) for r in service.list_receipts(user)]
