"""
Payment endpoints.

POST /payments/{provider}/pay                 : Start a payment.
POST /payments/{provider}/notify/{order_id}   : Gateway webhook; answers with the gateway's ack token.
GET  /payments/{provider}/orders/{order_id}   : Poll the normalized status of an order.
POST /payments/{provider}/invoices            : Request an invoice for a paid order.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from paygate.errors import (
    AmountError,
    AttachmentDecodeError,
    InvalidRequestError,
    PaymentError,
    PaymentGatewayError,
    PaymentInitiationError,
    PaymentQueryError,
    ProviderConfigurationError,
)
from paygate.providers.base import InvoiceRequest, PaymentProvider, PaymentRequest
from paygate.providers.registry import build_provider

logger = logging.getLogger("paygate.api.payments")

router = APIRouter(prefix="/payments", tags=["payments"])

_providers: dict[str, PaymentProvider] = {}


def get_provider(provider_type: str) -> PaymentProvider:
    """Build (once) and return the provider for a type name."""
    key = provider_type.lower()
    if key not in _providers:
        try:
            _providers[key] = build_provider(provider_type)
        except ProviderConfigurationError as e:
            raise HTTPException(status_code=503, detail=str(e)) from e
    return _providers[key]


class PayBody(BaseModel):
    product_name: str
    product_display_name: str
    payment_name: str = Field(min_length=1)
    price: float = Field(ge=0)
    currency: str
    return_url: str = ""
    notify_url: str = ""
    payer_id: str = ""
    payer_name: str = ""
    payer_email: str = ""
    payment_env: str = ""
    product_description: str = ""
    product_image: str = ""


class PayResult(BaseModel):
    pay_url: str
    order_id: str
    attach_info: dict[str, Any] = {}

    model_config = {"from_attributes": True}


class NotifyResult(BaseModel):
    payment_name: str
    payment_status: str
    notify_message: str
    product_name: str
    product_display_name: str
    provider_name: str
    price: float
    currency: str
    order_id: str


class InvoiceBody(BaseModel):
    payment_name: str
    person_name: str = ""
    person_id_card: str = ""
    person_email: str = ""
    person_phone: str = ""
    invoice_type: str = ""
    invoice_title: str = ""
    invoice_tax_id: str = ""


class InvoiceResult(BaseModel):
    invoice: str


def _to_http(e: PaymentError) -> HTTPException:
    if isinstance(e, InvalidRequestError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, ProviderConfigurationError):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, (
        PaymentInitiationError,
        PaymentQueryError,
        PaymentGatewayError,
        AttachmentDecodeError,
        AmountError,
    )):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


@router.post("/{provider_type}/pay", response_model=PayResult, status_code=201)
def pay(body: PayBody, provider: PaymentProvider = Depends(get_provider)):
    """Start a payment and return where to send the payer."""
    request = PaymentRequest(provider_name=provider.name, **body.model_dump())
    try:
        response = provider.pay(request)
    except PaymentError as e:
        logger.error("Pay failed for %s via %s: %s", body.payment_name, provider.name, e)
        raise _to_http(e) from e
    return PayResult.model_validate(response)


@router.post("/{provider_type}/notify/{order_id}", response_class=PlainTextResponse)
async def notify(order_id: str, request: Request, provider: PaymentProvider = Depends(get_provider)):
    """
    Gateway webhook.

    The status is resolved by querying the gateway; the response body is
    whatever acknowledgement the gateway expects, so its retry logic can
    tell whether we processed the notification.
    """
    body = await request.body()
    error: Optional[Exception] = None
    try:
        result = await run_in_threadpool(provider.notify, body, order_id)
        logger.info(
            "Notification for %s via %s: %s %s",
            order_id,
            provider.name,
            result.payment_status.value,
            result.notify_message,
        )
    except PaymentError as e:
        logger.error("Notification for %s via %s failed: %s", order_id, provider.name, e)
        error = e
    return PlainTextResponse(provider.get_response_error(error))


@router.get("/{provider_type}/orders/{order_id}", response_model=NotifyResult)
def get_order_status(order_id: str, provider: PaymentProvider = Depends(get_provider)):
    """Poll the gateway for the normalized status of an order."""
    try:
        result = provider.notify(b"", order_id)
    except PaymentError as e:
        raise _to_http(e) from e
    return NotifyResult(
        payment_name=result.payment_name,
        payment_status=result.payment_status.value,
        notify_message=result.notify_message,
        product_name=result.product_name,
        product_display_name=result.product_display_name,
        provider_name=result.provider_name,
        price=result.price,
        currency=result.currency,
        order_id=result.order_id,
    )


@router.post("/{provider_type}/invoices", response_model=InvoiceResult)
def create_invoice(body: InvoiceBody, provider: PaymentProvider = Depends(get_provider)):
    """Request an invoice; an empty invoice means the gateway has no invoicing."""
    try:
        invoice = provider.get_invoice(InvoiceRequest(**body.model_dump()))
    except PaymentError as e:
        raise _to_http(e) from e
    return InvoiceResult(invoice=invoice)
