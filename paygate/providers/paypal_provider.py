"""
PayPal Checkout (Orders v2) provider.

The order is created with intent CAPTURE; the payer approves it on PayPal
and comes back to the return URL. Resolving the notification captures the
order (a no-op if it was already captured) and then reads the order
details, so calling notify repeatedly is safe.

The attachment is required here: PayPal is the only place the product
context survives, so a malformed description is a hard error.
"""

import logging
import secrets
import string
from typing import Any, Optional

from paygate.clients.paypal import PaypalClient
from paygate.codecs.amount import from_string, to_major_string
from paygate.codecs.attachment import join_attachment, parse_attachment
from paygate.errors import (
    PaymentGatewayError,
    PaymentInitiationError,
    PaymentQueryError,
    ProviderConfigurationError,
)
from paygate.models.enums import PaymentState
from paygate.providers.base import NotificationResult, PaymentProvider, PaymentRequest, PaymentResponse

logger = logging.getLogger("paygate.providers.paypal")

BRAND_NAME = "paygate"
LOCALE = "en-PT"
REFERENCE_ALPHABET = string.ascii_letters + string.digits

ORDER_STATUS_MAP = {
    "CREATED": PaymentState.CREATED,
    "SAVED": PaymentState.CREATED,
    "APPROVED": PaymentState.CREATED,
    "PAYER_ACTION_REQUIRED": PaymentState.CREATED,
    "VOIDED": PaymentState.CANCELED,
    "COMPLETED": PaymentState.PAID,
}


def random_reference(length: int = 16) -> str:
    return "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(length))


def _first_issue(body: dict[str, Any]) -> tuple[str, str]:
    """(issue, description) of the first error detail in a PayPal error body."""
    details = body.get("details") or []
    if details:
        return details[0].get("issue", ""), details[0].get("description", "")
    return body.get("name", ""), body.get("message", "")


class PaypalPaymentProvider(PaymentProvider):
    def __init__(
        self,
        client_id: str,
        secret: str,
        sandbox: bool = False,
        brand_name: str = BRAND_NAME,
        client: Optional[PaypalClient] = None,
    ):
        if client is None:
            if not client_id or not secret:
                raise ProviderConfigurationError("client id and secret are required", provider="PayPal")
            client = PaypalClient(client_id, secret, sandbox=sandbox)
        self.client = client
        self.brand_name = brand_name

    @property
    def name(self) -> str:
        return "PayPal"

    def pay(self, request: PaymentRequest) -> PaymentResponse:
        request.validate(self.name)
        payload = {
            "intent": "CAPTURE",
            "purchase_units": [{
                "reference_id": random_reference(),
                "custom_id": request.payment_name,
                "amount": {
                    "currency_code": request.currency,
                    "value": to_major_string(request.price),
                },
                "description": join_attachment(
                    request.product_name, request.product_display_name, request.provider_name
                ),
            }],
            "application_context": {
                "brand_name": self.brand_name,
                "locale": LOCALE,
                "return_url": request.return_url,
                "cancel_url": request.return_url,
            },
        }

        try:
            status, body = self.client.create_order(payload)
        except PaymentGatewayError as e:
            raise PaymentInitiationError(f"create order failed: {e.message}", provider=self.name) from e
        if status >= 300:
            issue, description = _first_issue(body)
            raise PaymentInitiationError(
                f"create order failed: {issue}: {description}", provider=self.name, status_code=status
            )

        approve = next((link["href"] for link in body.get("links", []) if link.get("rel") == "approve"), None)
        if not approve:
            raise PaymentInitiationError("order created without an approve link", provider=self.name)

        logger.info("Created order %s for %s", body.get("id"), request.payment_name)
        return PaymentResponse(pay_url=approve, order_id=body.get("id", ""))

    def notify(self, body: bytes, order_id: str) -> NotificationResult:
        try:
            status, capture = self.client.capture_order(order_id)
        except PaymentGatewayError as e:
            raise PaymentQueryError(f"capture failed: {e.message}", provider=self.name) from e
        if status >= 300:
            issue, description = _first_issue(capture)
            if issue == "ORDER_NOT_APPROVED":
                return NotificationResult.status_only(PaymentState.CANCELED, description)
            # An already-captured order falls through to the detail lookup
            if issue != "ORDER_ALREADY_CAPTURED":
                raise PaymentQueryError(description or issue, provider=self.name, status_code=status)

        try:
            status, detail = self.client.order_detail(order_id)
        except PaymentGatewayError as e:
            raise PaymentQueryError(f"order detail failed: {e.message}", provider=self.name) from e
        if status >= 300:
            issue, description = _first_issue(detail)
            if issue == "ORDER_NOT_APPROVED":
                return NotificationResult.status_only(PaymentState.CANCELED, description)
            raise PaymentQueryError(description or issue, provider=self.name, status_code=status)

        units = detail.get("purchase_units") or [{}]
        unit = units[0]
        amount = unit.get("amount") or {}
        attachment = parse_attachment(unit.get("description", ""))

        order_status = detail.get("status")
        state = ORDER_STATUS_MAP.get(order_status)
        message = ""
        if state is None:
            logger.warning("Unmapped order status %r for %s", order_status, order_id)
            state = PaymentState.ERROR
            message = f"unexpected paypal order status: {order_status}"

        return NotificationResult(
            payment_name=unit.get("custom_id") or detail.get("id", order_id),
            payment_status=state,
            notify_message=message,
            product_name=attachment.product_name,
            product_display_name=attachment.product_display_name,
            provider_name=attachment.provider_name,
            price=from_string(amount.get("value")),
            currency=amount.get("currency_code", ""),
            order_id=order_id,
        )
