"""
Airwallex hosted checkout provider.

Intent status is checked first; only a SUCCEEDED intent has its latest
payment attempt inspected, and only a PAID/SETTLED attempt counts as
Paid. Authorized-but-not-captured attempts stay Created.
"""

import logging
from typing import Optional

from paygate.clients.airwallex import AirwallexClient
from paygate.codecs.amount import from_string
from paygate.codecs.attachment import parse_attachment_lenient
from paygate.errors import (
    PaymentGatewayError,
    PaymentInitiationError,
    PaymentQueryError,
    ProviderConfigurationError,
)
from paygate.models.enums import PaymentState
from paygate.providers.base import NotificationResult, PaymentProvider, PaymentRequest, PaymentResponse

logger = logging.getLogger("paygate.providers.airwallex")

INTENT_STATUS_MAP = {
    "PENDING": PaymentState.CREATED,
    "REQUIRES_PAYMENT_METHOD": PaymentState.CREATED,
    "REQUIRES_CUSTOMER_ACTION": PaymentState.CREATED,
    "REQUIRES_CAPTURE": PaymentState.CREATED,
    "CANCELLED": PaymentState.CANCELED,
    "EXPIRED": PaymentState.TIMEOUT,
    "SUCCEEDED": PaymentState.PAID,
}

ATTEMPT_STATUS_MAP = {
    "CANCELLED": PaymentState.CREATED,
    "EXPIRED": PaymentState.CREATED,
    "RECEIVED": PaymentState.CREATED,
    "AUTHENTICATION_REDIRECTED": PaymentState.CREATED,
    "AUTHORIZED": PaymentState.CREATED,
    "CAPTURE_REQUESTED": PaymentState.CREATED,
    "PAID": PaymentState.PAID,
    "SETTLED": PaymentState.PAID,
}


class AirwallexPaymentProvider(PaymentProvider):
    def __init__(
        self,
        client_id: str,
        api_key: str,
        sandbox: bool = False,
        client: Optional[AirwallexClient] = None,
    ):
        if client is None:
            if not client_id or not api_key:
                raise ProviderConfigurationError("client id and API key are required", provider="Airwallex")
            client = AirwallexClient(client_id, api_key, sandbox=sandbox)
        self.client = client

    @property
    def name(self) -> str:
        return "Airwallex"

    def pay(self, request: PaymentRequest) -> PaymentResponse:
        request.validate(self.name)
        try:
            intent = self.client.create_intent(request)
        except PaymentGatewayError as e:
            raise PaymentInitiationError(f"failed to create payment intent: {e.message}", provider=self.name) from e

        logger.info("Created payment intent %s for %s", intent.id, request.payment_name)
        return PaymentResponse(
            pay_url=self.client.checkout_url(intent, request),
            order_id=intent.merchant_order_id,
        )

    def notify(self, body: bytes, order_id: str) -> NotificationResult:
        try:
            intent = self.client.get_intent_by_order_id(order_id)
        except PaymentGatewayError as e:
            raise PaymentQueryError(f"failed to get payment intent: {e.message}", provider=self.name) from e

        state = INTENT_STATUS_MAP.get(intent.status)
        if state is None:
            logger.warning("Unmapped intent status %r for %s", intent.status, order_id)
            return NotificationResult.unexpected("airwallex checkout status", intent.status)
        if state is not PaymentState.PAID:
            return NotificationResult.status_only(state)

        if intent.payment_status:
            attempt_state = ATTEMPT_STATUS_MAP.get(intent.payment_status)
            if attempt_state is None:
                logger.warning("Unmapped payment attempt status %r for %s", intent.payment_status, order_id)
                return NotificationResult.unexpected("airwallex checkout payment status", intent.payment_status)
            if attempt_state is not PaymentState.PAID:
                return NotificationResult.status_only(attempt_state)

        attachment = parse_attachment_lenient(str(intent.metadata.get("description", "")))
        return NotificationResult(
            payment_name=intent.merchant_order_id,
            payment_status=PaymentState.PAID,
            product_name=attachment.product_name,
            product_display_name=attachment.product_display_name,
            provider_name=attachment.provider_name,
            price=from_string(intent.amount),
            currency=intent.currency,
            order_id=intent.merchant_order_id,
        )
