"""
Stripe Checkout provider.

Each payment creates a throwaway product and price, then a Checkout
Session the payer is redirected to. Status is read back from the session
(session status x payment status), and the amount from its PaymentIntent.

Uses a per-instance StripeClient, so several accounts can live in one
process without touching the global stripe.api_key.
"""

import logging
import time
from typing import Optional

import stripe

from paygate.codecs.amount import to_major, to_minor
from paygate.codecs.attachment import join_attachment, parse_attachment_lenient
from paygate.errors import PaymentInitiationError, PaymentQueryError, ProviderConfigurationError
from paygate.models.enums import PaymentState
from paygate.providers.base import NotificationResult, PaymentProvider, PaymentRequest, PaymentResponse

logger = logging.getLogger("paygate.providers.stripe")

CHECKOUT_EXPIRY_SECONDS = 30 * 60
METADATA_KEY = "product_description"


class StripePaymentProvider(PaymentProvider):
    def __init__(
        self,
        secret_key: str,
        publishable_key: str = "",
        client: Optional[stripe.StripeClient] = None,
    ):
        if not secret_key and client is None:
            raise ProviderConfigurationError("secret key is required", provider="Stripe")
        self.publishable_key = publishable_key
        self._client = client or stripe.StripeClient(secret_key)

    @property
    def name(self) -> str:
        return "Stripe"

    def pay(self, request: PaymentRequest) -> PaymentResponse:
        request.validate(self.name)
        description = join_attachment(request.product_name, request.product_display_name, request.provider_name)
        unit_amount = to_minor(request.price)

        try:
            product = self._client.products.create(params={
                "name": request.product_display_name,
                "description": description,
                "default_price_data": {"currency": request.currency, "unit_amount": unit_amount},
            })
            price = self._client.prices.create(params={
                "currency": request.currency,
                "unit_amount": unit_amount,
                "product": product.id,
            })
            session = self._client.checkout.sessions.create(params={
                "line_items": [{"price": price.id, "quantity": 1}],
                "mode": "payment",
                "success_url": request.return_url,
                "cancel_url": request.return_url,
                "client_reference_id": request.payment_name,
                "expires_at": int(time.time()) + CHECKOUT_EXPIRY_SECONDS,
                "metadata": {METADATA_KEY: description},
            })
        except stripe.StripeError as e:
            raise PaymentInitiationError(f"checkout session creation failed: {e}", provider=self.name) from e

        logger.info("Created checkout session %s for %s", session.id, request.payment_name)
        return PaymentResponse(pay_url=session.url, order_id=session.id)

    def notify(self, body: bytes, order_id: str) -> NotificationResult:
        try:
            session = self._client.checkout.sessions.retrieve(order_id)
        except stripe.StripeError as e:
            raise PaymentQueryError(f"checkout session lookup failed: {e}", provider=self.name) from e

        # The session must be complete before its payment status means anything
        if session.status == "open":
            return NotificationResult.status_only(PaymentState.CREATED)
        if session.status == "expired":
            return NotificationResult.status_only(PaymentState.TIMEOUT)
        if session.status != "complete":
            logger.warning("Unmapped checkout status %r for %s", session.status, order_id)
            return NotificationResult.unexpected("stripe checkout status", session.status)

        if session.payment_status == "unpaid":
            return NotificationResult.status_only(PaymentState.CREATED)
        if session.payment_status != "paid":
            logger.warning("Unmapped checkout payment status %r for %s", session.payment_status, order_id)
            return NotificationResult.unexpected("stripe checkout payment status", session.payment_status)

        intent_id = getattr(session.payment_intent, "id", session.payment_intent)
        try:
            intent = self._client.payment_intents.retrieve(intent_id)
        except stripe.StripeError as e:
            raise PaymentQueryError(f"payment intent lookup failed: {e}", provider=self.name) from e

        metadata = session.metadata or {}
        attachment = parse_attachment_lenient(metadata.get(METADATA_KEY, ""))

        return NotificationResult(
            payment_name=session.client_reference_id,
            payment_status=PaymentState.PAID,
            product_name=attachment.product_name,
            product_display_name=attachment.product_display_name,
            provider_name=attachment.provider_name,
            price=to_major(intent.amount),
            currency=str(intent.currency),
            order_id=order_id,
        )
