"""
Airwallex payment acceptance client.

Airwallex ships no Python SDK, so this covers the three calls the
provider needs: create a PaymentIntent, look one up by merchant order id,
and build the hosted checkout URL.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import urlencode

import requests

from paygate.clients.rest import CachedToken, TokenRestClient, parse_expiry
from paygate.codecs.attachment import join_attachment
from paygate.errors import PaymentGatewayError
from paygate.providers.base import PaymentRequest

logger = logging.getLogger("paygate.clients.airwallex")

PRODUCTION_ENDPOINT = "https://api.airwallex.com/api/v1"
SANDBOX_ENDPOINT = "https://api-demo.airwallex.com/api/v1"
PRODUCTION_CHECKOUT = "https://checkout.airwallex.com/#/standalone/checkout?"
SANDBOX_CHECKOUT = "https://checkout-demo.airwallex.com/#/standalone/checkout?"

DESCRIPTOR_MAX_LENGTH = 32
BLANK_LOGO = "data:image/gif;base64,R0lGODlhAQABAAD/ACwAAAAAAQABAAACADs="


@dataclass
class CreatedIntent:
    id: str
    client_secret: str
    merchant_order_id: str


@dataclass
class IntentInfo:
    id: str
    status: str
    amount: Any
    currency: str
    merchant_order_id: str
    descriptor: str = ""
    payment_status: str = ""  # status of latest_payment_attempt, if any
    metadata: dict[str, Any] = field(default_factory=dict)


class AirwallexClient(TokenRestClient):
    gateway_name = "Airwallex"

    def __init__(
        self,
        client_id: str,
        api_key: str,
        sandbox: bool = False,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(SANDBOX_ENDPOINT if sandbox else PRODUCTION_ENDPOINT, session=session)
        self.client_id = client_id
        self.api_key = api_key
        self.checkout_base = SANDBOX_CHECKOUT if sandbox else PRODUCTION_CHECKOUT

    def _login(self) -> CachedToken:
        response = self._send(
            "POST",
            f"{self.endpoint}/authentication/login",
            headers={"x-client-id": self.client_id, "x-api-key": self.api_key},
            json={},
        )
        body = self._json(response)
        if not body.get("token"):
            raise PaymentGatewayError("invalid token response", provider=self.gateway_name, status_code=response.status_code)
        return CachedToken(token=body["token"], expires_at=parse_expiry(body.get("expires_at")))

    def create_intent(self, request: PaymentRequest) -> CreatedIntent:
        description = join_attachment(request.product_name, request.product_display_name, request.provider_name)
        order_id = request.payment_name
        payload = {
            "currency": request.currency,
            "amount": request.price,
            "merchant_order_id": order_id,
            "request_id": order_id,
            "descriptor": description[:DESCRIPTOR_MAX_LENGTH].replace("\x00", ""),
            "metadata": {"description": description},
            "order": {
                "products": [{
                    "name": request.product_display_name,
                    "quantity": 1,
                    "desc": request.product_description,
                    "image_url": request.product_image,
                }],
            },
            "customer": {
                "merchant_customer_id": request.payer_id,
                "email": request.payer_email,
                "first_name": request.payer_name,
                "last_name": request.payer_name,
            },
        }
        body = self.call_ok("POST", "/pa/payment_intents/create", payload=payload)
        try:
            return CreatedIntent(
                id=body["id"],
                client_secret=body["client_secret"],
                merchant_order_id=body["merchant_order_id"],
            )
        except KeyError as e:
            raise PaymentGatewayError(f"payment intent response missing {e}", provider=self.gateway_name) from e

    def get_intent_by_order_id(self, order_id: str) -> IntentInfo:
        body = self.call_ok("GET", "/pa/payment_intents/", params={"merchant_order_id": order_id})
        items = body.get("items") or []
        if not items:
            raise PaymentGatewayError(f"no payment intent found for order id: {order_id}", provider=self.gateway_name)

        intent = items[0]
        attempt = intent.get("latest_payment_attempt") or {}
        return IntentInfo(
            id=intent.get("id", ""),
            status=intent.get("status", ""),
            amount=intent.get("amount"),
            currency=intent.get("currency", ""),
            merchant_order_id=intent.get("merchant_order_id", order_id),
            descriptor=intent.get("descriptor", ""),
            payment_status=attempt.get("status", ""),
            metadata=intent.get("metadata") or {},
        )

    def checkout_url(self, intent: CreatedIntent, request: PaymentRequest) -> str:
        query = urlencode({
            "intent_id": intent.id,
            "client_secret": intent.client_secret,
            "mode": "payment",
            "currency": request.currency,
            "amount": request.price,
            "requiredBillingContactFields": '["address"]',
            "successUrl": request.return_url,
            "failUrl": request.return_url,
            "logoUrl": BLANK_LOGO,
        })
        return f"{self.checkout_base}{query}"
