"""PayPal Orders v2 REST client."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import requests

from paygate.clients.rest import CachedToken, TokenRestClient
from paygate.errors import PaymentGatewayError

PRODUCTION_ENDPOINT = "https://api-m.paypal.com"
SANDBOX_ENDPOINT = "https://api-m.sandbox.paypal.com"


class PaypalClient(TokenRestClient):
    gateway_name = "PayPal"

    def __init__(
        self,
        client_id: str,
        secret: str,
        sandbox: bool = False,
        session: Optional[requests.Session] = None,
    ):
        super().__init__(SANDBOX_ENDPOINT if sandbox else PRODUCTION_ENDPOINT, session=session)
        self.client_id = client_id
        self.secret = secret

    def _login(self) -> CachedToken:
        response = self._send(
            "POST",
            f"{self.endpoint}/v1/oauth2/token",
            auth=(self.client_id, self.secret),
            data={"grant_type": "client_credentials"},
            headers={"Accept": "application/json"},
        )
        body = self._json(response)
        if not body.get("access_token"):
            raise PaymentGatewayError(
                body.get("error_description") or "invalid token response",
                provider=self.gateway_name,
                status_code=response.status_code,
            )
        expires_in = int(body.get("expires_in") or 0)
        return CachedToken(
            token=body["access_token"],
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        )

    def create_order(self, payload: dict[str, Any]) -> tuple[int, dict[str, Any]]:
        return self.call("POST", "/v2/checkout/orders", payload=payload)

    def capture_order(self, order_id: str) -> tuple[int, dict[str, Any]]:
        return self.call("POST", f"/v2/checkout/orders/{order_id}/capture", payload={})

    def order_detail(self, order_id: str) -> tuple[int, dict[str, Any]]:
        return self.call("GET", f"/v2/checkout/orders/{order_id}")
