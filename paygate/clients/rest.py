"""
Minimal JSON-over-HTTPS client for gateways that authenticate with a
short-lived bearer token (Airwallex, PayPal).

The token is cached per client. Refreshing it is guarded by a lock held
only for the check-and-maybe-refresh; the payment calls themselves run
outside the lock.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import requests

from paygate.errors import PaymentGatewayError

logger = logging.getLogger("paygate.clients.rest")

DEFAULT_TIMEOUT = 15.0
EXPIRY_SKEW = timedelta(seconds=30)


@dataclass
class CachedToken:
    token: str
    expires_at: datetime

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now + EXPIRY_SKEW < self.expires_at


def parse_expiry(value: Optional[str]) -> datetime:
    """Parse an ISO 8601 expiry; anything unparseable counts as already expired."""
    if not value:
        return datetime.now(timezone.utc)
    normalized = value.replace("Z", "+00:00")
    if len(normalized) > 5 and normalized[-5] in "+-" and normalized[-3] != ":":
        normalized = f"{normalized[:-2]}:{normalized[-2:]}"  # +0000 -> +00:00
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        logger.warning("Unparseable token expiry %r; token will not be reused", value)
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class TokenRestClient(ABC):
    """Base class for bearer-token JSON APIs."""

    gateway_name = "gateway"

    def __init__(
        self,
        endpoint: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._token: Optional[CachedToken] = None
        self._token_lock = threading.Lock()

    @abstractmethod
    def _login(self) -> CachedToken:
        """Obtain a fresh token from the gateway."""
        ...

    def get_token(self) -> str:
        with self._token_lock:
            if self._token is None or not self._token.is_valid():
                logger.info("Refreshing %s access token", self.gateway_name)
                self._token = self._login()
            return self._token.token

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            return self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise PaymentGatewayError(f"{method} {url} failed: {e}", provider=self.gateway_name) from e

    @staticmethod
    def _json(response: requests.Response) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError:
            return {"raw": response.text}
        return payload if isinstance(payload, dict) else {"items": payload}

    def call(
        self,
        method: str,
        path: str,
        payload: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> tuple[int, dict[str, Any]]:
        """Authenticated call; returns the status code and decoded body without judging either."""
        headers = {
            "Authorization": f"Bearer {self.get_token()}",
            "Content-Type": "application/json",
        }
        response = self._send(
            method,
            f"{self.endpoint}{path}",
            headers=headers,
            json=payload if method != "GET" else None,
            params=params,
        )
        return response.status_code, self._json(response)

    def call_ok(
        self,
        method: str,
        path: str,
        payload: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> dict[str, Any]:
        """Authenticated call that raises PaymentGatewayError on a non-2xx status."""
        status, body = self.call(method, path, payload=payload, params=params)
        if status >= 400:
            message = body.get("message") or body.get("error_description") or body.get("name") or "request failed"
            raise PaymentGatewayError(
                f"{method} {path} returned {status}: {message}",
                provider=self.gateway_name,
                status_code=status,
            )
        return body
