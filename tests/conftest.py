"""Shared test fixtures."""

from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from paygate.providers.base import PaymentRequest


def make_response(payload: Optional[dict[str, Any]] = None, status_code: int = 200) -> MagicMock:
    """A stand-in for requests.Response carrying a JSON body."""
    response = MagicMock()
    response.status_code = status_code
    response.content = b"{}" if payload is not None else b""
    response.json.return_value = payload
    response.text = str(payload)
    return response


@pytest.fixture
def payment_request() -> PaymentRequest:
    return PaymentRequest(
        provider_name="provider_stripe",
        product_name="product_pro",
        product_display_name="Pro Plan",
        payment_name="order_1",
        price=99.99,
        currency="USD",
        return_url="https://shop.example/return",
        notify_url="https://shop.example/notify",
        payer_id="acme/alice",
        payer_name="Alice",
        payer_email="alice@example.com",
    )
