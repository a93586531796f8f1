"""
Dummy payment provider for development and tests.

Every payment "succeeds" immediately: the payer is sent straight back to
the return URL and any notification resolves to Paid.
"""

from typing import Optional

from paygate.models.enums import PaymentState
from paygate.providers.base import NotificationResult, PaymentProvider, PaymentRequest, PaymentResponse


class DummyPaymentProvider(PaymentProvider):
    @property
    def name(self) -> str:
        return "Dummy"

    def pay(self, request: PaymentRequest) -> PaymentResponse:
        return PaymentResponse(pay_url=request.return_url)

    def notify(self, body: bytes, order_id: str) -> NotificationResult:
        return NotificationResult.status_only(PaymentState.PAID)

    def get_response_error(self, error: Optional[Exception]) -> str:
        return ""
