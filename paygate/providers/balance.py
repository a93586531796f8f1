"""
Account balance provider.

Payments are settled against the payer's stored balance by the calling
application, so there is no external gateway to talk to: the payment is
complete as soon as it is started.
"""

from typing import Optional

from paygate.errors import InvalidRequestError
from paygate.models.enums import PaymentState
from paygate.providers.base import NotificationResult, PaymentProvider, PaymentRequest, PaymentResponse


def split_owner_and_name(identifier: str) -> tuple[str, str]:
    """Split an "owner/name" identifier into its two halves."""
    tokens = (identifier or "").split("/")
    if len(tokens) != 2:
        raise InvalidRequestError(f"wrong token count for ID: {identifier}", provider="Balance")
    return tokens[0], tokens[1]


class BalancePaymentProvider(PaymentProvider):
    @property
    def name(self) -> str:
        return "Balance"

    def pay(self, request: PaymentRequest) -> PaymentResponse:
        request.validate(self.name)
        owner, _ = split_owner_and_name(request.payer_id)
        return PaymentResponse(
            pay_url=request.return_url,
            order_id=f"{owner}/{request.payment_name}",
        )

    def notify(self, body: bytes, order_id: str) -> NotificationResult:
        return NotificationResult.status_only(PaymentState.PAID)

    def get_response_error(self, error: Optional[Exception]) -> str:
        return ""
