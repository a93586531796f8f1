"""
Abstract payment provider interface.

All payment gateways (Stripe, Alipay, WeChat Pay, PayPal, Airwallex, GC)
implement this interface, so the calling application can start a payment,
resolve a notification and fetch an invoice without branching on which
gateway is in use.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from paygate.errors import InvalidRequestError, ProviderNotConfiguredError
from paygate.models.enums import PaymentState


@dataclass
class PaymentRequest:
    """Request to start a payment."""

    provider_name: str
    product_name: str
    product_display_name: str
    payment_name: str  # Caller-unique; the key notifications are correlated by
    price: float  # Major units
    currency: str  # ISO 4217
    return_url: str = ""
    notify_url: str = ""
    payer_id: str = ""
    payer_name: str = ""
    payer_email: str = ""
    payment_env: str = ""  # e.g. "WechatBrowser"
    product_description: str = ""
    product_image: str = ""

    def validate(self, provider: str = "") -> None:
        if not self.payment_name:
            raise InvalidRequestError("payment_name is required", provider=provider)
        if self.price is None or self.price < 0:
            raise InvalidRequestError(f"invalid price: {self.price}", provider=provider)


@dataclass
class PaymentResponse:
    """What the caller needs to send the payer on to the gateway."""

    pay_url: str = ""  # Empty when the flow needs no redirect
    order_id: str = ""
    attach_info: dict[str, Any] = field(default_factory=dict)


@dataclass
class NotificationResult:
    """Normalized outcome of a notification or status query."""

    payment_status: PaymentState
    payment_name: str = ""
    notify_message: str = ""
    product_name: str = ""
    product_display_name: str = ""
    provider_name: str = ""
    price: float = 0.0
    currency: str = ""
    order_id: str = ""

    @classmethod
    def status_only(cls, state: PaymentState, message: str = "") -> "NotificationResult":
        return cls(payment_status=state, notify_message=message)

    @classmethod
    def unexpected(cls, what: str, value: Any) -> "NotificationResult":
        """Error result for a vendor state we have no mapping for."""
        return cls(payment_status=PaymentState.ERROR, notify_message=f"unexpected {what}: {value}")


@dataclass
class InvoiceRequest:
    """Who an invoice should be issued to."""

    payment_name: str
    person_name: str = ""
    person_id_card: str = ""
    person_email: str = ""
    person_phone: str = ""
    invoice_type: str = ""  # "Individual" or "Organization"
    invoice_title: str = ""
    invoice_tax_id: str = ""


class PaymentProvider(ABC):
    """Abstract base class for payment providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g. 'Stripe')."""
        ...

    @property
    def is_configured(self) -> bool:
        return True

    @abstractmethod
    def pay(self, request: PaymentRequest) -> PaymentResponse:
        """
        Start a payment with the gateway.

        Called once per attempt; nothing is retried here.

        Raises:
            InvalidRequestError: If the request cannot be sent to this gateway.
            PaymentInitiationError: If the gateway rejected the payment.
        """
        ...

    @abstractmethod
    def notify(self, body: bytes, order_id: str) -> NotificationResult:
        """
        Resolve the current status of an order.

        Prefers an active query to the gateway over trusting the callback
        body. Safe to call repeatedly: an unchanged gateway-side state gives
        the same normalized status every time.

        Raises:
            PaymentQueryError: If the gateway could not be queried.
        """
        ...

    def get_invoice(self, invoice: InvoiceRequest) -> str:
        """Invoice URL or reference; empty when the gateway has no invoicing."""
        return ""

    def get_response_error(self, error: Optional[Exception]) -> str:
        """Body the gateway's webhook expects back, depending on whether handling failed."""
        return "fail" if error is not None else "success"

    def _ensure_configured(self) -> None:
        if not self.is_configured:
            raise ProviderNotConfiguredError("provider was built without credentials", provider=self.name)
