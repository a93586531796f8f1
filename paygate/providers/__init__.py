from paygate.providers.base import (
    InvoiceRequest,
    NotificationResult,
    PaymentProvider,
    PaymentRequest,
    PaymentResponse,
)

__all__ = [
    "InvoiceRequest",
    "NotificationResult",
    "PaymentProvider",
    "PaymentRequest",
    "PaymentResponse",
]
