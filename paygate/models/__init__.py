from paygate.models.enums import InvoiceType, PaymentEnv, PaymentState

__all__ = [
    "InvoiceType",
    "PaymentEnv",
    "PaymentState",
]
