"""Enumerations for the payment gateway domain model."""

from enum import Enum


class PaymentState(str, Enum):
    """Normalized payment states every provider maps into."""

    CREATED = "Created"
    PAID = "Paid"
    CANCELED = "Canceled"
    TIMEOUT = "Timeout"
    ERROR = "Error"


class PaymentEnv(str, Enum):
    """Client environment hints that change how a payment is initiated."""

    DEFAULT = ""
    WECHAT_BROWSER = "WechatBrowser"


class InvoiceType(str, Enum):
    """Invoice recipient types."""

    INDIVIDUAL = "Individual"
    ORGANIZATION = "Organization"
