"""
Exception hierarchy for payment provider adapters.

Every adapter raises one of these so callers can tell apart a bad
configuration, a rejected initiation, a failed status query and a
malformed attachment without inspecting vendor-specific exceptions.
Unrecognized vendor states are not errors: they come back as
PaymentState.ERROR on the NotificationResult.
"""

from typing import Optional


class PaymentError(Exception):
    """Base exception for payment provider errors."""

    def __init__(self, message: str, provider: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code

    def __str__(self) -> str:
        if self.provider:
            return f"{self.provider}: {self.message}"
        return self.message


class ProviderConfigurationError(PaymentError):
    """Missing or invalid credentials at construction time."""


class ProviderNotConfiguredError(ProviderConfigurationError):
    """An operation was called on a provider built without credentials."""


class InvalidRequestError(PaymentError):
    """The caller's PaymentRequest cannot be sent to the provider."""

    def __init__(self, message: str, provider: str = ""):
        super().__init__(message, provider=provider, status_code=400)


class PaymentInitiationError(PaymentError):
    """The gateway rejected (or failed) the creation of a payment."""


class PaymentQueryError(PaymentError):
    """The gateway could not be queried for the current payment status."""


class PaymentGatewayError(PaymentError):
    """Transport or envelope failure inside a bespoke gateway client."""


class AttachmentDecodeError(PaymentError):
    """A packed attachment string did not have the expected shape."""


class AmountError(PaymentError):
    """A gateway amount could not be parsed."""
