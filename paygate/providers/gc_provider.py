"""
GC payment provider.

The one gateway here with invoicing: once an order is paid, an electronic
invoice can be requested for it. GC does not offer a status query, so
notify decodes the callback body itself.
"""

import logging
from typing import Optional
from urllib.parse import parse_qs

from paygate.clients.gc import GcClient, decode_data, time_id
from paygate.codecs.amount import from_string, to_trimmed_string
from paygate.errors import (
    PaymentGatewayError,
    PaymentInitiationError,
    PaymentQueryError,
    ProviderConfigurationError,
)
from paygate.models.enums import InvoiceType, PaymentState
from paygate.providers.base import (
    InvoiceRequest,
    NotificationResult,
    PaymentProvider,
    PaymentRequest,
    PaymentResponse,
)

logger = logging.getLogger("paygate.providers.gc")

CALLBACK_FIELDS = ("op", "xmpch", "version", "data", "requesttime", "sign")
ORDER_STATE_PAID = "1"
INVOICE_STATE_PENDING = "0"


class GcPaymentProvider(PaymentProvider):
    def __init__(
        self,
        merchant_no: str,
        secret_key: str,
        host: str,
        client: Optional[GcClient] = None,
    ):
        if client is None:
            if not merchant_no or not secret_key or not host:
                raise ProviderConfigurationError("merchant number, secret key and host are required", provider="GC")
            client = GcClient(merchant_no, secret_key, host)
        self.client = client

    @property
    def name(self) -> str:
        return "GC"

    def pay(self, request: PaymentRequest) -> PaymentResponse:
        request.validate(self.name)
        payload = {
            "orderdate": time_id(),
            "orderno": request.payment_name,
            "amount": to_trimmed_string(request.price),
            "xmpch": self.client.merchant_no,
            "body": request.product_display_name,
            "return_url": request.return_url,
            "notify_url": request.notify_url,
            "payerid": "",
            "payername": "",
            "remark1": request.payer_name,
            "remark2": request.product_name,
        }
        try:
            result = self.client.call("OrderCreate", payload)
        except PaymentGatewayError as e:
            raise PaymentInitiationError(f"order create failed: {e.message}", provider=self.name) from e

        return PaymentResponse(pay_url=result.get("payurl", ""), order_id=request.payment_name)

    def notify(self, body: bytes, order_id: str) -> NotificationResult:
        try:
            fields = parse_qs((body or b"").decode("utf-8"))
        except UnicodeDecodeError as e:
            raise PaymentQueryError(f"callback body is not UTF-8: {e}", provider=self.name) from e
        missing = [name for name in CALLBACK_FIELDS if not fields.get(name)]
        if missing:
            raise PaymentQueryError(f"callback missing fields: {', '.join(missing)}", provider=self.name)

        try:
            info = decode_data(fields["data"][0])
        except PaymentGatewayError as e:
            raise PaymentQueryError(e.message, provider=self.name) from e

        order_state = str(info.get("orderstate", ""))
        if order_state != ORDER_STATE_PAID:
            logger.warning("Unmapped order state %r for %s", order_state, info.get("orderno"))
            return NotificationResult.unexpected("gc order state", order_state)

        # GC keeps no free-text field for us, so product context is not recoverable
        return NotificationResult(
            payment_name=info.get("orderno", ""),
            payment_status=PaymentState.PAID,
            price=from_string(info.get("amount", 0)),
            order_id=order_id,
        )

    def get_invoice(self, invoice: InvoiceRequest) -> str:
        payer_type = "1" if invoice.invoice_type == InvoiceType.ORGANIZATION.value else "0"
        payload = {
            "busno": invoice.payment_name,
            "payername": invoice.person_name,
            "idnum": invoice.person_id_card,
            "payertype": payer_type,
            "invoicetitle": invoice.invoice_title,
            "tin": invoice.invoice_tax_id,
            "phone": invoice.person_phone,
            "email": invoice.person_email,
        }
        result = self.client.call("InvoiceEBillByOrder", payload)

        if result.get("state") == INVOICE_STATE_PENDING:
            raise PaymentGatewayError("invoice is being issued", provider=self.name)
        if not result.get("url"):
            raise PaymentGatewayError("invoice URL is empty", provider=self.name)
        return result["url"]
