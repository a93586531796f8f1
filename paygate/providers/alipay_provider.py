"""
Alipay page-pay provider (public key certificate mode).

The payer is redirected to the Alipay cashier page. Notifications are
resolved by querying the trade by out_trade_no (our payment name) rather
than trusting the callback form.
"""

import logging
from typing import Optional

from alipay import DCAliPay
from alipay.exceptions import AliPayException, AliPayValidationError

from paygate.codecs.amount import from_string, to_major_string
from paygate.codecs.attachment import join_attachment, parse_attachment_lenient
from paygate.errors import PaymentInitiationError, PaymentQueryError, ProviderConfigurationError
from paygate.models.enums import PaymentState
from paygate.providers.base import NotificationResult, PaymentProvider, PaymentRequest, PaymentResponse

logger = logging.getLogger("paygate.providers.alipay")

PRODUCTION_GATEWAY = "https://openapi.alipay.com/gateway.do"
SANDBOX_GATEWAY = "https://openapi-sandbox.dl.alipaydev.com/gateway.do"

SUCCESS_CODE = "10000"
TRADE_NOT_EXIST = "ACQ.TRADE_NOT_EXIST"

TRADE_STATUS_MAP = {
    "WAIT_BUYER_PAY": PaymentState.CREATED,
    "TRADE_CLOSED": PaymentState.TIMEOUT,
    "TRADE_SUCCESS": PaymentState.PAID,
    "TRADE_FINISHED": PaymentState.PAID,
}


class AlipayPaymentProvider(PaymentProvider):
    def __init__(
        self,
        app_id: str,
        app_private_key: str,
        app_public_cert: str,
        alipay_public_cert: str,
        alipay_root_cert: str,
        sandbox: bool = False,
        client: Optional[DCAliPay] = None,
    ):
        self.gateway = SANDBOX_GATEWAY if sandbox else PRODUCTION_GATEWAY
        if client is not None:
            self._client = client
            return

        missing = [
            label
            for label, value in (
                ("app_id", app_id),
                ("app_private_key", app_private_key),
                ("app_public_cert", app_public_cert),
                ("alipay_public_cert", alipay_public_cert),
                ("alipay_root_cert", alipay_root_cert),
            )
            if not value
        ]
        if missing:
            raise ProviderConfigurationError(f"missing credentials: {', '.join(missing)}", provider="Alipay")

        try:
            self._client = DCAliPay(
                appid=app_id,
                app_notify_url=None,
                app_private_key_string=app_private_key,
                app_public_key_cert_string=app_public_cert,
                alipay_public_key_cert_string=alipay_public_cert,
                alipay_root_cert_string=alipay_root_cert,
                sign_type="RSA2",
                debug=sandbox,
            )
        except (AliPayException, ValueError) as e:
            raise ProviderConfigurationError(f"invalid certificate material: {e}", provider="Alipay") from e

    @property
    def name(self) -> str:
        return "Alipay"

    def pay(self, request: PaymentRequest) -> PaymentResponse:
        request.validate(self.name)
        subject = join_attachment(request.product_name, request.product_display_name, request.provider_name)
        try:
            order_string = self._client.api_alipay_trade_page_pay(
                subject=subject,
                out_trade_no=request.payment_name,
                total_amount=to_major_string(request.price),
                return_url=request.return_url,
                notify_url=request.notify_url,
            )
        except AliPayException as e:
            raise PaymentInitiationError(f"trade page pay failed: {e}", provider=self.name) from e

        return PaymentResponse(
            pay_url=f"{self.gateway}?{order_string}",
            order_id=request.payment_name,
        )

    def notify(self, body: bytes, order_id: str) -> NotificationResult:
        try:
            response = self._client.api_alipay_trade_query(out_trade_no=order_id)
        except (AliPayException, AliPayValidationError, OSError) as e:
            raise PaymentQueryError(f"trade query failed: {e}", provider=self.name) from e

        if response.get("code") != SUCCESS_CODE:
            # A trade the payer never opened does not exist on Alipay's side
            if response.get("sub_code") == TRADE_NOT_EXIST:
                return NotificationResult.status_only(PaymentState.CANCELED)
            raise PaymentQueryError(
                f"trade query failed: {response.get('sub_code') or response.get('code')}: "
                f"{response.get('sub_msg') or response.get('msg')}",
                provider=self.name,
            )

        trade_status = response.get("trade_status")
        state = TRADE_STATUS_MAP.get(trade_status)
        if state is None:
            logger.warning("Unmapped trade status %r for %s", trade_status, order_id)
            return NotificationResult.unexpected("alipay trade state", trade_status)
        if state is not PaymentState.PAID:
            return NotificationResult.status_only(state)

        attachment = parse_attachment_lenient(response.get("subject", ""))
        return NotificationResult(
            payment_name=order_id,
            payment_status=PaymentState.PAID,
            product_name=attachment.product_name,
            product_display_name=attachment.product_display_name,
            provider_name=attachment.provider_name,
            price=from_string(response.get("total_amount")),
            currency=response.get("trans_currency", "CNY"),
            order_id=order_id,
        )
