"""
WeChat Pay (API v3) provider.

Two flows depending on where the payer is:
  - Inside the WeChat in-app browser: a JSAPI transaction, returned as the
    signed parameter set the page passes to WeixinJSBridge (no redirect).
  - Anywhere else: a NATIVE transaction, returned as a code_url to render
    as a QR code.

Note: unlike every other provider, construction with missing credentials
does not fail. It returns an instance whose is_configured is False and
whose operations raise ProviderNotConfiguredError. Callers must check
is_configured before routing payments to it.
"""

import json
import logging
import time
import uuid
from typing import Any, Optional

import requests
from wechatpayv3 import WeChatPay, WeChatPayType

from paygate.codecs.amount import to_major, to_minor
from paygate.codecs.attachment import join_attachment, parse_attachment_lenient
from paygate.errors import (
    InvalidRequestError,
    PaymentInitiationError,
    PaymentQueryError,
    ProviderConfigurationError,
)
from paygate.models.enums import PaymentEnv, PaymentState
from paygate.providers.base import NotificationResult, PaymentProvider, PaymentRequest, PaymentResponse

logger = logging.getLogger("paygate.providers.wechat")

TRADE_STATE_MAP = {
    "SUCCESS": PaymentState.PAID,
    "CLOSED": PaymentState.CANCELED,
    "REVOKED": PaymentState.CANCELED,
    "NOTPAY": PaymentState.CREATED,
    "USERPAYING": PaymentState.CREATED,
}


def _decode(message: Any) -> dict:
    if isinstance(message, dict):
        return message
    try:
        return json.loads(message or "{}")
    except (TypeError, ValueError):
        return {"message": message}


class WechatPaymentProvider(PaymentProvider):
    def __init__(
        self,
        mch_id: str,
        api_v3_key: str,
        app_id: str,
        serial_no: str,
        private_key: str,
        client: Optional[WeChatPay] = None,
    ):
        self.app_id = app_id
        self._client = client
        if client is not None:
            return

        if not all([mch_id, api_v3_key, app_id, serial_no, private_key]):
            logger.warning("WeChat Pay credentials incomplete; provider built in non-functional mode")
            return

        try:
            self._client = WeChatPay(
                wechatpay_type=WeChatPayType.NATIVE,
                mchid=mch_id,
                private_key=private_key,
                cert_serial_no=serial_no,
                apiv3_key=api_v3_key,
                appid=app_id,
            )
        # The SDK raises a bare Exception when the platform certificates cannot be fetched
        except Exception as e:
            raise ProviderConfigurationError(f"client initialization failed: {e}", provider="WeChat Pay") from e

    @property
    def name(self) -> str:
        return "WeChat Pay"

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def pay(self, request: PaymentRequest) -> PaymentResponse:
        self._ensure_configured()
        request.validate(self.name)

        params = {
            "description": request.product_display_name,
            "out_trade_no": request.payment_name,
            "amount": {"total": to_minor(request.price), "currency": request.currency},
            "attach": join_attachment(request.product_name, request.product_display_name, request.provider_name),
            "notify_url": request.notify_url,
        }

        if request.payment_env == PaymentEnv.WECHAT_BROWSER.value:
            if not request.payer_id:
                raise InvalidRequestError("failed to get the payer's openid, please retry login", provider=self.name)
            # Accounts signed up through WeChat carry their OpenID as payer_id
            result = self._transact(params, WeChatPayType.JSAPI, payer={"openid": request.payer_id})
            return PaymentResponse(
                pay_url="",
                order_id=request.payment_name,
                attach_info=self._jsapi_params(result["prepay_id"]),
            )

        result = self._transact(params, WeChatPayType.NATIVE)
        return PaymentResponse(pay_url=result["code_url"], order_id=request.payment_name)

    def _transact(self, params: dict, pay_type: WeChatPayType, **extra: Any) -> dict:
        try:
            code, message = self._client.pay(pay_type=pay_type, **params, **extra)
        except requests.RequestException as e:
            raise PaymentInitiationError(f"{pay_type.name} transaction failed: {e}", provider=self.name) from e

        result = _decode(message)
        if code not in (200, 201):
            raise PaymentInitiationError(
                f"{pay_type.name} transaction failed ({code}): {result.get('message', message)}",
                provider=self.name,
                status_code=code,
            )
        return result

    def _jsapi_params(self, prepay_id: str) -> dict[str, Any]:
        """Sign the WeixinJSBridge invocation parameters with the merchant key (RSA)."""
        timestamp = str(int(time.time()))
        nonce = uuid.uuid4().hex
        package = f"prepay_id={prepay_id}"
        return {
            "appId": self.app_id,
            "timeStamp": timestamp,
            "nonceStr": nonce,
            "package": package,
            "signType": "RSA",
            "paySign": self._client.sign([self.app_id, timestamp, nonce, package]),
        }

    def notify(self, body: bytes, order_id: str) -> NotificationResult:
        self._ensure_configured()
        try:
            code, message = self._client.query(out_trade_no=order_id)
        except requests.RequestException as e:
            raise PaymentQueryError(f"order query failed: {e}", provider=self.name) from e

        result = _decode(message)
        if code != 200:
            raise PaymentQueryError(
                f"order query failed ({code}): {result.get('message', message)}",
                provider=self.name,
                status_code=code,
            )

        trade_state = result.get("trade_state")
        state = TRADE_STATE_MAP.get(trade_state)
        if state is None:
            logger.warning("Unmapped trade state %r for %s", trade_state, order_id)
            return NotificationResult.unexpected("wechat trade state", trade_state)
        if state is not PaymentState.PAID:
            return NotificationResult.status_only(state)

        amount = result.get("amount") or {}
        attachment = parse_attachment_lenient(result.get("attach", ""))
        return NotificationResult(
            payment_name=result.get("out_trade_no", order_id),
            payment_status=PaymentState.PAID,
            product_name=attachment.product_name,
            product_display_name=attachment.product_display_name,
            provider_name=attachment.provider_name,
            price=to_major(int(amount.get("total", 0))),
            currency=amount.get("currency", "CNY"),
            order_id=order_id,
        )

    def get_response_error(self, error: Optional[Exception]) -> str:
        response = {"Code": "SUCCESS", "Message": ""}
        if error is not None:
            response = {"Code": "FAIL", "Message": str(error)}
        return json.dumps(response)
