"""Tests for the WeChat Pay provider."""

import json
from unittest.mock import MagicMock

import pytest
from wechatpayv3 import WeChatPayType

from paygate.errors import InvalidRequestError, PaymentInitiationError, PaymentQueryError, ProviderNotConfiguredError
from paygate.models.enums import PaymentEnv, PaymentState
from paygate.providers.wechat_provider import WechatPaymentProvider


def _query(trade_state="SUCCESS"):
    return 200, json.dumps({
        "out_trade_no": "order_1",
        "trade_state": trade_state,
        "attach": "product_pro|Pro Plan|provider_wechat",
        "amount": {"total": 9999, "currency": "CNY"},
    })


@pytest.fixture
def client():
    client = MagicMock()
    client.query.return_value = _query()
    client.sign.return_value = "signed=="
    return client


@pytest.fixture
def provider(client):
    return WechatPaymentProvider("", "", "wx_app", "", "", client=client)


class TestLenientConstruction:
    def test_missing_credentials_builds_unconfigured_instance(self):
        provider = WechatPaymentProvider("", "", "", "", "")
        assert provider.is_configured is False

    def test_unconfigured_instance_fails_predictably(self, payment_request):
        provider = WechatPaymentProvider("mch", "", "wx_app", "", "")
        with pytest.raises(ProviderNotConfiguredError):
            provider.pay(payment_request)
        with pytest.raises(ProviderNotConfiguredError):
            provider.notify(b"", "order_1")

    def test_unconfigured_instance_still_acknowledges(self):
        provider = WechatPaymentProvider("", "", "", "", "")
        assert json.loads(provider.get_response_error(ProviderNotConfiguredError("x")))["Code"] == "FAIL"


class TestPay:
    def test_native_payment(self, provider, client, payment_request):
        client.pay.return_value = (200, json.dumps({"code_url": "weixin://wxpay/bizpayurl?pr=abc"}))
        response = provider.pay(payment_request)

        assert response.pay_url == "weixin://wxpay/bizpayurl?pr=abc"
        assert response.order_id == "order_1"
        kwargs = client.pay.call_args.kwargs
        assert kwargs["pay_type"] == WeChatPayType.NATIVE
        assert kwargs["amount"] == {"total": 9999, "currency": "USD"}
        assert kwargs["out_trade_no"] == "order_1"

    def test_jsapi_payment_in_wechat_browser(self, provider, client, payment_request):
        payment_request.payment_env = PaymentEnv.WECHAT_BROWSER.value
        payment_request.payer_id = "oxW9O1ZDvgreSHuBSQDiQ2F055PI"
        client.pay.return_value = (200, json.dumps({"prepay_id": "wx2017"}))

        response = provider.pay(payment_request)

        assert response.pay_url == ""
        assert response.attach_info["appId"] == "wx_app"
        assert response.attach_info["package"] == "prepay_id=wx2017"
        assert response.attach_info["signType"] == "RSA"
        assert response.attach_info["paySign"] == "signed=="
        assert client.pay.call_args.kwargs["payer"] == {"openid": "oxW9O1ZDvgreSHuBSQDiQ2F055PI"}
        assert client.pay.call_args.kwargs["pay_type"] == WeChatPayType.JSAPI

    def test_jsapi_requires_openid(self, provider, payment_request):
        payment_request.payment_env = PaymentEnv.WECHAT_BROWSER.value
        payment_request.payer_id = ""
        with pytest.raises(InvalidRequestError) as exc:
            provider.pay(payment_request)
        assert "openid" in str(exc.value)

    def test_vendor_rejection(self, provider, client, payment_request):
        client.pay.return_value = (400, json.dumps({"code": "PARAM_ERROR", "message": "bad amount"}))
        with pytest.raises(PaymentInitiationError) as exc:
            provider.pay(payment_request)
        assert "bad amount" in str(exc.value)


class TestNotify:
    @pytest.mark.parametrize("trade_state,expected", [
        ("SUCCESS", PaymentState.PAID),
        ("CLOSED", PaymentState.CANCELED),
        ("REVOKED", PaymentState.CANCELED),
        ("NOTPAY", PaymentState.CREATED),
        ("USERPAYING", PaymentState.CREATED),
    ])
    def test_status_mapping(self, provider, client, trade_state, expected):
        client.query.return_value = _query(trade_state)
        assert provider.notify(b"", "order_1").payment_status == expected

    def test_unknown_state(self, provider, client):
        client.query.return_value = _query("FOO_BAR")
        result = provider.notify(b"", "order_1")
        assert result.payment_status == PaymentState.ERROR
        assert "FOO_BAR" in result.notify_message

    def test_paid_result(self, provider):
        result = provider.notify(b"", "order_1")
        assert result.price == 99.99
        assert result.currency == "CNY"
        assert result.payment_name == "order_1"
        assert result.product_display_name == "Pro Plan"

    def test_query_failure(self, provider, client):
        client.query.return_value = (404, json.dumps({"code": "ORDER_NOT_EXIST", "message": "not found"}))
        with pytest.raises(PaymentQueryError):
            provider.notify(b"", "order_1")


class TestAcknowledgement:
    def test_success_envelope(self, provider):
        assert json.loads(provider.get_response_error(None)) == {"Code": "SUCCESS", "Message": ""}

    def test_failure_envelope(self, provider):
        envelope = json.loads(provider.get_response_error(PaymentQueryError("order query failed")))
        assert envelope["Code"] == "FAIL"
        assert "order query failed" in envelope["Message"]
