"""Tests for the Airwallex client and provider."""

import threading
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from paygate.clients.airwallex import SANDBOX_CHECKOUT, AirwallexClient, CreatedIntent, IntentInfo
from paygate.clients.rest import CachedToken, parse_expiry
from paygate.errors import PaymentGatewayError, PaymentInitiationError, PaymentQueryError, ProviderConfigurationError
from paygate.models.enums import PaymentState
from paygate.providers.airwallex_provider import AirwallexPaymentProvider
from conftest import make_response

FUTURE = (datetime.now(timezone.utc) + timedelta(minutes=30)).strftime("%Y-%m-%dT%H:%M:%S+0000")


def _intent_item(status="SUCCEEDED", attempt_status="PAID"):
    item = {
        "id": "int_1",
        "status": status,
        "amount": 99.99,
        "currency": "USD",
        "merchant_order_id": "order_1",
        "metadata": {"description": "product_pro|Pro Plan|provider_airwallex"},
    }
    if attempt_status:
        item["latest_payment_attempt"] = {"status": attempt_status}
    return item


def _session(intents=None, login_status=200):
    """A requests.Session stand-in that answers by URL."""
    session = MagicMock()

    def request(method, url, **kwargs):
        if url.endswith("/authentication/login"):
            return make_response({"token": "tok_1", "expires_at": FUTURE}, status_code=login_status)
        if url.endswith("/pa/payment_intents/create"):
            return make_response({"id": "int_1", "client_secret": "sec_1", "merchant_order_id": "order_1"})
        if url.endswith("/pa/payment_intents/"):
            return make_response({"items": intents if intents is not None else [_intent_item()]})
        return make_response({"message": "not found"}, status_code=404)

    session.request.side_effect = request
    return session


def _login_calls(session):
    return [c for c in session.request.call_args_list if c.args[1].endswith("/authentication/login")]


class TestTokenCache:
    def test_token_is_reused(self):
        session = _session()
        client = AirwallexClient("cid", "key", sandbox=True, session=session)

        client.get_intent_by_order_id("order_1")
        client.get_intent_by_order_id("order_1")

        assert len(_login_calls(session)) == 1
        headers = session.request.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer tok_1"

    def test_expired_token_is_refreshed(self):
        session = _session()
        client = AirwallexClient("cid", "key", session=session)
        client._token = CachedToken("stale", datetime.now(timezone.utc) - timedelta(seconds=1))

        assert client.get_token() == "tok_1"
        assert len(_login_calls(session)) == 1

    def test_concurrent_callers_log_in_once(self):
        session = _session()
        client = AirwallexClient("cid", "key", session=session)
        barrier = threading.Barrier(8)
        tokens = []

        def worker():
            barrier.wait()
            tokens.append(client.get_token())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert tokens == ["tok_1"] * 8
        assert len(_login_calls(session)) == 1

    def test_login_sends_credentials(self):
        session = _session()
        AirwallexClient("cid", "key", session=session).get_token()
        headers = _login_calls(session)[0].kwargs["headers"]
        assert headers == {"x-client-id": "cid", "x-api-key": "key"}

    def test_rejected_login(self):
        session = MagicMock()
        session.request.return_value = make_response({"message": "bad credentials"}, status_code=401)
        client = AirwallexClient("cid", "wrong", session=session)
        with pytest.raises(PaymentGatewayError):
            client.get_token()


class TestParseExpiry:
    def test_offset_without_colon(self):
        assert parse_expiry("2030-01-01T00:00:00+0000") == datetime(2030, 1, 1, tzinfo=timezone.utc)

    def test_zulu(self):
        assert parse_expiry("2030-01-01T00:00:00Z") == datetime(2030, 1, 1, tzinfo=timezone.utc)

    def test_expiry_skew(self):
        token = CachedToken("t", datetime(2030, 1, 1, tzinfo=timezone.utc))
        assert token.is_valid(now=datetime(2029, 12, 31, 23, 59, tzinfo=timezone.utc))
        assert not token.is_valid(now=datetime(2029, 12, 31, 23, 59, 45, tzinfo=timezone.utc))

    def test_garbage_counts_as_expired(self):
        assert not CachedToken("t", parse_expiry("not a date")).is_valid()


class TestClient:
    def test_create_intent(self, payment_request):
        session = _session()
        client = AirwallexClient("cid", "key", session=session)

        intent = client.create_intent(payment_request)

        assert intent == CreatedIntent(id="int_1", client_secret="sec_1", merchant_order_id="order_1")
        payload = session.request.call_args.kwargs["json"]
        assert payload["merchant_order_id"] == "order_1"
        assert payload["request_id"] == "order_1"
        assert payload["metadata"] == {"description": "product_pro|Pro Plan|provider_stripe"}
        assert len(payload["descriptor"]) <= 32

    def test_lookup_with_no_intents(self):
        client = AirwallexClient("cid", "key", session=_session(intents=[]))
        with pytest.raises(PaymentGatewayError) as exc:
            client.get_intent_by_order_id("order_1")
        assert "order_1" in str(exc.value)

    def test_checkout_url(self, payment_request):
        client = AirwallexClient("cid", "key", sandbox=True, session=MagicMock())
        url = client.checkout_url(CreatedIntent("int_1", "sec_1", "order_1"), payment_request)
        assert url.startswith(SANDBOX_CHECKOUT)
        assert "intent_id=int_1" in url
        assert "client_secret=sec_1" in url


def _info(status="SUCCEEDED", payment_status="PAID"):
    return IntentInfo(
        id="int_1",
        status=status,
        amount=99.99,
        currency="USD",
        merchant_order_id="order_1",
        payment_status=payment_status,
        metadata={"description": "product_pro|Pro Plan|provider_airwallex"},
    )


@pytest.fixture
def client():
    client = MagicMock()
    client.create_intent.return_value = CreatedIntent("int_1", "sec_1", "order_1")
    client.checkout_url.return_value = "https://checkout-demo.airwallex.com/#/standalone/checkout?intent_id=int_1"
    client.get_intent_by_order_id.return_value = _info()
    return client


@pytest.fixture
def provider(client):
    return AirwallexPaymentProvider("", "", client=client)


class TestProvider:
    def test_missing_credentials(self):
        with pytest.raises(ProviderConfigurationError):
            AirwallexPaymentProvider("cid", "")

    def test_pay(self, provider, payment_request):
        response = provider.pay(payment_request)
        assert response.order_id == "order_1"
        assert "intent_id=int_1" in response.pay_url

    def test_pay_failure(self, provider, client, payment_request):
        client.create_intent.side_effect = PaymentGatewayError("400: invalid currency", provider="Airwallex")
        with pytest.raises(PaymentInitiationError):
            provider.pay(payment_request)

    @pytest.mark.parametrize("status,expected", [
        ("PENDING", PaymentState.CREATED),
        ("REQUIRES_PAYMENT_METHOD", PaymentState.CREATED),
        ("REQUIRES_CUSTOMER_ACTION", PaymentState.CREATED),
        ("REQUIRES_CAPTURE", PaymentState.CREATED),
        ("CANCELLED", PaymentState.CANCELED),
        ("EXPIRED", PaymentState.TIMEOUT),
    ])
    def test_intent_status_mapping(self, provider, client, status, expected):
        client.get_intent_by_order_id.return_value = _info(status)
        assert provider.notify(b"", "order_1").payment_status == expected

    @pytest.mark.parametrize("attempt,expected", [
        ("AUTHORIZED", PaymentState.CREATED),
        ("CAPTURE_REQUESTED", PaymentState.CREATED),
        ("CANCELLED", PaymentState.CREATED),
        ("PAID", PaymentState.PAID),
        ("SETTLED", PaymentState.PAID),
    ])
    def test_attempt_status_mapping(self, provider, client, attempt, expected):
        client.get_intent_by_order_id.return_value = _info("SUCCEEDED", attempt)
        assert provider.notify(b"", "order_1").payment_status == expected

    def test_attempt_ignored_unless_succeeded(self, provider, client):
        client.get_intent_by_order_id.return_value = _info("PENDING", "FOO_BAR")
        assert provider.notify(b"", "order_1").payment_status == PaymentState.CREATED

    def test_unknown_intent_status(self, provider, client):
        client.get_intent_by_order_id.return_value = _info("FOO_BAR")
        result = provider.notify(b"", "order_1")
        assert result.payment_status == PaymentState.ERROR
        assert "FOO_BAR" in result.notify_message

    def test_unknown_attempt_status(self, provider, client):
        client.get_intent_by_order_id.return_value = _info("SUCCEEDED", "FOO_BAR")
        result = provider.notify(b"", "order_1")
        assert result.payment_status == PaymentState.ERROR
        assert "FOO_BAR" in result.notify_message

    def test_paid_result(self, provider):
        result = provider.notify(b"", "order_1")
        assert result.payment_status == PaymentState.PAID
        assert result.price == 99.99
        assert result.currency == "USD"
        assert result.payment_name == "order_1"
        assert result.product_display_name == "Pro Plan"

    def test_lookup_failure(self, provider, client):
        client.get_intent_by_order_id.side_effect = PaymentGatewayError("no payment intent found", provider="Airwallex")
        with pytest.raises(PaymentQueryError):
            provider.notify(b"", "order_1")
