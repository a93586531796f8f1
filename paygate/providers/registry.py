"""
Provider factory.

Maps provider type names to builders that read credentials from Settings.
Which provider a payment uses is the caller's configuration decision; this
module only knows how to construct each one.
"""

import logging
from typing import Callable, Optional

from paygate.config import Settings, settings as default_settings
from paygate.errors import ProviderConfigurationError
from paygate.providers.airwallex_provider import AirwallexPaymentProvider
from paygate.providers.alipay_provider import AlipayPaymentProvider
from paygate.providers.balance import BalancePaymentProvider
from paygate.providers.base import PaymentProvider
from paygate.providers.dummy import DummyPaymentProvider
from paygate.providers.gc_provider import GcPaymentProvider
from paygate.providers.paypal_provider import PaypalPaymentProvider
from paygate.providers.stripe_provider import StripePaymentProvider
from paygate.providers.wechat_provider import WechatPaymentProvider

logger = logging.getLogger("paygate.providers.registry")

ProviderBuilder = Callable[[Settings], PaymentProvider]


def _stripe(s: Settings) -> PaymentProvider:
    return StripePaymentProvider(s.stripe_secret_key, s.stripe_publishable_key)


def _alipay(s: Settings) -> PaymentProvider:
    return AlipayPaymentProvider(
        app_id=s.alipay_app_id,
        app_private_key=s.alipay_app_private_key,
        app_public_cert=s.alipay_app_public_cert,
        alipay_public_cert=s.alipay_public_cert,
        alipay_root_cert=s.alipay_root_cert,
        sandbox=s.sandbox,
    )


def _wechat(s: Settings) -> PaymentProvider:
    return WechatPaymentProvider(
        mch_id=s.wechat_mch_id,
        api_v3_key=s.wechat_api_v3_key,
        app_id=s.wechat_app_id,
        serial_no=s.wechat_serial_no,
        private_key=s.wechat_private_key,
    )


def _paypal(s: Settings) -> PaymentProvider:
    return PaypalPaymentProvider(s.paypal_client_id, s.paypal_secret, sandbox=s.sandbox, brand_name=s.paypal_brand_name)


def _airwallex(s: Settings) -> PaymentProvider:
    return AirwallexPaymentProvider(s.airwallex_client_id, s.airwallex_api_key, sandbox=s.sandbox)


def _gc(s: Settings) -> PaymentProvider:
    return GcPaymentProvider(s.gc_merchant_no, s.gc_secret_key, s.gc_host)


PROVIDER_REGISTRY: dict[str, ProviderBuilder] = {
    "Dummy": lambda s: DummyPaymentProvider(),
    "Balance": lambda s: BalancePaymentProvider(),
    "Stripe": _stripe,
    "Alipay": _alipay,
    "WeChat Pay": _wechat,
    "PayPal": _paypal,
    "Airwallex": _airwallex,
    "GC": _gc,
}


def _lookup(provider_type: str) -> Optional[str]:
    wanted = provider_type.strip().lower()
    return next((key for key in PROVIDER_REGISTRY if key.lower() == wanted), None)


def build_provider(provider_type: str, settings: Optional[Settings] = None) -> PaymentProvider:
    """
    Construct a provider of the given type from configuration.

    An empty type falls back to settings.default_provider.

    Raises:
        ProviderConfigurationError: If the type is unknown or its credentials are missing.
    """
    settings = settings or default_settings
    provider_type = provider_type or settings.default_provider
    key = _lookup(provider_type or "")
    if key is None:
        supported = ", ".join(PROVIDER_REGISTRY)
        raise ProviderConfigurationError(f"unsupported provider type: {provider_type}. Supported: {supported}")

    provider = PROVIDER_REGISTRY[key](settings)
    if not provider.is_configured:
        logger.warning("Provider %s built without credentials; calls will fail", key)
    return provider


def register_provider(name: str, builder: ProviderBuilder) -> None:
    PROVIDER_REGISTRY[name] = builder


def list_providers() -> list[str]:
    return list(PROVIDER_REGISTRY)
