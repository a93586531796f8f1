"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    log_level: str = "INFO"
    sandbox: bool = False  # Use gateway sandbox hosts where one exists
    default_provider: str = "Dummy"

    stripe_publishable_key: str = ""
    stripe_secret_key: str = ""

    alipay_app_id: str = ""
    alipay_app_private_key: str = ""
    alipay_app_public_cert: str = ""
    alipay_public_cert: str = ""
    alipay_root_cert: str = ""

    wechat_mch_id: str = ""
    wechat_api_v3_key: str = ""
    wechat_app_id: str = ""
    wechat_serial_no: str = ""
    wechat_private_key: str = ""

    paypal_client_id: str = ""
    paypal_secret: str = ""
    paypal_brand_name: str = "paygate"

    airwallex_client_id: str = ""
    airwallex_api_key: str = ""

    gc_merchant_no: str = ""
    gc_secret_key: str = ""
    gc_host: str = ""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
