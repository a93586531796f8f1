"""
paygate: one payment contract over many gateways.

Exposes the provider contract over HTTP so gateway webhooks can be
answered with each gateway's own acknowledgement token.

Start the server:
    uvicorn paygate.main:app --reload
"""

import logging

from fastapi import FastAPI

from paygate.api.health import router as health_router
from paygate.api.payments import router as payments_router
from paygate.config import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


app = FastAPI(
    title="paygate",
    description=(
        "Uniform payment initiation and settlement-notification handling across "
        "Stripe, Alipay, WeChat Pay, PayPal, Airwallex and GC, with gateway-specific "
        "transaction states normalized to Created, Paid, Canceled, Timeout or Error."
    ),
    version="0.1.0",
)

app.include_router(health_router)
app.include_router(payments_router, prefix="/api")
