"""
GC gateway client.

Every call is one signed envelope POSTed to a single host:

    {"op": ..., "xmpch": ..., "version": "1.4",
     "data": base64(json(payload)), "requesttime": ..., "sign": ...}

where sign is the upper-case MD5 of the sorted "key=value" pairs joined by
"&", followed directly by the merchant secret. Responses use the same
envelope with a return_code and a base64 data field.
"""

import base64
import hashlib
import json
import logging
from datetime import datetime
from typing import Any, Optional

import requests

from paygate.errors import PaymentGatewayError

logger = logging.getLogger("paygate.clients.gc")

API_VERSION = "1.4"
CONTENT_TYPE = "text/plain;charset=UTF-8"
DEFAULT_TIMEOUT = 15.0


def time_id(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime("%Y%m%d%H%M%S")


def encode_data(payload: dict[str, Any]) -> str:
    return base64.b64encode(json.dumps(payload, ensure_ascii=False).encode("utf-8")).decode("ascii")


def decode_data(data: str) -> dict[str, Any]:
    try:
        payload = json.loads(base64.b64decode(data, validate=True).decode("utf-8"))
    except (ValueError, TypeError) as e:
        raise PaymentGatewayError(f"malformed data field: {e}", provider="GC") from e
    if not isinstance(payload, dict):
        raise PaymentGatewayError(f"data field is not an object: {type(payload).__name__}", provider="GC")
    return payload


def sign_envelope(envelope: dict[str, str], secret: str) -> str:
    params = "data={data}&op={op}&requesttime={requesttime}&version={version}&xmpch={xmpch}".format(**envelope)
    return hashlib.md5(f"{params}{secret}".encode("utf-8")).hexdigest().upper()


class GcClient:
    def __init__(
        self,
        merchant_no: str,
        secret_key: str,
        host: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.merchant_no = merchant_no
        self.secret_key = secret_key
        self.host = host
        self.timeout = timeout
        self._session = session or requests.Session()

    def build_envelope(self, op: str, payload: dict[str, Any]) -> dict[str, str]:
        envelope = {
            "op": op,
            "xmpch": self.merchant_no,
            "version": API_VERSION,
            "data": encode_data(payload),
            "requesttime": time_id(),
        }
        envelope["sign"] = sign_envelope(envelope, self.secret_key)
        return envelope

    def call(self, op: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Send one signed operation and return its decoded data payload."""
        envelope = self.build_envelope(op, payload)
        try:
            response = self._session.post(
                self.host,
                data=json.dumps(envelope).encode("utf-8"),
                headers={"Content-Type": CONTENT_TYPE},
                timeout=self.timeout,
            )
            body = response.json()
        except requests.RequestException as e:
            raise PaymentGatewayError(f"{op} failed: {e}", provider="GC") from e
        except ValueError as e:
            raise PaymentGatewayError(f"{op} returned a non-JSON body", provider="GC") from e

        if body.get("return_code") != "SUCCESS":
            raise PaymentGatewayError(f"{body.get('return_code')}: {body.get('return_msg')}", provider="GC")

        logger.info("GC %s succeeded", op)
        return decode_data(body.get("data", ""))
