"""Client for the Cryptomus merchant API.

Requests carry the merchant id and a ``sign`` header: the MD5 hex digest of
the base64-encoded JSON body followed by the payment API key. Webhooks are
signed the same way.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict

import httpx

logger = logging.getLogger("smm-panel")

API_URL = "https://api.cryptomus.com/v1"
PAID_STATUSES = ("paid", "paid_over")
PAYMENT_LIFETIME_SECONDS = 3600


class CryptomusError(Exception):
    def __init__(self, message: str, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.payload = payload


def encode_body(body: Dict[str, Any]) -> bytes:
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def sign_body(body: Dict[str, Any], api_key: str) -> str:
    encoded = base64.b64encode(encode_body(body)).decode("ascii")
    return hashlib.md5((encoded + api_key).encode("utf-8")).hexdigest()


def verify_signature(body: Dict[str, Any], received_sign: str, api_key: str) -> bool:
    if not received_sign:
        return False
    return hmac.compare_digest(sign_body(body, api_key), received_sign)


@dataclass
class CryptomusCredentials:
    merchant_id: str
    api_key: str


class CryptomusClient:
    def __init__(
        self,
        creds: CryptomusCredentials,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.creds = creds
        self._transport = transport

    async def create_payment(self, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "merchant": self.creds.merchant_id,
            "sign": sign_body(body, self.creds.api_key),
        }
        async with httpx.AsyncClient(transport=self._transport, timeout=10) as client:
            response = await client.post(
                f"{API_URL}/payment", content=encode_body(body), headers=headers
            )
        logger.info("Cryptomus response %s: %s", response.status_code, response.text)
        if response.is_error:
            raise CryptomusError("Failed to create payment", response.text)
        data = response.json()
        result = data.get("result") if isinstance(data, dict) else None
        if not result:
            message = data.get("message") if isinstance(data, dict) else None
            raise CryptomusError(message or "Failed to create payment", data)
        return result
