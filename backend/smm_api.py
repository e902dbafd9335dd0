"""Client for the JSON API shared by SMM provider panels.

Every call is a single ``POST`` to the panel URL with ``key`` and ``action``
plus action-specific fields. Panels answer with an ``error`` field on failure.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

logger = logging.getLogger("smm-panel")

ACTION_ADD = "add"
ACTION_BALANCE = "balance"
ACTION_STATUS = "status"
ACTION_SERVICES = "services"

DEFAULT_CURRENCY = "USD"
REDACTED = "[REDACTED]"
LEADING_NUMBER = re.compile(r"^\s*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")

STATUS_MAP = {
    "Pending": "pending",
    "In progress": "in_progress",
    "Processing": "processing",
    "Completed": "completed",
    "Partial": "partial",
    "Canceled": "cancelled",
    "Cancelled": "cancelled",
    "Refunded": "refunded",
    "Failed": "failed",
    "Error": "failed",
}


class ProviderError(Exception):
    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}


@dataclass
class ProviderCredentials:
    api_url: str
    api_key: str
    name: str = ""


def redact(body: Dict[str, Any]) -> Dict[str, Any]:
    return {**body, "key": REDACTED} if "key" in body else dict(body)


class SmmProviderClient:
    def __init__(
        self,
        creds: ProviderCredentials,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.creds = creds
        self._transport = transport

    def build_body(self, action: str, **fields: Any) -> Dict[str, Any]:
        return {"key": self.creds.api_key, "action": action, **fields}

    async def call(self, action: str, **fields: Any) -> Any:
        body = self.build_body(action, **fields)
        logger.info("Provider %s request: %s", self.creds.name or self.creds.api_url, redact(body))
        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.post(self.creds.api_url, json=body)
        data = response.json()
        if isinstance(data, dict) and data.get("error"):
            raise ProviderError(str(data["error"]), data)
        return data

    async def place_order(
        self,
        service: str,
        link: str,
        quantity: int,
        comments: Optional[str] = None,
    ) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"service": service, "link": link, "quantity": quantity}
        if comments is not None:
            fields["comments"] = comments
        return await self.call(ACTION_ADD, **fields)

    async def get_balance(self) -> Dict[str, Any]:
        return await self.call(ACTION_BALANCE)

    async def get_order_status(self, external_ids: Iterable[str]) -> Dict[str, Any]:
        return await self.call(ACTION_STATUS, orders=",".join(external_ids))

    async def list_services(self) -> List[Dict[str, Any]]:
        data = await self.call(ACTION_SERVICES)
        if not isinstance(data, list):
            raise ProviderError("Invalid response from provider API")
        return data


def normalize_comments(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n").strip()


def extract_order_id(response: Any) -> str:
    if not isinstance(response, dict):
        return ""
    value = response.get("order") or response.get("id")
    return str(value) if value else ""


def _parse_float(value: Any) -> Optional[float]:
    try:
        if value is None or value == "":
            return None
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(parsed):
        return None
    return parsed


def parse_int(value: Any) -> Optional[int]:
    try:
        if value is None or value == "":
            return None
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _parse_leading_float(value: Any) -> Optional[float]:
    if isinstance(value, str):
        match = LEADING_NUMBER.match(value)
        value = match.group(0) if match else None
    return _parse_float(value)


def parse_balance(response: Any) -> Tuple[float, str]:
    if not isinstance(response, dict):
        response = {}
    balance = _parse_leading_float(response.get("balance")) or 0.0
    currency = response.get("currency") or DEFAULT_CURRENCY
    return balance, str(currency)


def map_status(label: str) -> str:
    if label in STATUS_MAP:
        return STATUS_MAP[label]
    return re.sub(r"\s+", "_", label.lower())


def format_service(raw: Dict[str, Any]) -> Dict[str, Any]:
    external_id = str(raw.get("service") or raw.get("id"))
    speed = raw.get("average_time") or raw.get("speed")
    return {
        "id": external_id,
        "name": raw.get("name") or f"Service {external_id}",
        "category": raw.get("category") or "Uncategorized",
        "rate": _parse_float(raw.get("rate") or raw.get("price")) or 0.0,
        "min": parse_int(raw.get("min")) or 1,
        "max": parse_int(raw.get("max")) or 10000,
        "description": raw.get("description") or raw.get("desc"),
        "speed": str(speed) if speed else None,
    }
