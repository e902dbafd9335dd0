import json
from typing import Any, Callable, Dict, List, Union

import httpx

from smm_api import ProviderCredentials, SmmProviderClient


class RecordingPanel:
    """Fake provider panel answering every POST with a canned JSON payload."""

    def __init__(self, reply: Union[Any, Callable[[Dict[str, Any]], Any]]):
        self.reply = reply
        self.requests: List[Dict[str, Any]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        payload = self.reply(body) if callable(self.reply) else self.reply
        return httpx.Response(200, json=payload)

    def client(self, api_key: str = "secret-key", name: str = "Panel") -> SmmProviderClient:
        creds = ProviderCredentials(api_url="https://panel.test/api/v2", api_key=api_key, name=name)
        return SmmProviderClient(creds, transport=httpx.MockTransport(self))


class FakeCodeStore:
    """In-memory stand-in for the verification code tables."""

    def __init__(self, records: List[Dict[str, Any]]):
        self.records = {record["id"]: dict(record) for record in records}

    def fetch_active_code(self, table, subject_field, subject, now):
        for record in self.records.values():
            if record[subject_field] == subject and not record.get("used"):
                return dict(record)
        return None

    def update_code(self, table, record_id, **fields):
        self.records[record_id].update(fields)
