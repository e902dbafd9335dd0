import unittest
from datetime import datetime
from unittest.mock import MagicMock, patch

from fastapi import HTTPException

from services import balance_service
from tests.helpers import RecordingPanel

PROVIDER = {
    "id": "provider-1",
    "user_id": "user-1",
    "name": "Main panel",
    "api_url": "https://panel.test/api/v2",
    "api_key": "encrypted",
    "is_active": True,
}


class SyncBalanceTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.fetch_provider = MagicMock(return_value=PROVIDER)
        self.update_balance = MagicMock(return_value=True)
        self.create_client = MagicMock()
        for name, value in (
            ("fetch_provider", self.fetch_provider),
            ("update_balance", self.update_balance),
            ("create_provider_client", self.create_client),
        ):
            patcher = patch.object(balance_service, name, value)
            patcher.start()
            self.addCleanup(patcher.stop)

    async def test_overwrites_balance_currency_and_timestamp(self):
        panel = RecordingPanel({"balance": "12.5", "currency": "EUR"})
        self.create_client.return_value = panel.client()

        result = await balance_service.sync_provider_balance("user-1", "provider-1")

        self.assertEqual((result.balance, result.currency), (12.5, "EUR"))
        self.fetch_provider.assert_called_once_with("provider-1", "user-1")
        args, kwargs = self.update_balance.call_args
        self.assertEqual(args, ("provider-1", "user-1"))
        self.assertEqual(kwargs["balance"], 12.5)
        self.assertEqual(kwargs["currency"], "EUR")
        self.assertIsInstance(kwargs["synced_at"], datetime)
        self.assertIsNotNone(kwargs["synced_at"].tzinfo)
        self.assertEqual(panel.requests, [{"key": "secret-key", "action": "balance"}])

    async def test_missing_fields_default_to_zero_usd(self):
        self.create_client.return_value = RecordingPanel({}).client()

        result = await balance_service.sync_provider_balance("user-1", "provider-1")

        self.assertEqual((result.balance, result.currency), (0.0, "USD"))
        kwargs = self.update_balance.call_args.kwargs
        self.assertEqual((kwargs["balance"], kwargs["currency"]), (0.0, "USD"))

    async def test_error_response_writes_nothing(self):
        self.create_client.return_value = RecordingPanel({"error": "Invalid API key"}).client()

        with self.assertRaises(HTTPException) as ctx:
            await balance_service.sync_provider_balance("user-1", "provider-1")

        self.assertEqual(ctx.exception.status_code, 400)
        self.update_balance.assert_not_called()

    async def test_provider_owned_by_someone_else(self):
        self.fetch_provider.return_value = None

        with self.assertRaises(HTTPException) as ctx:
            await balance_service.sync_provider_balance("user-2", "provider-1")

        self.assertEqual(ctx.exception.detail, "Provider not found")
        self.create_client.assert_not_called()

    async def test_failed_update_is_server_error(self):
        self.create_client.return_value = RecordingPanel({"balance": 3}).client()
        self.update_balance.return_value = False

        with self.assertRaises(HTTPException) as ctx:
            await balance_service.sync_provider_balance("user-1", "provider-1")

        self.assertEqual(ctx.exception.status_code, 500)
