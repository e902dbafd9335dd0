import json
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import HTTPException

from cryptomus_api import CryptomusError, sign_body
from services import payments_service

API_KEY = "payment-key"
GATEWAY_SETTINGS = SimpleNamespace(
    cryptomus_merchant_id="merchant-1",
    cryptomus_api_key=API_KEY,
    site_url="https://shop.example",
)


def _webhook(**overrides):
    body = {
        "uuid": "pay-1",
        "order_id": "user-1-1700000000000",
        "status": "paid",
        "amount": "15.00",
        "additional_data": json.dumps({"userId": "user-1"}),
    }
    body.update(overrides)
    return body


def _signed(body):
    return dict(body, sign=sign_body(body, API_KEY))


class GatewayTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.repo = {
            "fetch_profile_balance": MagicMock(return_value=5.0),
            "update_profile_balance": MagicMock(return_value=True),
            "fetch_transaction_by_reference": MagicMock(return_value=None),
            "insert_transaction": MagicMock(return_value={"id": "tx-new"}),
            "claim_transaction": MagicMock(return_value=True),
            "release_transaction": MagicMock(),
        }
        patches = [patch.object(payments_service, "settings", GATEWAY_SETTINGS)]
        patches += [patch.object(payments_service, name, mock) for name, mock in self.repo.items()]
        for item in patches:
            item.start()
            self.addCleanup(item.stop)


class CreatePaymentTests(GatewayTestCase):
    async def test_payment_is_created_and_pending_row_stored(self):
        client = MagicMock()
        client.create_payment = AsyncMock(
            return_value={"uuid": "pay-1", "url": "https://pay.test/1", "status": "check"}
        )
        with patch.object(payments_service, "create_gateway_client", MagicMock(return_value=client)):
            result = await payments_service.create_cryptomus_payment(
                "user-1", 10.0, "USD", "https://api.example/api/payments/cryptomus/webhook"
            )

        self.assertEqual(result.paymentId, "pay-1")
        self.assertEqual(result.paymentUrl, "https://pay.test/1")
        self.assertTrue(result.orderId.startswith("user-1-"))
        body = client.create_payment.await_args.args[0]
        self.assertEqual(body["amount"], "10")
        self.assertEqual(body["url_return"], "https://shop.example/dashboard?tab=balance&payment=success")
        self.assertEqual(json.loads(body["additional_data"]), {"userId": "user-1"})
        record = self.repo["insert_transaction"].call_args.args[0]
        self.assertEqual(record["payment_reference"], "pay-1")
        self.assertEqual(record["balance_before"], 5.0)
        self.assertEqual(record["balance_after"], 5.0)

    async def test_invalid_amount(self):
        with self.assertRaises(HTTPException) as ctx:
            await payments_service.create_cryptomus_payment("user-1", 0, "USD", "https://cb")
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.detail, "Invalid amount")

    async def test_gateway_not_configured(self):
        unconfigured = SimpleNamespace(cryptomus_merchant_id=None, cryptomus_api_key=None)
        with patch.object(payments_service, "settings", unconfigured):
            with self.assertRaises(HTTPException) as ctx:
                await payments_service.create_cryptomus_payment("user-1", 10, "USD", "https://cb")
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.detail, "Payment gateway not configured")

    async def test_gateway_rejection_stores_nothing(self):
        client = MagicMock()
        client.create_payment = AsyncMock(side_effect=CryptomusError("Merchant blocked"))
        with patch.object(payments_service, "create_gateway_client", MagicMock(return_value=client)):
            with self.assertRaises(HTTPException) as ctx:
                await payments_service.create_cryptomus_payment("user-1", 10, "USD", "https://cb")

        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.detail, "Merchant blocked")
        self.repo["insert_transaction"].assert_not_called()


class WebhookTests(GatewayTestCase):
    async def test_bad_signature_is_rejected(self):
        body = dict(_webhook(), sign=sign_body(_webhook(), "other-key"))

        with self.assertRaises(HTTPException) as ctx:
            await payments_service.handle_cryptomus_webhook(body)

        self.assertEqual(ctx.exception.status_code, 401)
        self.repo["update_profile_balance"].assert_not_called()

    async def test_header_signature_is_accepted(self):
        body = _webhook(status="process")

        result = await payments_service.handle_cryptomus_webhook(body, sign_body(body, API_KEY))

        self.assertEqual(result.message, "Status noted")

    async def test_unpaid_status_is_only_noted(self):
        result = await payments_service.handle_cryptomus_webhook(_signed(_webhook(status="cancel")))

        self.assertEqual(result.message, "Status noted")
        self.repo["fetch_transaction_by_reference"].assert_not_called()
        self.repo["update_profile_balance"].assert_not_called()

    async def test_pending_transaction_is_settled_and_balance_credited(self):
        self.repo["fetch_transaction_by_reference"].return_value = {
            "id": "tx-1",
            "user_id": "user-1",
            "balance_before": 5.0,
            "balance_after": 5.0,
        }

        result = await payments_service.handle_cryptomus_webhook(_signed(_webhook()))

        self.assertEqual(result.message, "Payment processed")
        claim = self.repo["claim_transaction"]
        self.assertEqual(claim.call_args.args, ("tx-1", 5.0))
        self.assertEqual(claim.call_args.kwargs["balance_before"], 5.0)
        self.assertEqual(claim.call_args.kwargs["balance_after"], 20.0)
        self.repo["update_profile_balance"].assert_called_once_with("user-1", 20.0)
        self.repo["insert_transaction"].assert_not_called()

    async def test_settled_transaction_is_not_credited_again(self):
        self.repo["fetch_transaction_by_reference"].return_value = {
            "id": "tx-1",
            "user_id": "user-1",
            "balance_before": 5.0,
            "balance_after": 20.0,
        }

        result = await payments_service.handle_cryptomus_webhook(_signed(_webhook()))

        self.assertEqual(result.message, "Already processed")
        self.repo["claim_transaction"].assert_not_called()
        self.repo["update_profile_balance"].assert_not_called()

    async def test_lost_claim_is_not_credited(self):
        self.repo["fetch_transaction_by_reference"].return_value = {
            "id": "tx-1",
            "user_id": "user-1",
            "balance_before": 5.0,
            "balance_after": 5.0,
        }
        self.repo["claim_transaction"].return_value = False

        result = await payments_service.handle_cryptomus_webhook(_signed(_webhook()))

        self.assertEqual(result.message, "Already processed")
        self.repo["update_profile_balance"].assert_not_called()

    async def test_unknown_payment_records_new_transaction(self):
        result = await payments_service.handle_cryptomus_webhook(
            _signed(_webhook(status="paid_over", additional_data=None))
        )

        self.assertEqual(result.message, "Payment processed")
        record = self.repo["insert_transaction"].call_args.args[0]
        self.assertEqual(record["user_id"], "user-1")
        self.assertEqual(record["balance_before"], 5.0)
        self.assertEqual(record["balance_after"], 20.0)
        self.assertEqual(record["payment_reference"], "pay-1")
        self.repo["update_profile_balance"].assert_called_once_with("user-1", 20.0)

    async def test_missing_profile_is_404(self):
        self.repo["fetch_profile_balance"].return_value = None

        with self.assertRaises(HTTPException) as ctx:
            await payments_service.handle_cryptomus_webhook(_signed(_webhook()))

        self.assertEqual(ctx.exception.status_code, 404)
        self.repo["insert_transaction"].assert_not_called()

    async def test_failed_credit_releases_the_claim(self):
        self.repo["update_profile_balance"].return_value = False

        with self.assertLogs("smm-panel", level="ERROR"):
            with self.assertRaises(HTTPException) as ctx:
                await payments_service.handle_cryptomus_webhook(_signed(_webhook()))

        self.assertEqual(ctx.exception.status_code, 500)
        self.repo["release_transaction"].assert_called_once_with("tx-new", 5.0)
