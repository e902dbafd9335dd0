import unittest

from smm_api import (
    ProviderError,
    extract_order_id,
    format_service,
    map_status,
    normalize_comments,
    parse_balance,
)
from tests.helpers import RecordingPanel


class NormalizeCommentsTests(unittest.TestCase):
    def test_line_endings_are_canonicalized(self):
        self.assertEqual(normalize_comments("a\r\nb\rc"), "a\nb\nc")

    def test_surrounding_whitespace_is_trimmed(self):
        self.assertEqual(normalize_comments("  first\r\nsecond \r\n\r\n"), "first\nsecond")


class ResponseParsingTests(unittest.TestCase):
    def test_order_id_prefers_order_field(self):
        self.assertEqual(extract_order_id({"order": 123, "id": 9}), "123")

    def test_order_id_falls_back_to_id(self):
        self.assertEqual(extract_order_id({"id": "abc"}), "abc")

    def test_order_id_missing(self):
        self.assertEqual(extract_order_id({}), "")

    def test_order_id_from_non_object_reply(self):
        self.assertEqual(extract_order_id([{"order": 1}]), "")
        self.assertEqual(extract_order_id(42), "")

    def test_balance_and_currency(self):
        self.assertEqual(parse_balance({"balance": "12.5", "currency": "EUR"}), (12.5, "EUR"))

    def test_balance_defaults(self):
        self.assertEqual(parse_balance({}), (0.0, "USD"))

    def test_unparsable_balance_is_zero(self):
        self.assertEqual(parse_balance({"balance": "n/a", "currency": "TRY"}), (0.0, "TRY"))

    def test_balance_with_trailing_text(self):
        self.assertEqual(parse_balance({"balance": "12.5 USD"}), (12.5, "USD"))
        self.assertEqual(parse_balance({"balance": " 1e2abc"}), (100.0, "USD"))

    def test_balance_from_non_object_reply(self):
        self.assertEqual(parse_balance(["12.5"]), (0.0, "USD"))

    def test_status_mapping(self):
        self.assertEqual(map_status("In progress"), "in_progress")
        self.assertEqual(map_status("Canceled"), "cancelled")
        self.assertEqual(map_status("Error"), "failed")
        self.assertEqual(map_status("Awaiting  Moderation"), "awaiting_moderation")

    def test_format_service_defaults(self):
        formatted = format_service({"service": 7, "rate": "1.25", "average_time": 30})
        self.assertEqual(formatted["id"], "7")
        self.assertEqual(formatted["name"], "Service 7")
        self.assertEqual(formatted["category"], "Uncategorized")
        self.assertEqual(formatted["rate"], 1.25)
        self.assertEqual((formatted["min"], formatted["max"]), (1, 10000))
        self.assertEqual(formatted["speed"], "30")


class SmmProviderClientTests(unittest.IsolatedAsyncioTestCase):
    async def test_place_order_sends_add_action(self):
        panel = RecordingPanel({"order": 555})
        response = await panel.client().place_order("12", "https://insta.example/p/1", 100)

        self.assertEqual(response, {"order": 555})
        self.assertEqual(
            panel.requests,
            [
                {
                    "key": "secret-key",
                    "action": "add",
                    "service": "12",
                    "link": "https://insta.example/p/1",
                    "quantity": 100,
                }
            ],
        )

    async def test_comments_are_sent_only_when_given(self):
        panel = RecordingPanel({"order": 1})
        await panel.client().place_order("12", "link", 2, comments="a\nb")
        self.assertEqual(panel.requests[0]["comments"], "a\nb")

    async def test_error_field_raises(self):
        panel = RecordingPanel({"error": "Not enough funds on balance"})
        with self.assertRaises(ProviderError) as ctx:
            await panel.client().get_balance()
        self.assertEqual(ctx.exception.message, "Not enough funds on balance")
        self.assertEqual(panel.requests[0]["action"], "balance")

    async def test_status_joins_order_ids(self):
        panel = RecordingPanel({})
        await panel.client().get_order_status(["1", "2", "3"])
        self.assertEqual(panel.requests[0], {"key": "secret-key", "action": "status", "orders": "1,2,3"})

    async def test_services_must_be_a_list(self):
        panel = RecordingPanel({"services": []})
        with self.assertRaises(ProviderError):
            await panel.client().list_services()
