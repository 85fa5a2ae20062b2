"""Tests for the /webhook HTTP endpoint."""

import json

from fastapi.testclient import TestClient

from fakes import ScriptedLarkClient
from lark_relay.config import LarkConfig
from lark_relay.dispatch import BatchDispatcher, WebhookRelay
from lark_relay.models import AttemptResult, MinifluxWebhook
from lark_relay.retry import RetryController
from lark_relay.server import create_app, parse_notification

WEBHOOK_URL = "https://open.feishu.cn/open-apis/bot/v2/hook/test-hook"


def _payload(*titles: str) -> dict:
    return {
        "event_type": "new_entries",
        "feed": {"id": 1, "title": "Test Feed"},
        "entries": [
            {"id": index, "title": title, "url": f"https://a.example/{index}"}
            for index, title in enumerate(titles)
        ],
    }


class TestWebhookEndpoint:
    """Tests for POST /webhook."""

    def setup_method(self):
        """Set up the app around a scripted Lark client."""
        self.lark = ScriptedLarkClient(
            script={"broken": [AttemptResult.failed("status 400, response: bad")]}
        )
        config = LarkConfig(webhook_url=WEBHOOK_URL, message_interval=0)
        retry = RetryController(self.lark, config, sleep=lambda seconds: None)
        relay = WebhookRelay(BatchDispatcher(retry, config, sleep=lambda seconds: None))
        self.client = TestClient(create_app(relay))

    def test_all_delivered_returns_200(self):
        response = self.client.post("/webhook", json=_payload("one", "two"))

        assert response.status_code == 200
        assert self.lark.sent_titles == ["one", "two"]

    def test_any_failure_returns_500(self):
        response = self.client.post("/webhook", json=_payload("one", "broken", "three"))

        assert response.status_code == 500
        assert self.lark.sent_titles == ["one", "broken", "three"]

    def test_no_entries_returns_200(self):
        response = self.client.post("/webhook", json={"event_type": "new_entries", "entries": []})

        assert response.status_code == 200
        assert self.lark.sent_titles == []

    def test_deeply_nested_json_treated_as_empty(self):
        response = self.client.post(
            "/webhook",
            content=b"[" * 100_000,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert self.lark.sent_titles == []

    def test_invalid_json_treated_as_empty(self):
        response = self.client.post(
            "/webhook", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 200
        assert self.lark.sent_titles == []

    def test_get_not_allowed(self):
        assert self.client.get("/webhook").status_code == 405


class TestParseNotification:
    def test_empty_body(self):
        assert parse_notification(b"") == MinifluxWebhook()

    def test_valid_body(self):
        notification = parse_notification(json.dumps(_payload("x")).encode("utf-8"))

        assert [entry.title for entry in notification.entries] == ["x"]

    def test_non_utf8_body(self):
        assert parse_notification(b"\xff\xfe\x00") == MinifluxWebhook()

    def test_deeply_nested_body(self):
        body = b"[" * 100_000 + b"]" * 100_000

        assert parse_notification(body) == MinifluxWebhook()
