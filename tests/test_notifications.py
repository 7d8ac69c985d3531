from __future__ import annotations

import hashlib
import hmac
import json
import logging

import httpx
import pytest

from planner.config import Settings
from planner.services.notifications import (
    LoggingNotifier,
    NullNotifier,
    SkippedSessionNotice,
    WebhookNotifier,
    build_notifier,
    send_skipped_notice,
)

NOTICE = SkippedSessionNotice(session_id="s1", date="2024-01-01", label="Upper", next_date="2024-01-02")


def test_notice_text():
    assert NOTICE.title == "Workout skipped"
    assert NOTICE.body == "Upper on 2024-01-01 was skipped. Move it to 2024-01-02?"


@pytest.mark.asyncio
async def test_webhook_posts_signed_payload():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(202)

    notifier = WebhookNotifier("https://hooks.example.com/skip", secret="s3cret", transport=httpx.MockTransport(handler))
    assert await notifier.notify(NOTICE) is True

    [request] = captured
    body = request.content.decode()
    payload = json.loads(body)
    assert payload["event"] == "session.skipped"
    assert payload["data"] == {"session_id": "s1", "date": "2024-01-01", "label": "Upper", "next_date": "2024-01-02"}
    assert request.headers["X-Webhook-Event"] == "session.skipped"
    expected = hmac.new(b"s3cret", body.encode(), hashlib.sha256).hexdigest()
    assert request.headers["X-Webhook-Signature"] == expected


@pytest.mark.asyncio
async def test_webhook_without_secret_is_unsigned_and_reports_failure():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(500)

    notifier = WebhookNotifier("https://hooks.example.com/skip", transport=httpx.MockTransport(handler))
    assert await notifier.notify(NOTICE) is False
    assert "X-Webhook-Signature" not in captured[0].headers


@pytest.mark.asyncio
async def test_send_swallows_transport_errors(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    notifier = WebhookNotifier("https://hooks.example.com/skip", transport=httpx.MockTransport(handler))
    with caplog.at_level(logging.WARNING, logger="planner.services.notifications"):
        assert await send_skipped_notice(notifier, NOTICE) is False
    assert any(r.getMessage() == "notification_failed" for r in caplog.records)


@pytest.mark.asyncio
async def test_null_and_logging_notifiers():
    assert await NullNotifier().notify(NOTICE) is False
    assert await LoggingNotifier().notify(NOTICE) is True
    assert await send_skipped_notice(None, NOTICE) is False


def test_build_notifier_from_settings():
    assert isinstance(build_notifier(Settings(notifications_enabled=False)), NullNotifier)
    assert isinstance(build_notifier(Settings()), LoggingNotifier)
    webhook = build_notifier(Settings(notification_webhook_url="https://hooks.example.com", notification_webhook_secret="k"))
    assert isinstance(webhook, WebhookNotifier)
    assert webhook.secret == "k"
