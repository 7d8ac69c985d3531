"""Best-effort notices sent when a session is skipped.

Delivery never affects the command that triggered it: failures are logged
and reported as ``False``.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from dataclasses import asdict, dataclass
from typing import Optional, Protocol

import httpx

from planner.config import Settings
from planner.logging_config import log_context

logger = logging.getLogger(__name__)

SKIPPED_EVENT = "session.skipped"


@dataclass(frozen=True)
class SkippedSessionNotice:
    session_id: str
    date: str
    label: str
    next_date: str

    @property
    def title(self) -> str:
        return "Workout skipped"

    @property
    def body(self) -> str:
        return f"{self.label} on {self.date} was skipped. Move it to {self.next_date}?"


class Notifier(Protocol):
    async def notify(self, notice: SkippedSessionNotice) -> bool: ...


class NullNotifier:
    """Used when notifications are not permitted."""

    async def notify(self, notice: SkippedSessionNotice) -> bool:
        return False


class LoggingNotifier:
    async def notify(self, notice: SkippedSessionNotice) -> bool:
        logger.info(notice.body, extra=log_context(event=SKIPPED_EVENT, session_id=notice.session_id))
        return True


def _sign_payload(payload: str, secret: str) -> str:
    """HMAC-SHA256 signature for webhook payload verification."""
    return hmac.new(secret.encode(), payload.encode(), hashlib.sha256).hexdigest()


class WebhookNotifier:
    def __init__(
        self,
        url: str,
        secret: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.secret = secret
        self.timeout = timeout
        self._transport = transport

    async def notify(self, notice: SkippedSessionNotice) -> bool:
        payload = json.dumps(
            {"event": SKIPPED_EVENT, "title": notice.title, "body": notice.body, "data": asdict(notice)},
            sort_keys=True,
        )
        headers = {"Content-Type": "application/json", "X-Webhook-Event": SKIPPED_EVENT}
        if self.secret:
            headers["X-Webhook-Signature"] = _sign_payload(payload, self.secret)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(self.url, content=payload, headers=headers)
        logger.info(
            "notification_dispatched",
            extra=log_context(session_id=notice.session_id, status=resp.status_code),
        )
        return resp.is_success


def build_notifier(settings: Settings) -> Notifier:
    if not settings.notifications_enabled:
        return NullNotifier()
    if settings.notification_webhook_url:
        return WebhookNotifier(settings.notification_webhook_url, settings.notification_webhook_secret)
    return LoggingNotifier()


async def send_skipped_notice(notifier: Optional[Notifier], notice: SkippedSessionNotice) -> bool:
    if notifier is None:
        return False
    try:
        return await notifier.notify(notice)
    except Exception as e:
        logger.warning(
            "notification_failed",
            extra=log_context(session_id=notice.session_id, error=str(e)),
        )
        return False
