"""Outbound onboarding events for the external workflow engine.

The onboarding service calls `notify()` after a state change has been
flushed. Delivery is best effort: a failed webhook is logged and the
request carries on.
"""

import logging
from datetime import datetime, timezone

import httpx

from provider_portal.config import settings

logger = logging.getLogger(__name__)

DOCUMENT_UPLOADED = "document.uploaded"
ONBOARDING_COMPLETED = "onboarding.completed"


class OnboardingNotifier:
    """No-op notifier; also the interface the others implement."""

    async def notify(self, event: str, payload: dict) -> None:
        return None


class WebhookNotifier(OnboardingNotifier):
    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def notify(self, event: str, payload: dict) -> None:
        body = {
            "event": event,
            "sentAt": datetime.now(timezone.utc).isoformat(),
            "data": payload,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                res = await client.post(self.url, json=body)
            res.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                f"Webhook delivery failed for {event}: {e}",
                extra={"event": event, "url": self.url},
            )


class RecordingNotifier(OnboardingNotifier):
    """Keeps every event in memory (tests, local debugging)."""

    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    async def notify(self, event: str, payload: dict) -> None:
        self.events.append((event, payload))


def get_notifier() -> OnboardingNotifier:
    """FastAPI dependency."""
    if settings.onboarding_webhook_url:
        return WebhookNotifier(
            settings.onboarding_webhook_url,
            timeout=settings.webhook_timeout_seconds,
        )
    return OnboardingNotifier()
