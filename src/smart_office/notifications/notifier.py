from __future__ import annotations

import logging
from typing import Protocol

from .model import NotificationEvent

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Receives event payloads; delivery (push, email) happens outside the engine."""

    def publish(self, event: NotificationEvent) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    def publish(self, event: NotificationEvent) -> None:
        logger.info("event %s user=%s payload=%s", event.kind.value, event.user_id, event.payload)


def publish_safely(notifier: Notifier, event: NotificationEvent) -> None:
    """Notification failures must not undo a committed decision."""
    try:
        notifier.publish(event)
    except Exception:
        logger.warning("Notifier failed for %s (user %s)", event.kind.value, event.user_id, exc_info=True)
