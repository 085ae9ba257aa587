"""Outbound sinks: cache invalidation and user notifications."""

import logging
from abc import ABC, abstractmethod

from movekit.domain.entities import NotificationKind

logger = logging.getLogger(__name__)

# Read models refreshed after every successful movement write
MOVEMENT_CACHE_TAGS = (
    "movements",
    "movement-view",
    "wallet-balances",
    "financial-summary",
    "installments",
    "movement-tasks",
)


class CacheInvalidator(ABC):
    """Receives cache tags whose read models are stale."""

    @abstractmethod
    def invalidate(self, tag: str) -> None:
        """Mark the read models behind ``tag`` as stale."""
        pass


class Notifier(ABC):
    """Shows a message to the user."""

    @abstractmethod
    def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        """Deliver one notification."""
        pass


class LoggingInvalidator(CacheInvalidator):
    """Invalidator for processes with no cache; records the tags in the log."""

    def invalidate(self, tag: str) -> None:
        logger.debug("Invalidated cache tag %s", tag)


class RecordingInvalidator(CacheInvalidator):
    """Keeps every invalidated tag, in order."""

    def __init__(self):
        self.tags: list[str] = []

    def invalidate(self, tag: str) -> None:
        self.tags.append(tag)


class LoggingNotifier(Notifier):
    def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        level = logging.INFO if kind == NotificationKind.SUCCESS else logging.ERROR
        logger.log(level, "%s: %s", title, message)


class RecordingNotifier(Notifier):
    """Keeps every notification as a (kind, title, message) tuple."""

    def __init__(self):
        self.notifications: list[tuple[NotificationKind, str, str]] = []

    def notify(self, kind: NotificationKind, title: str, message: str) -> None:
        self.notifications.append((kind, title, message))


def invalidate_movement_caches(invalidator: CacheInvalidator) -> None:
    """Send every movement cache tag; a failing sink never fails the write."""
    for tag in MOVEMENT_CACHE_TAGS:
        try:
            invalidator.invalidate(tag)
        except Exception:
            logger.exception("Cache invalidation failed for tag %s", tag)
