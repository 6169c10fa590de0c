"""
User-facing notifications ("toasts") returned alongside API responses.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from enum import StrEnum


class NotificationVariant(StrEnum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    title: str
    description: str = ""
    variant: NotificationVariant = NotificationVariant.DEFAULT

    def as_dict(self) -> dict:
        data = asdict(self)
        data["variant"] = self.variant.value
        return data


def error_notification(title: str, description: str) -> Notification:
    return Notification(
        title=title, description=description, variant=NotificationVariant.DESTRUCTIVE
    )


GENERIC_FAILURE = error_notification(
    "Something went wrong", "An unexpected error occurred. Please try again."
)
OPTIMIZATION_FAILED = error_notification(
    "Optimization Failed",
    "An error occurred while optimizing your proposal. Please try again.",
)


class NotificationLog:
    """Collects notifications raised while handling one request."""

    def __init__(self):
        self._items: list[Notification] = []
        self._lock = threading.Lock()

    def push(self, notification: Notification) -> None:
        with self._lock:
            self._items.append(notification)

    def drain(self) -> list[Notification]:
        with self._lock:
            items, self._items = self._items, []
        return items

    def __len__(self) -> int:
        return len(self._items)
