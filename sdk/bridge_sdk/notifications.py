"""
User-facing notification channel.

Mutations report success and failure here. Rendering layers subscribe and
show the messages; the cache never depends on this channel.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class Level(Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    Level.SUCCESS: logging.INFO,
    Level.INFO: logging.INFO,
    Level.WARNING: logging.WARNING,
    Level.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class Notification:
    level: Level
    message: str


Listener = Callable[[Notification], None]


class Notifier:
    """Publishes notifications to subscribers and keeps a short history.

    Example:
        >>> notifier = Notifier()
        >>> unsubscribe = notifier.subscribe(print)
        >>> notifier.success("Profile saved successfully")
    """

    def __init__(self, history_size: int = 50) -> None:
        self._listeners: list[Listener] = []
        self.history: deque[Notification] = deque(maxlen=history_size)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, level: Level, message: str) -> Notification:
        notification = Notification(level, message)
        self.history.append(notification)
        logger.log(_LOG_LEVELS[level], f"[{level.value}] {message}")
        for listener in list(self._listeners):
            listener(notification)
        return notification

    def success(self, message: str) -> Notification:
        return self.publish(Level.SUCCESS, message)

    def info(self, message: str) -> Notification:
        return self.publish(Level.INFO, message)

    def warning(self, message: str) -> Notification:
        return self.publish(Level.WARNING, message)

    def error(self, message: str) -> Notification:
        return self.publish(Level.ERROR, message)
