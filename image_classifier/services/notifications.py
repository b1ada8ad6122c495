"""Register-once, deliver-many notification channel with subscription handles."""

import itertools
import threading
from typing import Callable, Dict, Generic, Optional, TypeVar

from ..logging_config import get_logger

logger = get_logger("notifications")

T = TypeVar("T")


class Subscription:
    """Handle returned by ``subscribe``; ``cancel()`` stops delivery."""

    def __init__(self, cancel: Callable[[], None], name: str = ""):
        self._cancel = cancel
        self._lock = threading.Lock()
        self._active = True
        self.name = name

    @property
    def active(self) -> bool:
        with self._lock:
            return self._active

    def cancel(self) -> None:
        """Stop delivery. Safe to call more than once."""
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._cancel()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()


class NotificationChannel(Generic[T]):
    """Fan-out of messages to registered callbacks.

    A failing subscriber is logged and does not prevent delivery to the
    others.
    """

    def __init__(self, name: str = "channel"):
        self.name = name
        self._subscribers: Dict[int, Callable[[T], None]] = {}
        self._ids = itertools.count()
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[T], None], name: Optional[str] = None) -> Subscription:
        """Register a callback and return its subscription handle."""
        with self._lock:
            key = next(self._ids)
            self._subscribers[key] = callback

        def _cancel():
            with self._lock:
                self._subscribers.pop(key, None)

        return Subscription(_cancel, name or f"{self.name}#{key}")

    def publish(self, message: T) -> int:
        """Deliver a message to every subscriber; returns the delivery count."""
        with self._lock:
            callbacks = list(self._subscribers.values())

        delivered = 0
        for callback in callbacks:
            try:
                callback(message)
                delivered += 1
            except Exception as e:
                logger.error(f"Subscriber of {self.name} failed: {e}", exc_info=True)
        return delivered

    def clear(self) -> None:
        """Drop every subscriber."""
        with self._lock:
            self._subscribers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)
