"""
Typed publish/subscribe channel.

Subscribers are called synchronously in subscription order. A subscriber that
raises is logged and skipped; the remaining subscribers are still notified.
"""

import logging
from typing import Callable, Generic, List, TypeVar

T = TypeVar("T")

Unsubscribe = Callable[[], None]

logger = logging.getLogger(__name__)


class EventChannel(Generic[T]):
    def __init__(self, name: str):
        self.name = name
        self._subscribers: List[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        """
        Register a callback.

        Returns:
            Handle that removes this subscription; calling it twice is a no-op
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: T) -> int:
        """
        Deliver an event to every subscriber.

        Returns:
            Number of subscribers that handled the event without raising
        """
        delivered = 0
        for callback in list(self._subscribers):
            try:
                callback(event)
                delivered += 1
            except Exception as e:
                logger.error(f"Subscriber of '{self.name}' failed: {e}", exc_info=True)
        return delivered

    def clear(self) -> None:
        self._subscribers.clear()

    def __len__(self) -> int:
        return len(self._subscribers)
