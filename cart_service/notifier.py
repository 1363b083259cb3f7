"""
Synchronous publish/subscribe for cart events.

publish() delivers to every listener, in subscription order, before it returns.
A listener that raises is logged and skipped; the rest still receive the event.
"""

import logging
from typing import Callable, List

from shared.events import BaseEvent

logger = logging.getLogger(__name__)

Listener = Callable[[BaseEvent], None]


class Subscription:
    """Handle returned by CartNotifier.subscribe()."""

    def __init__(self, notifier: "CartNotifier", listener: Listener):
        self._notifier = notifier
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if not self.active:
            return
        self._notifier._remove(self._listener)
        self.active = False


class CartNotifier:
    """Fan-out of cart events to the views that read the cart."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def publish(self, event: BaseEvent) -> int:
        """Deliver event to all listeners. Returns how many received it without error."""
        delivered = 0
        # Listeners may unsubscribe while handling; iterate a copy
        for listener in list(self._listeners):
            try:
                listener(event)
                delivered += 1
            except Exception:
                logger.exception(
                    "Cart listener failed",
                    extra={"event_type": event.event_type},
                )
        logger.debug(
            f"Published {event.event_type} to {delivered} listener(s)",
            extra={"event_type": event.event_type},
        )
        return delivered
