"""
Notification bus for propagation events.

Hosts subscribe callbacks for the events they care about and deliver them
however they like (chat messages, logs, UI updates).
"""

import threading
import logging
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

# propagation_updated()
PROPAGATION_UPDATED = 'propagation_updated'
# signal_strength_changed(locator_a, locator_b, strength)
SIGNAL_STRENGTH_CHANGED = 'signal_strength_changed'
# muf_changed(muf)
MUF_CHANGED = 'muf_changed'
# external_data_updated(feed_id, success)
EXTERNAL_DATA_UPDATED = 'external_data_updated'

EVENT_TYPES = (
    PROPAGATION_UPDATED,
    SIGNAL_STRENGTH_CHANGED,
    MUF_CHANGED,
    EXTERNAL_DATA_UPDATED,
)


class EventBus:
    """Registers subscribers and delivers events to them."""

    def __init__(self):
        self.subscribers: Dict[str, List[Callable]] = {event: [] for event in EVENT_TYPES}
        self.lock = threading.Lock()

    def subscribe(self, event: str, callback: Callable):
        """Register a callback for an event."""
        if event not in self.subscribers:
            raise ValueError(f"Unknown event type: {event}")
        with self.lock:
            self.subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Callable) -> bool:
        """Remove a callback. Returns False if it was not registered."""
        with self.lock:
            callbacks = self.subscribers.get(event, [])
            if callback in callbacks:
                callbacks.remove(callback)
                return True
            return False

    def emit(self, event: str, *args):
        """Deliver an event to every subscriber; a failing subscriber is logged and skipped."""
        with self.lock:
            callbacks = list(self.subscribers.get(event, []))

        for callback in callbacks:
            try:
                callback(*args)
            except Exception as e:
                logger.error(f"Error in {event} subscriber {callback!r}: {e}")
