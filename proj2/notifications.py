"""In-process publish/subscribe channel for order events."""
import logging
import threading
from collections import defaultdict

logger = logging.getLogger(__name__)

ORDER_CANCELLED = "orderCancelled"


class NotificationChannel:
    """
    Minimal event channel with ``on`` / ``off`` / ``emit``.

    Handlers are called synchronously, outside the lock, in subscription
    order. A failing handler is logged and does not stop the others.
    """

    def __init__(self):
        self._handlers = defaultdict(list)
        self._lock = threading.Lock()

    def on(self, event, handler):
        with self._lock:
            self._handlers[event].append(handler)

    def off(self, event, handler):
        with self._lock:
            handlers = self._handlers.get(event, [])
            if handler in handlers:
                handlers.remove(handler)

    def subscribers(self, event):
        with self._lock:
            return list(self._handlers.get(event, []))

    def emit(self, event, payload=None):
        """Deliver ``payload`` to every handler of ``event``; returns how many ran."""
        delivered = 0
        for handler in self.subscribers(event):
            try:
                handler(payload)
                delivered += 1
            except Exception:
                logger.exception("Handler for %s failed", event)
        return delivered
