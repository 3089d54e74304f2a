"""In-process event bus adapter."""

import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class InMemoryEventBus:
    """
    Synchronous in-process event bus.

    Implements EventBus protocol. Handlers run in subscription order on the
    publishing thread; a failing handler is logged and does not stop the rest.
    """

    def __init__(self):
        self._handlers: dict[str, list[Callable[[Any], None]]] = {}

    def subscribe(self, topic: str, handler: Callable[[Any], None]) -> Callable[[], None]:
        """Register a handler. Returns a function that unsubscribes it."""
        self._handlers.setdefault(topic, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._handlers.get(topic, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def publish(self, topic: str, payload: Any = None) -> None:
        """Deliver payload to every handler subscribed to topic."""
        for handler in list(self._handlers.get(topic, [])):
            try:
                handler(payload)
            except Exception:
                logger.exception(f"Event handler for '{topic}' failed")

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, []))
