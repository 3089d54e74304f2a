"""Event bus interface for cross-component notifications."""

from typing import Any, Callable, Protocol

# Published after any successful write; subscribers refetch and re-derive
DATA_CHANGED = "data-changed"

Handler = Callable[[Any], None]


class EventBus(Protocol):
    """Publish/subscribe channel between components."""

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """Register a handler. Returns a function that unsubscribes it."""
        ...

    def publish(self, topic: str, payload: Any = None) -> None:
        """Deliver payload to every handler subscribed to topic, in order."""
        ...
