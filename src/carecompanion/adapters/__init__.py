"""Adapters - I/O implementations of ports."""

from .care_api import CareApiAdapter, ApiError, AuthenticationError
from .event_bus import InMemoryEventBus

__all__ = [
    "CareApiAdapter",
    "ApiError",
    "AuthenticationError",
    "InMemoryEventBus",
]
