"""Ports - interfaces/protocols for external dependencies."""

from .care_repo import CareRepository
from .event_bus import EventBus, DATA_CHANGED

__all__ = [
    "CareRepository",
    "EventBus",
    "DATA_CHANGED",
]
