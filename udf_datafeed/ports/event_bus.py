"""EventBus Port Interface.

Contract: fire-and-clear publish/subscribe keyed by event name.
"""
from __future__ import annotations
from typing import Any, Callable, Protocol

class EventBus(Protocol):
    def publish(self, event_name: str, payload: Any = None) -> int:
        """Notify and drain the subscribers of ``event_name``."""
        ...

    def subscribe(self, event_name: str, callback: Callable[[Any], None]) -> "EventBus":
        """Queue ``callback`` for the next publish of ``event_name``."""
        ...
