"""
Event bus and lifecycle milestones.

``EventBus`` is a fire-and-clear publish/subscribe mechanism: a publish
notifies the callbacks queued for that event name and then forgets them.
``Milestone`` builds a single-resolution value on top of it, so consumers
that arrive after the event fired still receive the value.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Callback = Callable[[Any], None]


class EventBus:
    """
    Per-event-name callback queues.

    - ``subscribe`` appends to the queue of an event name.
    - ``publish`` calls the queued callbacks in registration order,
      synchronously, then clears the ones it called.

    Callback errors are not caught. A raising callback aborts the remaining
    notifications of that publish and leaves the queue as it was.
    """

    def __init__(self) -> None:
        self._callbacks: dict[str, list[Callback]] = {}

    def subscribe(self, event_name: str, callback: Callback) -> EventBus:
        """Queue ``callback`` for the next publish of ``event_name``."""
        self._callbacks.setdefault(event_name, []).append(callback)
        return self

    def publish(self, event_name: str, payload: Any = None) -> int:
        """
        Notify and drain the queue of ``event_name``.

        Returns the number of callbacks notified.
        """
        queue = self._callbacks.get(event_name)
        if not queue:
            return 0

        # Callbacks queued while publishing wait for the next publish
        snapshot = list(queue)
        for callback in snapshot:
            callback(payload)
        del queue[: len(snapshot)]

        logger.debug(f"Published {event_name} to {len(snapshot)} subscriber(s)")
        return len(snapshot)

    def pending(self, event_name: str) -> int:
        """Number of callbacks waiting for ``event_name``."""
        return len(self._callbacks.get(event_name, ()))


class Milestone(Generic[T]):
    """
    A value that is resolved at most once and announced on the bus.

    Consumers registered before resolution are queued on the bus under
    ``event_name``; consumers registered afterwards are called immediately
    with the stored value.

    Usage:
        ready: Milestone[Config] = Milestone(bus, "configuration_ready")
        ready.then(lambda cfg: print(cfg))
        ready.resolve(config)
        cfg = await ready.wait()
    """

    def __init__(self, bus: EventBus, event_name: str) -> None:
        self._bus = bus
        self._event_name = event_name
        self._resolved = False
        self._value: Optional[T] = None

    @property
    def event_name(self) -> str:
        return self._event_name

    @property
    def is_resolved(self) -> bool:
        return self._resolved

    @property
    def value(self) -> Optional[T]:
        """Resolved value, or None while pending."""
        return self._value

    def resolve(self, value: T) -> bool:
        """
        Store ``value`` and notify pending consumers.

        Returns False (and changes nothing) if already resolved.
        """
        if self._resolved:
            logger.warning(f"Milestone {self._event_name} already resolved; ignoring")
            return False

        self._resolved = True
        self._value = value
        self._bus.publish(self._event_name, value)
        return True

    def then(self, callback: Callable[[T], None]) -> None:
        """Call ``callback`` with the value now if resolved, otherwise once it is."""
        if self._resolved:
            callback(self._value)  # type: ignore[arg-type]
        else:
            self._bus.subscribe(self._event_name, callback)

    async def wait(self) -> T:
        """Await the resolved value. Safe to call any number of times."""
        if self._resolved:
            return self._value  # type: ignore[return-value]

        future: asyncio.Future[T] = asyncio.get_running_loop().create_future()

        def _set(value: T) -> None:
            if not future.done():
                future.set_result(value)

        self._bus.subscribe(self._event_name, _set)
        return await future
