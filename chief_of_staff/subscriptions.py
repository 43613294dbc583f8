"""
Subscription Bus

Fan-out of state snapshots to registered callbacks. Framework-agnostic:
a UI layer, a websocket pusher or a test can all subscribe.
"""

from typing import Callable, Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class _Registration(Generic[T]):
    __slots__ = ("callback",)

    def __init__(self, callback: Callable[[T], None]):
        self.callback = callback


class SubscriptionBus(Generic[T]):
    """
    Ordered list of subscriber callbacks.

    - `notify` calls every callback synchronously, in registration order
    - A callback that raises is logged; the others still run
    - Each `subscribe` call is its own registration, so registering the
      same function twice gives two independent unsubscribe handles
    """

    def __init__(self):
        self._registrations: list[_Registration[T]] = []

    def __len__(self) -> int:
        return len(self._registrations)

    def subscribe(self, callback: Callable[[T], None]) -> Unsubscribe:
        """Register a callback; returns a function that removes it (idempotent)."""
        if not callable(callback):
            raise TypeError("callback must be callable")
        registration = _Registration(callback)
        self._registrations.append(registration)

        def unsubscribe() -> None:
            try:
                self._registrations.remove(registration)
            except ValueError:
                pass  # already removed

        return unsubscribe

    def notify(self, state: T) -> None:
        # Iterate over a copy: callbacks may unsubscribe while being notified
        for registration in tuple(self._registrations):
            try:
                registration.callback(state)
            except Exception as e:
                logger.error(
                    "subscriber_failed",
                    callback=getattr(registration.callback, "__qualname__", repr(registration.callback)),
                    error=str(e),
                    exc_info=True,
                )

    def clear(self) -> None:
        self._registrations.clear()
