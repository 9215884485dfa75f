"""
Lifecycle events - Named extension points with synchronous observers.

Observers are called in registration order. They may have side effects of
their own, but a failing observer never changes the result of the
operation that triggered it: the exception is logged and the next
observer runs.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

Observer = Callable[["Event", dict[str, Any]], None]


class Event(str, Enum):
    """Extension points fired by the registration services."""

    BEFORE_REGISTER = "before_register"
    AFTER_REGISTER = "after_register"
    BEFORE_CONNECT = "before_connect"
    AFTER_CONNECT = "after_connect"
    BEFORE_CONFIRMATION = "before_confirmation"
    AFTER_CONFIRMATION = "after_confirmation"
    BEFORE_RESEND = "before_resend"
    AFTER_RESEND = "after_resend"


class EventDispatcher:
    """Registry of observers keyed by event."""

    def __init__(self) -> None:
        self._observers: dict[Event, list[Observer]] = defaultdict(list)

    def on(self, event: Event, observer: Observer) -> None:
        """Register an observer for an event."""
        self._observers[event].append(observer)

    def trigger(self, event: Event, **payload: Any) -> None:
        """
        Notify every observer of the event, in registration order.

        Args:
            event: The extension point being reached
            **payload: Context passed to observers (user, account, email...)
        """
        for observer in list(self._observers[event]):
            try:
                observer(event, payload)
            except Exception:
                logger.exception("Observer %r failed on %s", observer, event.value)
