"""
Event Publisher

Synchronous in-process dispatch of domain events to subscribed handlers.
"""

import logging
from threading import Lock
from typing import Callable, Dict, List, Type

from ..domain.events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class EventPublisher:
    """
    Delivers each published event to the handlers subscribed to its class or
    any base class, in subscription order.

    A handler that raises is logged and skipped; the publisher never fails
    the operation that produced the event.
    """

    def __init__(self):
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = {}
        self._lock = Lock()

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Subscribed {_name(handler)} to {event_type.__name__}")

    def unsubscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> bool:
        """
        Remove one subscription.

        Returns:
            True if handler was subscribed to event_type
        """
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler not in handlers:
                return False
            handlers.remove(handler)
            return True

    def publish(self, event: DomainEvent) -> None:
        with self._lock:
            handlers = [
                handler
                for klass in type(event).__mro__
                for handler in self._handlers.get(klass, ())
            ]

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Handler {_name(handler)} failed for {type(event).__name__}: {e}",
                    exc_info=True,
                )


def _name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)
