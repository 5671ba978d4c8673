"""
Dependency Injection Container

Holds the one instance of each component for the lifetime of the app and
stops the ones that own threads when the process shuts down.
"""

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DependencyNotFoundError(Exception):
    """Raised when attempting to resolve an unregistered dependency."""
    pass


class DependencyContainer:
    """
    Registry of application components, keyed by interface or class.

    Every registration resolves to a single shared instance. Components can be
    registered ready-made or as a factory that runs on first resolution.
    Registration order is remembered so shutdown() can stop components in
    reverse order: services before the infrastructure they depend on.
    """

    def __init__(self):
        self._instances: Dict[Type, Any] = {}
        self._factories: Dict[Type, Callable[[], Any]] = {}
        self._overrides: Dict[Type, Any] = {}
        self._order: List[Type] = []
        self._lock = threading.RLock()

    def register_singleton(self, interface: Type[T], implementation: T) -> None:
        """
        Register a ready-made instance.

        Example:
            container.register_singleton(IMetadataIndex, index)
        """
        with self._lock:
            self._remember(interface)
            self._factories.pop(interface, None)
            self._instances[interface] = implementation
        logger.debug(f"Registered {interface.__name__}")

    def register_factory(self, interface: Type[T], factory: Callable[[], T]) -> None:
        """
        Register a factory whose result is built once, on first resolve().

        The factory may itself resolve other registrations.
        """
        with self._lock:
            self._remember(interface)
            self._instances.pop(interface, None)
            self._factories[interface] = factory
        logger.debug(f"Registered factory for {interface.__name__}")

    def resolve(self, interface: Type[T]) -> T:
        """
        Return the instance registered for interface.

        Raises:
            DependencyNotFoundError: If nothing is registered for interface

        Example:
            transfer_service = container.resolve(TransferService)
        """
        with self._lock:
            if interface in self._overrides:
                return self._overrides[interface]
            if interface in self._instances:
                return self._instances[interface]
            factory = self._factories.get(interface)
            if factory is None:
                raise DependencyNotFoundError(
                    f"No registration found for type: {interface.__name__}"
                )
            # RLock: the factory may resolve its own dependencies
            instance = factory()
            self._instances[interface] = instance
            del self._factories[interface]
            return instance

    def try_resolve(self, interface: Type[T]) -> Optional[T]:
        """resolve(), or None when interface is not registered."""
        try:
            return self.resolve(interface)
        except DependencyNotFoundError:
            return None

    def override(self, interface: Type[T], implementation: T) -> None:
        """Shadow a registration, primarily for tests."""
        with self._lock:
            self._overrides[interface] = implementation

    def clear_overrides(self) -> None:
        with self._lock:
            self._overrides.clear()

    def is_registered(self, interface: Type) -> bool:
        with self._lock:
            return (
                interface in self._instances
                or interface in self._factories
                or interface in self._overrides
            )

    def registered_types(self) -> List[Type]:
        """Registered interfaces in registration order."""
        with self._lock:
            return list(self._order)

    def shutdown(self) -> None:
        """
        Stop every built component that has a shutdown() method, most recently
        registered first. Each instance is stopped once even when it is
        registered under several interfaces.
        """
        with self._lock:
            instances = [
                self._instances[interface]
                for interface in reversed(self._order)
                if interface in self._instances
            ]

        stopped = set()
        for instance in instances:
            stop = getattr(instance, "shutdown", None)
            if stop is None or id(instance) in stopped:
                continue
            stopped.add(id(instance))
            try:
                stop()
            except Exception as e:
                logger.error(f"Error shutting down {type(instance).__name__}: {e}", exc_info=True)

    def setup_event_handlers(self, event_publisher, handlers: Optional[Iterable[Any]] = None) -> None:
        """
        Subscribe infrastructure handlers to every domain event.

        handlers defaults to a LoggingEventHandler writing to the
        "secureshare.events" logger. Each handler needs a handle(event) method.
        """
        from ..domain.events import DomainEvent
        from ..infrastructure.event_handlers.logging_handler import LoggingEventHandler

        if handlers is None:
            handlers = [LoggingEventHandler(logging.getLogger("secureshare.events"))]

        for handler in handlers:
            event_publisher.subscribe(DomainEvent, handler.handle)
            logger.debug(f"Subscribed {type(handler).__name__} to domain events")

    def _remember(self, interface: Type) -> None:
        # Caller holds self._lock
        if interface not in self._order:
            self._order.append(interface)
