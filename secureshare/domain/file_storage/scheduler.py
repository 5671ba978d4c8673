"""
Expiration Scheduler Interface

Abstract interface for deferred, cancelable, one-shot reclamation work.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable

from .value_objects import FileId

ExpiryCallback = Callable[[FileId], object]


class IExpirationScheduler(ABC):
    """
    Interface for per-item expiry timers.

    Contract Guarantees:
    - At most one pending registration per identifier
    - A registration fires once, at or after its deadline
    - cancel() is idempotent and never raises for unknown identifiers
    - A failing callback never delays or aborts other callbacks
    """

    @abstractmethod
    def arm(self, file_id: FileId, expires_at: datetime, on_fire: ExpiryCallback) -> None:
        """
        Register a one-shot callback for a deadline.

        Re-arming an identifier replaces its previous registration.

        Args:
            file_id: File identifier
            expires_at: Deadline
            on_fire: Callable invoked with the identifier once the deadline passes
        """
        pass  # pragma: no cover

    @abstractmethod
    def cancel(self, file_id: FileId) -> bool:
        """
        Remove a pending registration.

        Args:
            file_id: File identifier

        Returns:
            True if a pending registration was removed, False otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def is_armed(self, file_id: FileId) -> bool:
        pass  # pragma: no cover

    @abstractmethod
    def pending_count(self) -> int:
        pass  # pragma: no cover
