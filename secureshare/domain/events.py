"""
Domain Events

Immutable records of file lifecycle changes, published by TransferService
and consumed by infrastructure handlers such as the event logger.
"""

from abc import ABC
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Base class for all domain events.

    Attributes:
        aggregate_id: The file id the event is about
        occurred_at: When it happened (UTC)
    """
    aggregate_id: str
    occurred_at: datetime

    @property
    def short_id(self) -> str:
        """Loggable prefix of the file id; the full id is a download credential."""
        return self.aggregate_id[:8]

    def to_dict(self) -> Dict[str, Any]:
        """Every field, datetimes as ISO 8601 strings, plus the event type."""
        data: Dict[str, Any] = {"event_type": type(self).__name__}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = value.isoformat() if isinstance(value, datetime) else value
        return data


@dataclass(frozen=True)
class FileStoredEvent(DomainEvent):
    """A payload was ingested and its expiry armed."""
    size_bytes: int
    expires_at: datetime


@dataclass(frozen=True)
class FileReclaimedEvent(DomainEvent):
    """
    An item's descriptor and payload were removed.

    reason is "expired", "deleted" or "missing_blob".
    """
    reason: str


@dataclass(frozen=True)
class ReclamationFailedEvent(DomainEvent):
    """Removing a payload failed; a retry has been or will be armed."""
    error_message: str
