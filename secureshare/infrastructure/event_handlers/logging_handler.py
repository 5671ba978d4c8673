"""
Logging Event Handler

Writes one log line per file lifecycle event. File ids are cut to their
first 8 characters.
"""

import logging
from typing import Callable, Dict, Tuple, Type

from ...domain.events import (
    DomainEvent,
    FileReclaimedEvent,
    FileStoredEvent,
    ReclamationFailedEvent,
)

# event type -> (level, message builder)
_FORMATS: Dict[Type[DomainEvent], Tuple[int, Callable[..., str]]] = {
    FileStoredEvent: (
        logging.INFO,
        lambda e: (
            f"File stored: file_id={e.short_id}, size={e.size_bytes} bytes, "
            f"expires_at={e.expires_at.isoformat()}"
        ),
    ),
    FileReclaimedEvent: (
        logging.INFO,
        lambda e: f"File reclaimed: file_id={e.short_id}, reason={e.reason}",
    ),
    ReclamationFailedEvent: (
        logging.ERROR,
        lambda e: f"Failed to reclaim file: file_id={e.short_id}, error={e.error_message}",
    ),
}


class LoggingEventHandler:
    """Subscribed to DomainEvent; unknown event types are logged at DEBUG."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def handle(self, event: DomainEvent) -> None:
        level, build = _FORMATS.get(
            type(event),
            (logging.DEBUG, lambda e: f"Event {type(e).__name__}: file_id={e.short_id}"),
        )
        self.logger.log(level, build(event))
