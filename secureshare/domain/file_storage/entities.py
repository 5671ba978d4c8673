"""
File Storage Entities

Domain entities for stored file management.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from .value_objects import FileId

DEFAULT_ORIGINAL_NAME = "unknown"
DEFAULT_MEDIA_TYPE = "application/octet-stream"


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FileDescriptor:
    """
    Entity describing one stored payload.

    Descriptors are never edited in place; an item is either replaced or
    deleted, so the instance is frozen.
    """
    file_id: FileId
    original_name: str
    media_type: str
    size_bytes: int
    created_at: datetime
    storage_ref: str
    expires_at: datetime

    @classmethod
    def create(
        cls,
        file_id: FileId,
        size_bytes: int,
        storage_ref: str,
        ttl: timedelta,
        original_name: Optional[str] = None,
        media_type: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "FileDescriptor":
        """
        Factory method to create a descriptor for a freshly stored payload.

        Args:
            file_id: Identifier assigned to the payload
            size_bytes: Measured payload size
            storage_ref: Location of the persisted payload
            ttl: Time to live
            original_name: Caller-supplied display name (untrusted)
            media_type: Caller-declared content type (untrusted)
            now: Creation time, defaults to the current UTC time

        Returns:
            New FileDescriptor instance
        """
        created_at = now or utc_now()
        return cls(
            file_id=file_id,
            original_name=original_name or DEFAULT_ORIGINAL_NAME,
            media_type=media_type or DEFAULT_MEDIA_TYPE,
            size_bytes=size_bytes,
            created_at=created_at,
            storage_ref=storage_ref,
            expires_at=created_at + ttl,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """
        Check if the item has reached its deadline.

        Returns:
            True if expired, False otherwise
        """
        return (now or utc_now()) >= self.expires_at

    def get_remaining_seconds(self, now: Optional[datetime] = None) -> int:
        """
        Get remaining seconds until expiration.

        Returns:
            Seconds remaining (0 if expired)
        """
        remaining = self.expires_at - (now or utc_now())
        return max(0, int(remaining.total_seconds()))

    def to_public_dict(self) -> dict:
        """Public fields exposed by the info endpoint."""
        return {
            "originalName": self.original_name,
            "uploadDate": self.created_at.isoformat(),
            "size": self.size_bytes,
            "mimeType": self.media_type,
            "expiresAt": self.expires_at.isoformat(),
        }
