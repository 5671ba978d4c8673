"""
Transfer Application Service

Coordinates the file lifecycle: ingest, fetch, describe and reclamation.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, BinaryIO, Callable, Dict, Optional, Tuple, Union

from ..domain.errors import BlobNotFoundError, NotFoundError, StorageError, ValidationError
from ..domain.events import FileReclaimedEvent, FileStoredEvent, ReclamationFailedEvent
from ..domain.file_storage.entities import FileDescriptor, utc_now
from ..domain.file_storage.repositories import IMetadataIndex
from ..domain.file_storage.scheduler import IExpirationScheduler
from ..domain.file_storage.storage_repository import IBlobStore
from ..domain.file_storage.value_objects import FileId, IdentifierGenerator
from .event_publisher import EventPublisher

logger = logging.getLogger(__name__)

FileIdLike = Union[str, FileId]


class TransferService:
    """
    Application service used by the request handlers.

    Owns no state of its own: the metadata index is the single source of
    truth for which items are live, the blob store holds the bytes, and the
    scheduler holds one pending expiry per live item.

    Reclamation order is index first, blob second. Whoever removes the index
    entry is the one successful reclamation; every other attempt sees
    "already gone". Blob deletion is idempotent, so retries after a failed
    deletion are safe.
    """

    def __init__(
        self,
        index: IMetadataIndex,
        blob_store: IBlobStore,
        scheduler: IExpirationScheduler,
        id_generator: IdentifierGenerator,
        ttl: timedelta,
        event_publisher: Optional[EventPublisher] = None,
        retry_delay: timedelta = timedelta(seconds=30),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize TransferService with its collaborators.

        Args:
            index: Metadata index shared with nothing else
            blob_store: Payload storage
            scheduler: Expiration scheduler
            id_generator: Identifier source
            ttl: Lifetime of every stored item
            event_publisher: Receives lifecycle events, optional
            retry_delay: Delay before retrying a failed explicit deletion
            clock: Source of the current UTC time
        """
        if ttl <= timedelta(0):
            raise ValueError(f"ttl must be positive, got {ttl}")

        self.index = index
        self.blob_store = blob_store
        self.scheduler = scheduler
        self.id_generator = id_generator
        self.ttl = ttl
        self.event_publisher = event_publisher
        self.retry_delay = retry_delay
        self._clock = clock or utc_now

    def ingest(
        self,
        stream: Optional[BinaryIO],
        original_name: Optional[str] = None,
        media_type: Optional[str] = None,
    ) -> FileDescriptor:
        """
        Store a payload and arm its expiry.

        Either every step succeeds or nothing is left behind: no descriptor,
        no pending expiry, no payload.

        Args:
            stream: Binary payload stream
            original_name: Caller-supplied display name
            media_type: Caller-declared content type

        Returns:
            Descriptor of the stored item

        Raises:
            ValidationError: If no payload was supplied
            PayloadTooLargeError: If the payload exceeds the size cap
            StorageError: If the payload could not be persisted
        """
        if stream is None:
            raise ValidationError("No file uploaded")

        file_id = self.id_generator.new_id()
        size_bytes = self.blob_store.write(file_id, stream)

        descriptor = FileDescriptor.create(
            file_id=file_id,
            size_bytes=size_bytes,
            storage_ref=self.blob_store.path_for(file_id),
            ttl=self.ttl,
            original_name=original_name,
            media_type=media_type,
            now=self._clock(),
        )

        try:
            self.index.insert(descriptor)
        except Exception:
            self._discard_blob(file_id)
            raise

        try:
            self.scheduler.arm(file_id, descriptor.expires_at, self._expire)
        except Exception:
            self.index.remove(file_id)
            self._discard_blob(file_id)
            raise

        self._publish(FileStoredEvent(
            aggregate_id=file_id.value,
            occurred_at=descriptor.created_at,
            size_bytes=size_bytes,
            expires_at=descriptor.expires_at,
        ))
        return descriptor

    def describe(self, file_id: FileIdLike) -> FileDescriptor:
        """
        Metadata-only lookup.

        An item past its deadline whose timer has not fired yet is reclaimed
        here and reported as not found.

        Raises:
            NotFoundError: If the id is unknown, malformed or expired
        """
        fid = self._parse_id(file_id)
        descriptor = self.index.lookup(fid)
        if descriptor is None:
            raise NotFoundError("File not found or has expired")

        if descriptor.is_expired(self._clock()):
            self._reclaim_overdue(fid)
            raise NotFoundError("File not found or has expired")

        return descriptor

    def fetch(self, file_id: FileIdLike) -> Tuple[FileDescriptor, BinaryIO]:
        """
        Look up an item and open its payload.

        The caller owns the returned stream and must close it.

        Raises:
            NotFoundError: If the id is unknown, malformed or expired, or its
                payload vanished (the dangling descriptor is then removed)
            StorageError: If the payload exists but cannot be opened
        """
        descriptor = self.describe(file_id)
        fid = descriptor.file_id

        try:
            stream = self.blob_store.open(fid)
        except BlobNotFoundError:
            logger.warning(f"Payload missing for indexed file {fid.short()}, removing descriptor")
            if self.index.remove(fid):
                self.scheduler.cancel(fid)
                self._publish(FileReclaimedEvent(
                    aggregate_id=fid.value,
                    occurred_at=self._clock(),
                    reason="missing_blob",
                ))
            raise NotFoundError("File not found or has expired")

        return descriptor, stream

    def delete(self, file_id: FileIdLike) -> bool:
        """
        Reclaim an item before its deadline.

        Returns:
            True if this call reclaimed the item, False if it was already gone

        Raises:
            StorageError: If the payload could not be removed; a retry is armed
        """
        if not isinstance(file_id, FileId) and not FileId.is_valid(file_id):
            return False
        fid = self._parse_id(file_id)

        self.scheduler.cancel(fid)
        try:
            return self.reclaim(fid, reason="deleted")
        except StorageError:
            self._arm_retry(fid)
            raise

    def reclaim(self, file_id: FileId, reason: str = "expired") -> bool:
        """
        Remove an item's descriptor and payload. Idempotent.

        Args:
            file_id: File identifier
            reason: Recorded in the lifecycle event

        Returns:
            True if this call removed the descriptor

        Raises:
            StorageError: If the payload could not be removed
        """
        removed = self.index.remove(file_id)

        try:
            blob_removed = self.blob_store.delete(file_id)
        except StorageError as e:
            self._publish(ReclamationFailedEvent(
                aggregate_id=file_id.value,
                occurred_at=self._clock(),
                error_message=str(e),
            ))
            raise

        if removed:
            self._publish(FileReclaimedEvent(
                aggregate_id=file_id.value,
                occurred_at=self._clock(),
                reason=reason,
            ))
        elif blob_removed:
            logger.info(f"Removed leftover payload for {file_id.short()}")

        return removed

    def recover(self) -> int:
        """
        Remove payloads left behind by a previous process.

        Returns:
            Number of orphaned entries removed
        """
        live_ids = [descriptor.file_id for descriptor in self.index.snapshot()]
        count = self.blob_store.purge_orphans(live_ids)
        if count:
            logger.info(f"Purged {count} orphaned payload(s)")
        return count

    def stats(self) -> Dict[str, Any]:
        """Live item and pending expiry counts."""
        return {
            "files": len(self.index),
            "pending_expiries": self.scheduler.pending_count(),
        }

    def _expire(self, file_id: FileId) -> bool:
        # Scheduler callback; errors propagate so the scheduler retries
        return self.reclaim(file_id, reason="expired")

    def _reclaim_overdue(self, file_id: FileId) -> None:
        self.scheduler.cancel(file_id)
        try:
            self.reclaim(file_id, reason="expired")
        except StorageError as e:
            logger.warning(f"Could not reclaim overdue file {file_id.short()}: {e}")
            self._arm_retry(file_id)

    def _arm_retry(self, file_id: FileId) -> None:
        self.scheduler.arm(file_id, self._clock() + self.retry_delay, self._expire)

    def _discard_blob(self, file_id: FileId) -> None:
        """Roll back a written payload after a later ingest step failed."""
        try:
            self.blob_store.delete(file_id)
        except StorageError as e:
            logger.error(f"Failed to roll back payload for {file_id.short()}: {e}")
            self._arm_retry(file_id)

    def _parse_id(self, file_id: FileIdLike) -> FileId:
        if isinstance(file_id, FileId):
            return file_id
        if not FileId.is_valid(file_id):
            raise NotFoundError("File not found or has expired")
        return FileId(file_id)

    def _publish(self, event) -> None:
        if self.event_publisher is not None:
            self.event_publisher.publish(event)
