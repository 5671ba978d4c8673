"""
Blob Store Interface

Abstract interface for physical payload storage.
This abstraction keeps the domain layer infrastructure-agnostic by defining
the contract for payload operations without depending on a specific storage
implementation.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Iterable

from .value_objects import FileId


class IBlobStore(ABC):
    """
    Interface for payload storage keyed by file identifier.

    Contract Guarantees:
    - write() never leaves a partial payload visible to open(), whether it
      fails on the size cap, on an I/O error or because the source stream
      aborted mid-transfer
    - open() streams the payload without loading it into memory
    - delete() is idempotent and reports whether it removed anything
    - Distinct identifiers never contend for the same location

    Read/Delete race:
    - A reader that opened the payload before a delete completes reads the
      full original content; a reader that opens afterwards gets
      BlobNotFoundError. Output is never truncated.
    """

    @abstractmethod
    def write(self, file_id: FileId, stream: BinaryIO) -> int:
        """
        Persist a payload.

        Args:
            file_id: Identifier to store the payload under
            stream: Binary source stream, read sequentially until exhausted

        Returns:
            Number of bytes stored

        Raises:
            PayloadTooLargeError: If the stream exceeds the size cap
            StorageError: If the payload could not be persisted
        """
        pass  # pragma: no cover

    @abstractmethod
    def open(self, file_id: FileId) -> BinaryIO:
        """
        Open a payload for sequential reading.

        The caller is responsible for closing the returned stream.

        Args:
            file_id: File identifier

        Returns:
            Binary stream positioned at the start of the payload

        Raises:
            BlobNotFoundError: If no payload is stored under the identifier
            StorageError: If the payload exists but cannot be opened
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, file_id: FileId) -> bool:
        """
        Delete a payload.

        Args:
            file_id: File identifier

        Returns:
            True if a payload was removed, False if it was already absent

        Raises:
            StorageError: If the payload exists but could not be removed
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, file_id: FileId) -> bool:
        """Check whether a payload is stored under the identifier."""
        pass  # pragma: no cover

    @abstractmethod
    def path_for(self, file_id: FileId) -> str:
        """Storage reference recorded in the descriptor."""
        pass  # pragma: no cover

    @abstractmethod
    def purge_orphans(self, live_ids: Iterable[FileId]) -> int:
        """
        Remove payloads and partial writes that have no live descriptor.

        Args:
            live_ids: Identifiers that must be kept

        Returns:
            Number of entries removed
        """
        pass  # pragma: no cover
