"""
Local Blob Store Implementation

Concrete implementation of IBlobStore for the local filesystem.
Payloads live at <base_path>/<file_id>; in-flight uploads are written under
<base_path>/.partial/ and renamed into place only once complete.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterable

from ..domain.errors import BlobNotFoundError, PayloadTooLargeError, StorageError
from ..domain.file_storage.storage_repository import IBlobStore
from ..domain.file_storage.value_objects import FileId

logger = logging.getLogger(__name__)

PARTIAL_DIR_NAME = ".partial"
DEFAULT_CHUNK_SIZE = 64 * 1024


class LocalBlobStore(IBlobStore):
    """
    Local filesystem implementation of IBlobStore.

    Thread Safety:
        Identifiers are unique and write-once, so concurrent operations on
        different identifiers touch different paths. Completed payloads appear
        through os.replace(), which is atomic within one filesystem, so a
        reader sees either nothing or the whole file.

    Read/Delete race:
        Deleting unlinks the path. A stream opened before the unlink keeps
        reading the complete original content; an open() after it raises
        BlobNotFoundError.

    Attributes:
        base_path: Directory holding completed payloads
        partial_path: Directory holding uploads in progress
        max_bytes: Upload size cap
    """

    def __init__(
        self,
        base_path: str,
        max_bytes: int,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """
        Initialize the blob store and create its directories.

        Args:
            base_path: Directory for stored payloads
            max_bytes: Maximum payload size in bytes
            chunk_size: Copy buffer size
        """
        if max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {max_bytes}")

        self.base_path = Path(base_path)
        self.partial_path = self.base_path / PARTIAL_DIR_NAME
        self.max_bytes = max_bytes
        self.chunk_size = chunk_size
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """
        Ensure the storage directories exist.

        Raises:
            PermissionError: If insufficient permissions to create directory
            OSError: If directory creation fails for other reasons
        """
        try:
            self.partial_path.mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise PermissionError(
                f"Insufficient permissions to create storage directory: {self.base_path}"
            ) from e
        except OSError as e:
            raise OSError(
                f"Failed to create storage directory: {self.base_path}"
            ) from e

    def _final_path(self, file_id: FileId) -> Path:
        # FileId only admits hex characters, so this never escapes base_path
        return self.base_path / file_id.value

    # IBlobStore interface methods

    def write(self, file_id: FileId, stream: BinaryIO) -> int:
        final_path = self._final_path(file_id)
        if final_path.exists():
            raise StorageError(f"Payload already stored for {file_id.short()}")

        try:
            fd, temp_name = tempfile.mkstemp(
                prefix=f"{file_id.value}.", dir=self.partial_path
            )
        except OSError as e:
            raise StorageError(f"Failed to create temporary file: {e}", e) from e

        temp_path = Path(temp_name)
        committed = False
        size = 0
        try:
            with os.fdopen(fd, "wb") as out:
                while True:
                    chunk = stream.read(self.chunk_size)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise PayloadTooLargeError(self.max_bytes)
                    out.write(chunk)
                out.flush()
                os.fsync(out.fileno())
            os.replace(temp_path, final_path)
            committed = True
        except OSError as e:
            raise StorageError(f"Failed to store payload: {e}", e) from e
        finally:
            if not committed:
                self._discard(temp_path)

        logger.debug(f"Stored {size} bytes for {file_id.short()}")
        return size

    def open(self, file_id: FileId) -> BinaryIO:
        try:
            return open(self._final_path(file_id), "rb")
        except FileNotFoundError as e:
            raise BlobNotFoundError(f"No payload for {file_id.short()}", e) from e
        except OSError as e:
            raise StorageError(f"Failed to open payload: {e}", e) from e

    def delete(self, file_id: FileId) -> bool:
        try:
            self._final_path(file_id).unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete payload: {e}", e) from e
        return True

    def exists(self, file_id: FileId) -> bool:
        return self._final_path(file_id).is_file()

    def path_for(self, file_id: FileId) -> str:
        return str(self._final_path(file_id))

    def purge_orphans(self, live_ids: Iterable[FileId]) -> int:
        keep = {file_id.value for file_id in live_ids}
        count = 0

        for item in self.partial_path.iterdir():
            if self._discard(item):
                count += 1

        for item in self.base_path.iterdir():
            if item.name == PARTIAL_DIR_NAME or not item.is_file():
                continue
            if item.name in keep:
                continue
            if self._discard(item):
                logger.info(f"Removed orphaned payload: {item.name[:8]}")
                count += 1

        return count

    def _discard(self, path: Path) -> bool:
        """Best-effort removal of a temporary or orphaned file."""
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Could not remove {path.name}: {e}")
            return False
