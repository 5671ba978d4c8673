"""
In-Memory Metadata Index

Concrete implementation of IMetadataIndex backed by a dict guarded by a lock.
Nothing survives a restart; the blob store purges leftover payloads at startup.
"""

import logging
import threading
from typing import Dict, List, Optional

from ..domain.errors import DuplicateIdentifierError
from ..domain.file_storage.entities import FileDescriptor
from ..domain.file_storage.repositories import IMetadataIndex
from ..domain.file_storage.value_objects import FileId

logger = logging.getLogger(__name__)


class InMemoryMetadataIndex(IMetadataIndex):
    """
    Thread-safe identifier -> descriptor table.

    The lock only covers the dict operation itself; no I/O ever happens
    while it is held. Descriptors are frozen, so handing out the stored
    instance never exposes a partially written record.
    """

    def __init__(self):
        self._entries: Dict[str, FileDescriptor] = {}
        self._lock = threading.Lock()

    def insert(self, descriptor: FileDescriptor) -> None:
        key = descriptor.file_id.value
        with self._lock:
            if key in self._entries:
                raise DuplicateIdentifierError(
                    f"File id already indexed: {descriptor.file_id.short()}"
                )
            self._entries[key] = descriptor
        logger.debug(f"Indexed file {descriptor.file_id.short()}")

    def lookup(self, file_id: FileId) -> Optional[FileDescriptor]:
        with self._lock:
            return self._entries.get(file_id.value)

    def remove(self, file_id: FileId) -> bool:
        with self._lock:
            removed = self._entries.pop(file_id.value, None)
        return removed is not None

    def snapshot(self) -> List[FileDescriptor]:
        with self._lock:
            return list(self._entries.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, file_id: FileId) -> bool:
        with self._lock:
            return file_id.value in self._entries
