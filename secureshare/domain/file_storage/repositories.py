"""
File Storage Repositories

Repository interface for file metadata.
Concrete implementations are in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .entities import FileDescriptor
from .value_objects import FileId


class IMetadataIndex(ABC):
    """
    Abstract interface for the metadata index.

    The index is the single source of truth for which identifiers are live.
    Every operation must be atomic with respect to every other operation on
    the same index, so that concurrent removals of one identifier yield
    exactly one True.
    """

    @abstractmethod
    def insert(self, descriptor: FileDescriptor) -> None:
        """
        Insert a descriptor under its identifier.

        Args:
            descriptor: Descriptor to insert

        Raises:
            DuplicateIdentifierError: If the identifier is already present
        """
        pass  # pragma: no cover

    @abstractmethod
    def lookup(self, file_id: FileId) -> Optional[FileDescriptor]:
        """
        Retrieve a descriptor.

        Args:
            file_id: File identifier

        Returns:
            FileDescriptor if present, None otherwise
        """
        pass  # pragma: no cover

    @abstractmethod
    def remove(self, file_id: FileId) -> bool:
        """
        Remove a descriptor.

        Args:
            file_id: File identifier

        Returns:
            True if an entry was removed, False if it was already gone
        """
        pass  # pragma: no cover

    @abstractmethod
    def snapshot(self) -> List[FileDescriptor]:
        """
        Copy of all live descriptors at one instant.

        Returns:
            List of FileDescriptor instances
        """
        pass  # pragma: no cover

    @abstractmethod
    def __len__(self) -> int:
        pass  # pragma: no cover

    def __contains__(self, file_id: FileId) -> bool:
        return self.lookup(file_id) is not None
