"""
File Storage Domain

Handles identifier issuing, payload metadata, storage contracts and expiry.
"""

from .entities import DEFAULT_MEDIA_TYPE, DEFAULT_ORIGINAL_NAME, FileDescriptor
from .repositories import IMetadataIndex
from .scheduler import IExpirationScheduler
from .storage_repository import IBlobStore
from .value_objects import FileId, IdentifierGenerator

__all__ = [
    "DEFAULT_MEDIA_TYPE",
    "DEFAULT_ORIGINAL_NAME",
    "FileDescriptor",
    "FileId",
    "IBlobStore",
    "IExpirationScheduler",
    "IMetadataIndex",
    "IdentifierGenerator",
]
