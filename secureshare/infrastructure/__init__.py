"""
Infrastructure Layer

Concrete adapters for the domain interfaces: in-memory metadata index,
local filesystem blob store, APScheduler-backed expiration scheduler and
rate limit counters on the limits library.
"""

from .expiration_scheduler import BackgroundExpirationScheduler
from .local_blob_store import LocalBlobStore
from .memory_metadata_index import InMemoryMetadataIndex
from .memory_rate_limit_repository import InMemoryRateLimitRepository
from .rate_limit_config import RateLimitConfig

__all__ = [
    "BackgroundExpirationScheduler",
    "InMemoryMetadataIndex",
    "InMemoryRateLimitRepository",
    "LocalBlobStore",
    "RateLimitConfig",
]
