"""
Rate Limiting Domain

Per-client request counting over fixed time windows.
"""

from .entities import RateLimitEntity
from .repositories import IRateLimitRepository
from .services import RateLimitManager
from .value_objects import ClientIP, RateLimit

__all__ = [
    "ClientIP",
    "IRateLimitRepository",
    "RateLimit",
    "RateLimitEntity",
    "RateLimitManager",
]
