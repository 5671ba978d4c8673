"""
Rate Limiting Repositories

Storage interface for per-client window counters.
"""

from abc import ABC, abstractmethod

from .entities import RateLimitEntity
from .value_objects import ClientIP, RateLimit


class IRateLimitRepository(ABC):
    """
    Fixed-window counters keyed by scope and client.

    Windows run on wall-clock time kept by the storage.
    """

    @abstractmethod
    def peek(self, client_ip: ClientIP, rate_limit: RateLimit) -> RateLimitEntity:
        """Current usage without counting a request."""
        ...

    @abstractmethod
    def hit(self, client_ip: ClientIP, rate_limit: RateLimit) -> RateLimitEntity:
        """
        Atomically count one request and return the updated usage.

        A request arriving after the previous window closed opens a new one.
        """
        ...

    @abstractmethod
    def reset(self, client_ip: ClientIP, rate_limit: RateLimit) -> bool:
        """
        Forget a client's window for a scope.

        Returns:
            True if a window existed
        """
        ...
