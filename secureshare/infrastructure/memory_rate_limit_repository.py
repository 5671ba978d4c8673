"""
In-Memory Rate Limit Repository

Fixed-window counters from the limits library, held in process memory for
single-process deployments.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional, Tuple

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from ..domain.rate_limiting.entities import RateLimitEntity
from ..domain.rate_limiting.repositories import IRateLimitRepository
from ..domain.rate_limiting.value_objects import ClientIP, RateLimit

logger = logging.getLogger(__name__)

NAMESPACE = "SECURESHARE"


class InMemoryRateLimitRepository(IRateLimitRepository):
    """
    FixedWindowRateLimiter over a MemoryStorage.

    Counters are keyed by ClientIP.counter_key(scope), so the raw address
    never reaches the storage. The storage expires closed windows itself.
    MemoryStorage can drop a concurrent first increment of a key, so every
    storage call goes through one lock.
    """

    def __init__(self, storage: Optional[MemoryStorage] = None):
        self._storage = storage or MemoryStorage()
        self._limiter = FixedWindowRateLimiter(self._storage)
        self._lock = threading.Lock()

    def peek(self, client_ip: ClientIP, rate_limit: RateLimit) -> RateLimitEntity:
        item, key = self._item(client_ip, rate_limit)
        with self._lock:
            count = self._storage.get(item.key_for(key))
            return self._to_entity(client_ip, rate_limit, item, key, count)

    def hit(self, client_ip: ClientIP, rate_limit: RateLimit) -> RateLimitEntity:
        item, key = self._item(client_ip, rate_limit)
        with self._lock:
            allowed = self._limiter.hit(item, key)
            count = self._storage.get(item.key_for(key))
            entity = self._to_entity(client_ip, rate_limit, item, key, count)
        if not allowed:
            logger.debug(f"Rate limit reached for {key}")
        return entity

    def reset(self, client_ip: ClientIP, rate_limit: RateLimit) -> bool:
        item, key = self._item(client_ip, rate_limit)
        with self._lock:
            existed = self._storage.get(item.key_for(key)) > 0
            self._limiter.clear(item, key)
        return existed

    @staticmethod
    def _item(client_ip: ClientIP, rate_limit: RateLimit) -> Tuple[RateLimitItem, str]:
        item = RateLimitItemPerSecond(rate_limit.limit, rate_limit.window_seconds, namespace=NAMESPACE)
        return item, client_ip.counter_key(rate_limit.scope)

    def _to_entity(
        self,
        client_ip: ClientIP,
        rate_limit: RateLimit,
        item: RateLimitItem,
        key: str,
        count: int,
    ) -> RateLimitEntity:
        now = datetime.now(timezone.utc)
        if count:
            reset_time = self._limiter.get_window_stats(item, key).reset_time
            reset_at = datetime.fromtimestamp(reset_time, timezone.utc)
        else:
            # No open window; the next request would open one now
            reset_at = rate_limit.window_end(now)
        return RateLimitEntity(
            client_ip=client_ip,
            scope=rate_limit.scope,
            count=count,
            limit=rate_limit.limit,
            reset_at=reset_at,
        )
