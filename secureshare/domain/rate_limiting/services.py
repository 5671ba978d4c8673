"""
Rate Limiting Domain Services
"""

from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from .entities import RateLimitEntity
from .repositories import IRateLimitRepository
from .value_objects import ClientIP, RateLimit
from ..errors import RateLimitExceededError


class RateLimitManager:
    """
    Counts requests per client and scope and rejects the ones over the limit.

    Counting and checking are one repository call, so concurrent requests
    cannot all slip under the limit. clock only computes Retry-After and has
    to agree with the wall clock the repository windows run on.
    """

    def __init__(
        self,
        repository: IRateLimitRepository,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.repository = repository
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def check_limit(
        self,
        client_ip: ClientIP,
        rate_limit: RateLimit,
        whitelist: Iterable[str],
        message: Optional[str] = None
    ) -> RateLimitEntity:
        """
        Count a request against rate_limit.

        Args:
            client_ip: Requesting client
            rate_limit: Allowance for the scope being requested
            whitelist: Addresses and networks that are never counted
            message: User-facing text for the rejection

        Returns:
            Usage after counting this request

        Raises:
            RateLimitExceededError: If this request is over the limit
        """
        now = self._clock()

        if client_ip.is_whitelisted(whitelist):
            return RateLimitEntity.unlimited(client_ip, rate_limit, now)

        entity = self.repository.hit(client_ip, rate_limit)
        if entity.is_exceeded():
            raise RateLimitExceededError(
                scope=rate_limit.scope,
                limit=rate_limit.limit,
                reset_at=entity.reset_at,
                retry_after=entity.seconds_until_reset(now),
                message=message,
            )
        return entity

    def usage(self, client_ip: ClientIP, rate_limit: RateLimit) -> RateLimitEntity:
        """Current usage for a client without counting a request."""
        return self.repository.peek(client_ip, rate_limit)
