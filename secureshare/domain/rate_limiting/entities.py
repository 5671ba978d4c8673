"""
Rate Limiting Entities
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict

from .value_objects import ClientIP, RateLimit


@dataclass
class RateLimitEntity:
    """
    A client's usage of one scope within the current window.

    count includes the request being evaluated, so the request that brings
    it to exactly limit is still allowed.
    """
    client_ip: ClientIP
    scope: str
    count: int
    limit: int
    reset_at: datetime

    @classmethod
    def unlimited(cls, client_ip: ClientIP, rate_limit: RateLimit, now: datetime) -> "RateLimitEntity":
        """State reported for whitelisted clients, which are never counted."""
        return cls(
            client_ip=client_ip,
            scope=rate_limit.scope,
            count=0,
            limit=rate_limit.limit,
            reset_at=rate_limit.window_end(now),
        )

    def is_exceeded(self) -> bool:
        return self.count > self.limit

    def remaining(self) -> int:
        return max(0, self.limit - self.count)

    def seconds_until_reset(self, now: datetime) -> int:
        """Whole seconds until the window closes, rounded up."""
        return max(0, math.ceil((self.reset_at - now).total_seconds()))

    def to_headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining()),
            "X-RateLimit-Reset": str(int(self.reset_at.timestamp())),
        }
