"""
Rate Limit Application Service

Maps request scopes to their configured allowances and delegates counting
to the domain manager.
"""

from typing import Dict, Optional, Tuple

from ..domain.rate_limiting.entities import RateLimitEntity
from ..domain.rate_limiting.services import RateLimitManager
from ..domain.rate_limiting.value_objects import ClientIP
from ..infrastructure.rate_limit_config import DOWNLOAD_SCOPE, UPLOAD_SCOPE, RateLimitConfig

__all__ = ["DOWNLOAD_SCOPE", "UPLOAD_SCOPE", "RateLimitService"]

SCOPE_MESSAGES: Dict[str, str] = {
    UPLOAD_SCOPE: "Too many uploads, please try again later",
    DOWNLOAD_SCOPE: "Too many downloads, please try again later",
}


class RateLimitService:
    """
    Per-scope rate limiting for the request handlers.

    Scopes have separate counters, so heavy downloading never eats into a
    client's upload allowance.
    """

    def __init__(self, rate_limit_manager: RateLimitManager, config: RateLimitConfig):
        self.manager = rate_limit_manager
        self.config = config
        self._limits = config.limits()

    def check_scope_limit(self, client_ip: str, scope: str) -> Optional[RateLimitEntity]:
        """
        Count a request against a scope.

        Returns:
            Usage after this request, or None when limiting is disabled

        Raises:
            RateLimitExceededError: If the client is over the scope's limit
            KeyError: If the scope is unknown
        """
        rate_limit = self._limits[scope]
        if not self.config.should_enforce():
            return None

        return self.manager.check_limit(
            ClientIP(client_ip),
            rate_limit,
            self.config.whitelist,
            message=SCOPE_MESSAGES.get(scope),
        )

    def describe_limits(self) -> Dict[str, Tuple[int, int]]:
        """Scope -> (limit, window_seconds)."""
        return {scope: (limit.limit, limit.window_seconds) for scope, limit in self._limits.items()}
