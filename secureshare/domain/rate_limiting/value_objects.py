"""
Rate Limiting Value Objects
"""

import hashlib
import ipaddress
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable


@dataclass(frozen=True)
class ClientIP:
    """
    A validated, normalized client address.

    IPv4 clients seen through a dual-stack socket (::ffff:a.b.c.d) are
    stored as plain IPv4 so both forms share one counter.
    """
    address: str

    def __post_init__(self):
        try:
            parsed = ipaddress.ip_address(self.address)
        except ValueError as e:
            raise ValueError(f"Invalid IP address format: {self.address}") from e

        mapped = getattr(parsed, "ipv4_mapped", None)
        object.__setattr__(self, "address", str(mapped or parsed))

    def is_whitelisted(self, whitelist: Iterable[str]) -> bool:
        """
        True if the address equals a whitelist entry or falls inside a
        whitelisted network (CIDR notation). Malformed entries never match.
        """
        address = ipaddress.ip_address(self.address)
        for entry in whitelist:
            try:
                network = ipaddress.ip_network(entry, strict=False)
            except ValueError:
                continue
            if address.version == network.version and address in network:
                return True
        return False

    def counter_key(self, scope: str) -> str:
        """Per-scope counter key; the raw address is never kept."""
        digest = hashlib.sha256(self.address.encode()).hexdigest()[:16]
        return f"{scope}:{digest}"


@dataclass(frozen=True)
class RateLimit:
    """Allowance for one scope: at most limit requests per window."""
    scope: str
    limit: int
    window_seconds: int

    def __post_init__(self):
        if not self.scope:
            raise ValueError("Scope is required")
        if self.limit <= 0:
            raise ValueError(f"Limit must be positive, got {self.limit}")
        if self.window_seconds <= 0:
            raise ValueError(f"Window must be positive, got {self.window_seconds}")

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.window_seconds)

    def window_end(self, start: datetime) -> datetime:
        """When a window opened at start stops counting."""
        return start + self.window
