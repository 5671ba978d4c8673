"""
Rate Limit Configuration

Per-scope request allowances read from the environment.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List

from ..domain.rate_limiting.value_objects import RateLimit

UPLOAD_SCOPE = "upload"
DOWNLOAD_SCOPE = "download"

_DEFAULT_WINDOW = str(15 * 60)


@dataclass
class RateLimitConfig:
    """
    Upload and download allowances per client IP.

    Environment variables:
        RATE_LIMIT_ENABLED                  "false" turns limiting off
        RATE_LIMIT_UPLOAD_MAX               default 10
        RATE_LIMIT_UPLOAD_WINDOW_SECONDS    default 900
        RATE_LIMIT_DOWNLOAD_MAX             default 50
        RATE_LIMIT_DOWNLOAD_WINDOW_SECONDS  default 900
        RATE_LIMIT_WHITELIST                comma-separated IPs or CIDR networks
    """

    enabled: bool
    upload_max: int
    upload_window_seconds: int
    download_max: int
    download_window_seconds: int
    whitelist: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "RateLimitConfig":
        env = os.environ
        return cls(
            enabled=env.get("RATE_LIMIT_ENABLED", "true").strip().lower() != "false",
            upload_max=int(env.get("RATE_LIMIT_UPLOAD_MAX", "10")),
            upload_window_seconds=int(env.get("RATE_LIMIT_UPLOAD_WINDOW_SECONDS", _DEFAULT_WINDOW)),
            download_max=int(env.get("RATE_LIMIT_DOWNLOAD_MAX", "50")),
            download_window_seconds=int(env.get("RATE_LIMIT_DOWNLOAD_WINDOW_SECONDS", _DEFAULT_WINDOW)),
            whitelist=[entry.strip() for entry in env.get("RATE_LIMIT_WHITELIST", "").split(",") if entry.strip()],
        )

    def limits(self) -> Dict[str, RateLimit]:
        """Scope -> allowance. Raises ValueError for non-positive settings."""
        return {
            UPLOAD_SCOPE: RateLimit(UPLOAD_SCOPE, self.upload_max, self.upload_window_seconds),
            DOWNLOAD_SCOPE: RateLimit(DOWNLOAD_SCOPE, self.download_max, self.download_window_seconds),
        }

    def should_enforce(self) -> bool:
        return self.enabled
