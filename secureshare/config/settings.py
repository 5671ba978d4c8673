"""
Transfer Configuration

Environment-based configuration for storage, size cap and expiry.
"""

import os
from dataclasses import dataclass

DEFAULT_MAX_UPLOAD_BYTES = 2 * 1024 * 1024 * 1024  # 2 GiB
DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60  # 7 days


@dataclass
class TransferConfig:
    """
    File lifecycle configuration from environment variables.

    Attributes:
        upload_dir: Directory holding stored payloads
        max_upload_bytes: Upload size cap
        ttl_seconds: Lifetime of every stored item
        expiry_retry_seconds: Delay before the first retry of a failed reclamation
        expiry_max_retries: Retries before a failing reclamation is abandoned
        expiry_workers: Threads running reclamations
    """

    upload_dir: str
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    ttl_seconds: float = DEFAULT_TTL_SECONDS
    expiry_retry_seconds: float = 30.0
    expiry_max_retries: int = 5
    expiry_workers: int = 4

    def __post_init__(self):
        """Validate values."""
        if self.max_upload_bytes <= 0:
            raise ValueError(f"MAX_UPLOAD_BYTES must be positive, got {self.max_upload_bytes}")
        if self.ttl_seconds <= 0:
            raise ValueError(f"FILE_TTL_SECONDS must be positive, got {self.ttl_seconds}")
        if self.expiry_retry_seconds < 0 or self.expiry_max_retries < 0:
            raise ValueError("Expiry retry settings must not be negative")
        if self.expiry_workers <= 0:
            raise ValueError(f"EXPIRY_WORKERS must be positive, got {self.expiry_workers}")

    @classmethod
    def from_env(cls) -> "TransferConfig":
        """
        Load configuration from environment variables.

        Returns:
            TransferConfig instance with loaded configuration
        """
        return cls(
            upload_dir=os.getenv("UPLOAD_DIR", os.path.join(os.getcwd(), "uploads")),
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))),
            ttl_seconds=float(os.getenv("FILE_TTL_SECONDS", str(DEFAULT_TTL_SECONDS))),
            expiry_retry_seconds=float(os.getenv("EXPIRY_RETRY_SECONDS", "30")),
            expiry_max_retries=int(os.getenv("EXPIRY_MAX_RETRIES", "5")),
            expiry_workers=int(os.getenv("EXPIRY_WORKERS", "4")),
        )

    def max_upload_label(self) -> str:
        """Human-readable cap for error messages, e.g. "2GB"."""
        size = float(self.max_upload_bytes)
        for unit in ("B", "KB", "MB", "GB"):
            if size < 1024 or unit == "GB":
                break
            size /= 1024
        return f"{size:g}{unit}"
