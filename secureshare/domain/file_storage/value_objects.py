"""
File Storage Value Objects

Immutable value objects for type safety and validation.
"""

import re
import secrets
from dataclasses import dataclass

from ..errors import EntropyUnavailableError, InvalidFileIdError

# 16 random bytes -> 128 bits of entropy, hex encoded
FILE_ID_BYTES = 16
_FILE_ID_PATTERN = re.compile(r"^[0-9a-f]{%d}$" % (FILE_ID_BYTES * 2))


@dataclass(frozen=True)
class FileId:
    """
    Value object representing a validated file identifier.

    Identifiers are 32 lowercase hex characters, which keeps them safe to use
    both as a single filesystem path component and as a URL path segment.
    """
    value: str

    def __post_init__(self):
        if not self.is_valid(self.value):
            raise InvalidFileIdError(
                f"Invalid file id: expected {FILE_ID_BYTES * 2} hex characters"
            )

    @staticmethod
    def is_valid(value) -> bool:
        """
        Check whether a raw value has the identifier format.

        Args:
            value: Candidate identifier

        Returns:
            True if the value is a well-formed identifier
        """
        return isinstance(value, str) and bool(_FILE_ID_PATTERN.match(value))

    @classmethod
    def generate(cls) -> "FileId":
        """
        Generate a new identifier from the OS CSPRNG.

        Returns:
            New FileId instance
        """
        return cls(secrets.token_hex(FILE_ID_BYTES))

    def short(self) -> str:
        """Truncated form used in log lines."""
        return self.value[:8]

    def __str__(self) -> str:
        return self.value


class IdentifierGenerator:
    """
    Produces unpredictable, collision-resistant file identifiers.

    The entropy source is checked once at construction so a host without a
    usable CSPRNG fails at startup instead of on the first upload.
    """

    def __init__(self):
        try:
            secrets.token_bytes(1)
        except NotImplementedError as e:
            raise EntropyUnavailableError(
                "No cryptographically strong random source available", e
            ) from e

    def new_id(self) -> FileId:
        return FileId.generate()
