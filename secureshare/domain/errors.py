"""
Error Handling Module

Domain exceptions raised by the storage core, plus the categorised,
user-facing errors the API turns them into.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    FILE_NOT_FOUND = "file_not_found"
    FILE_TOO_LARGE = "file_too_large"
    INVALID_REQUEST = "invalid_request"
    RATE_LIMITED = "rate_limited"
    UPLOAD_FAILED = "upload_failed"
    DOWNLOAD_FAILED = "download_failed"
    SYSTEM_ERROR = "system_error"


class ErrorInfo(NamedTuple):
    title: str
    message: str
    action: str
    status: int


# User-facing text and default HTTP status per category
ERROR_MESSAGES: Dict[ErrorCategory, ErrorInfo] = {
    ErrorCategory.FILE_NOT_FOUND: ErrorInfo(
        "File Not Found",
        "File not found or has expired",
        "Ask the sender to share the file again.",
        404,
    ),
    ErrorCategory.FILE_TOO_LARGE: ErrorInfo(
        "File Too Large",
        "File too large",
        "Split the file or send a smaller one.",
        413,
    ),
    ErrorCategory.INVALID_REQUEST: ErrorInfo(
        "Invalid Request",
        "No file uploaded",
        "Attach a file in the 'file' form field and try again.",
        400,
    ),
    ErrorCategory.RATE_LIMITED: ErrorInfo(
        "Too Many Requests",
        "Too many requests, please try again later",
        "Wait until the limit resets before sending more requests.",
        429,
    ),
    ErrorCategory.UPLOAD_FAILED: ErrorInfo(
        "Upload Failed",
        "Upload failed",
        "Retry the upload. Nothing was stored.",
        500,
    ),
    ErrorCategory.DOWNLOAD_FAILED: ErrorInfo(
        "Download Failed",
        "Download failed",
        "Retry the download while the link is still valid.",
        500,
    ),
    ErrorCategory.SYSTEM_ERROR: ErrorInfo(
        "System Error",
        "Internal server error",
        "Try again later.",
        500,
    ),
}


class DomainError(Exception):
    """
    Base exception for storage and identifier failures.

    Optionally wraps the lower-level exception that caused it.
    """

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class NotFoundError(DomainError):
    """
    Raised when an identifier is unknown, malformed, expired or reclaimed.

    All of these cases are reported identically so callers cannot tell a
    never-issued identifier from an expired one.
    """
    pass


class PayloadTooLargeError(DomainError):
    """Raised when an upload exceeds the configured size cap."""

    def __init__(self, limit: int, original_error: Exception = None):
        super().__init__(f"Payload exceeds the {limit} byte limit", original_error)
        self.limit = limit


class ValidationError(DomainError):
    """Raised when a required input (e.g. the upload payload) is missing."""
    pass


class StorageError(DomainError):
    """Raised when persisting, reading or deleting a blob fails."""
    pass


class BlobNotFoundError(StorageError):
    pass


class DuplicateIdentifierError(DomainError):
    """Raised when inserting an identifier that is already indexed."""
    pass


class InvalidFileIdError(DomainError, ValueError):
    pass


class EntropyUnavailableError(DomainError):
    """Raised at startup when no cryptographically strong source is available."""
    pass


class ApplicationError(Exception):
    """
    Error carrying a category and the message shown to the client.

    technical_message is for logs only and never reaches a response body.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        info = ERROR_MESSAGES.get(category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR])

        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}
        self.title = info.title
        self.message = message or info.message
        self.action = info.action
        self.http_status_code = info.status

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "category": self.category.value,
            "title": self.title,
            "action": self.action,
        }


class RateLimitExceededError(ApplicationError):
    """
    Raised when a client has used up its allowance for a scope.

    Knows enough about the window to tell the client when to come back.
    """

    def __init__(
        self,
        scope: str,
        limit: int,
        reset_at: datetime,
        retry_after: int,
        message: Optional[str] = None,
    ):
        super().__init__(
            ErrorCategory.RATE_LIMITED,
            technical_message=f"{scope} limit of {limit} reached",
            context={
                "scope": scope,
                "limit": limit,
                "reset_at": reset_at.isoformat(),
                "retry_after": retry_after,
            },
            message=message,
        )
        self.scope = scope
        self.limit = limit
        self.reset_at = reset_at
        self.retry_after = retry_after

    def headers(self) -> Dict[str, str]:
        """X-RateLimit-* and Retry-After headers for the 429 response."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(int(self.reset_at.timestamp())),
            "Retry-After": str(self.retry_after),
        }


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: Optional[int] = None,
    message: Optional[str] = None,
) -> tuple[Dict[str, Any], int]:
    """
    Build the (body, status) pair returned by a resource.

    Args:
        category: Error category
        technical_message: Detail for logs; not included in the body
        context: Additional context information
        status_code: Overrides the category's default status
        message: Overrides the category's default message

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context, message)
    return error.to_dict(), status_code or error.http_status_code
