"""
Unit tests for error categories, error responses and domain events.
"""

from datetime import datetime, timezone

import pytest

from secureshare.domain.errors import (
    ERROR_MESSAGES,
    ApplicationError,
    BlobNotFoundError,
    DomainError,
    ErrorCategory,
    NotFoundError,
    PayloadTooLargeError,
    RateLimitExceededError,
    StorageError,
    create_error_response,
)
from secureshare.domain.events import (
    FileReclaimedEvent,
    FileStoredEvent,
    ReclamationFailedEvent,
)

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestErrorHierarchy:
    def test_every_category_has_messages(self):
        for category in ErrorCategory:
            info = ERROR_MESSAGES[category]
            assert info.title
            assert info.message
            assert info.action
            assert 400 <= info.status < 600

    def test_blob_not_found_is_a_storage_error(self):
        assert issubclass(BlobNotFoundError, StorageError)
        assert issubclass(StorageError, DomainError)

    def test_payload_too_large_keeps_limit(self):
        error = PayloadTooLargeError(1024)

        assert error.limit == 1024
        assert isinstance(error, DomainError)

    def test_original_error_is_kept(self):
        cause = OSError("disk full")
        error = StorageError("write failed", cause)

        assert error.original_error is cause


class TestApplicationError:
    def test_to_dict_uses_category_message(self):
        error = ApplicationError(ErrorCategory.FILE_NOT_FOUND, "technical detail")

        assert error.to_dict() == {
            "error": "File not found or has expired",
            "category": "file_not_found",
            "title": "File Not Found",
            "action": "Ask the sender to share the file again.",
        }

    def test_technical_message_is_not_exposed(self):
        body, status = create_error_response(
            ErrorCategory.UPLOAD_FAILED, "/srv/uploads/.partial: No space left", status_code=500
        )

        assert status == 500
        assert "/srv/uploads" not in str(body)
        assert body["error"] == "Upload failed"

    def test_message_override(self):
        body, status = create_error_response(
            ErrorCategory.FILE_TOO_LARGE, status_code=413, message="File too large (max 2GB)"
        )

        assert status == 413
        assert body["error"] == "File too large (max 2GB)"
        assert body["category"] == "file_too_large"

    def test_status_defaults_to_category(self):
        _, status = create_error_response(ErrorCategory.FILE_NOT_FOUND)

        assert status == 404

    def test_rate_limit_error_carries_window(self):
        reset_at = datetime(2026, 1, 1, 0, 15, tzinfo=timezone.utc)
        error = RateLimitExceededError("upload", 10, reset_at, retry_after=900)

        assert error.http_status_code == 429
        assert error.category is ErrorCategory.RATE_LIMITED
        assert error.context["reset_at"] == reset_at.isoformat()
        assert str(error) == "Too many requests, please try again later"
        assert error.headers() == {
            "X-RateLimit-Limit": "10",
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(int(reset_at.timestamp())),
            "Retry-After": "900",
        }

    def test_not_found_message(self):
        with pytest.raises(DomainError):
            raise NotFoundError("File not found or has expired")


class TestDomainEvents:
    def test_file_stored_to_dict(self):
        event = FileStoredEvent(
            aggregate_id="ab" * 16, occurred_at=NOW, size_bytes=5, expires_at=NOW
        )

        data = event.to_dict()

        assert data["event_type"] == "FileStoredEvent"
        assert data["aggregate_id"] == "ab" * 16
        assert data["size_bytes"] == 5
        assert data["expires_at"] == NOW.isoformat()

    def test_file_reclaimed_to_dict(self):
        event = FileReclaimedEvent(aggregate_id="cd" * 16, occurred_at=NOW, reason="expired")

        assert event.to_dict()["reason"] == "expired"

    def test_reclamation_failed_to_dict(self):
        event = ReclamationFailedEvent(
            aggregate_id="ef" * 16, occurred_at=NOW, error_message="permission denied"
        )

        data = event.to_dict()

        assert data["event_type"] == "ReclamationFailedEvent"
        assert data["error_message"] == "permission denied"
