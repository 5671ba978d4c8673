"""
Shared pytest fixtures and configuration for the SecureShare test suite.

This module provides:
- Hypothesis configuration for property-based testing
- A controllable clock
- Real in-memory and filesystem components wired the way the app wires them
- A Flask application and test client backed by a temporary upload directory
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import List

import pytest

# Hypothesis configuration
from hypothesis import settings, HealthCheck, Phase

from secureshare.app_factory import AppConfig, create_app
from secureshare.application.event_publisher import EventPublisher
from secureshare.application.transfer_service import TransferService
from secureshare.config.settings import TransferConfig
from secureshare.domain.events import DomainEvent
from secureshare.domain.file_storage.value_objects import IdentifierGenerator
from secureshare.infrastructure.expiration_scheduler import BackgroundExpirationScheduler
from secureshare.infrastructure.local_blob_store import LocalBlobStore
from secureshare.infrastructure.memory_metadata_index import InMemoryMetadataIndex
from secureshare.infrastructure.rate_limit_config import RateLimitConfig

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile("default")

TEST_TTL = timedelta(days=7)
TEST_MAX_BYTES = 1024 * 1024


# =============================================================================
# Test Utilities
# =============================================================================

class FakeClock:
    """Manually advanced UTC clock shared by the components under test."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self.now

    def advance(self, **kwargs) -> datetime:
        with self._lock:
            self.now += timedelta(**kwargs)
            return self.now


class RecordingHandler:
    """Event handler that keeps every event it receives."""

    def __init__(self):
        self.events: List[DomainEvent] = []
        self._lock = threading.Lock()

    def handle(self, event: DomainEvent) -> None:
        with self._lock:
            self.events.append(event)

    def of_type(self, event_type) -> List[DomainEvent]:
        with self._lock:
            return [e for e in self.events if isinstance(e, event_type)]


# =============================================================================
# Component Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def index() -> InMemoryMetadataIndex:
    return InMemoryMetadataIndex()


@pytest.fixture
def blob_store(upload_dir) -> LocalBlobStore:
    return LocalBlobStore(str(upload_dir), max_bytes=TEST_MAX_BYTES, chunk_size=1024)


@pytest.fixture
def scheduler(clock):
    """Scheduler that is never started; tests fire it with run_due()."""
    scheduler = BackgroundExpirationScheduler(retry_delay=10.0, max_retries=3, clock=clock)
    yield scheduler
    scheduler.shutdown()


@pytest.fixture
def recorder() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def event_publisher(recorder) -> EventPublisher:
    publisher = EventPublisher()
    publisher.subscribe(DomainEvent, recorder.handle)
    return publisher


@pytest.fixture
def transfer_service(index, blob_store, scheduler, event_publisher, clock) -> TransferService:
    return TransferService(
        index=index,
        blob_store=blob_store,
        scheduler=scheduler,
        id_generator=IdentifierGenerator(),
        ttl=TEST_TTL,
        event_publisher=event_publisher,
        retry_delay=timedelta(seconds=30),
        clock=clock,
    )


# =============================================================================
# Application Fixtures
# =============================================================================

def make_rate_limit_config(**overrides) -> RateLimitConfig:
    values = dict(
        enabled=False,
        upload_max=10,
        upload_window_seconds=900,
        download_max=50,
        download_window_seconds=900,
        whitelist=[],
    )
    values.update(overrides)
    return RateLimitConfig(**values)


def make_app_config(upload_dir, rate_limit: RateLimitConfig = None, **transfer) -> AppConfig:
    transfer_values = dict(upload_dir=str(upload_dir), max_upload_bytes=TEST_MAX_BYTES)
    transfer_values.update(transfer)
    config = AppConfig(
        transfer=TransferConfig(**transfer_values),
        rate_limit=rate_limit or make_rate_limit_config(),
    )
    config.start_scheduler = False
    return config


@pytest.fixture
def app(upload_dir, clock):
    """Flask app with a fake clock and a scheduler driven by run_due()."""
    flask_app = create_app(make_app_config(upload_dir), clock=clock)
    flask_app.config["TESTING"] = True
    yield flask_app
    flask_app.scheduler.shutdown()


@pytest.fixture
def client(app):
    return app.test_client()
