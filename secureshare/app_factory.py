"""
Application Factory

Creates and configures the Flask application with all dependencies.
This factory pattern improves testability by allowing dependency injection
and configuration overrides.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.middleware.proxy_fix import ProxyFix

from .application.dependency_container import DependencyContainer
from .application.event_publisher import EventPublisher
from .application.rate_limit_service import RateLimitService
from .application.transfer_service import TransferService
from .config.settings import TransferConfig
from .domain.file_storage.repositories import IMetadataIndex
from .domain.file_storage.scheduler import IExpirationScheduler
from .domain.file_storage.storage_repository import IBlobStore
from .domain.file_storage.value_objects import IdentifierGenerator
from .domain.rate_limiting.repositories import IRateLimitRepository
from .domain.rate_limiting.services import RateLimitManager
from .infrastructure.expiration_scheduler import BackgroundExpirationScheduler
from .infrastructure.local_blob_store import LocalBlobStore
from .infrastructure.memory_metadata_index import InMemoryMetadataIndex
from .infrastructure.memory_rate_limit_repository import InMemoryRateLimitRepository
from .infrastructure.rate_limit_config import RateLimitConfig

logger = logging.getLogger(__name__)

# Room for multipart boundaries and form fields on top of the payload cap
MULTIPART_OVERHEAD_BYTES = 1024 * 1024

EXPOSED_HEADERS = [
    "X-Original-Filename",
    "X-Original-Mimetype",
    "X-RateLimit-Limit",
    "X-RateLimit-Remaining",
    "X-RateLimit-Reset",
    "Retry-After",
]

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-site",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'self'; object-src 'none'",
}


class AppConfig:
    """Application configuration."""

    def __init__(
        self,
        transfer: Optional[TransferConfig] = None,
        rate_limit: Optional[RateLimitConfig] = None,
    ):
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = int(os.getenv("PORT", "3001"))
        self.frontend_url = os.getenv("FRONTEND_URL", "http://localhost:5173")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        # Reverse proxies in front of the app whose X-Forwarded-For entry is trusted
        self.trusted_proxy_hops = int(os.getenv("TRUSTED_PROXY_HOPS", "0"))
        if self.trusted_proxy_hops < 0:
            raise ValueError(
                f"TRUSTED_PROXY_HOPS must not be negative, got {self.trusted_proxy_hops}"
            )

        self.transfer = transfer or TransferConfig.from_env()
        self.rate_limit = rate_limit or RateLimitConfig.from_env()

        # Tests drive expiry through scheduler.run_due() instead
        self.start_scheduler = True


def create_app(
    config: Optional[AppConfig] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Flask:
    """
    Create and configure Flask application.

    Startup fails (the exception propagates) if the upload directory cannot
    be created or the system entropy source is unavailable.

    Args:
        config: Application configuration, uses default if None
        clock: Source of the current UTC time for the file lifecycle components

    Returns:
        Configured Flask application
    """
    if config is None:
        config = AppConfig()

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.transfer.max_upload_bytes + MULTIPART_OVERHEAD_BYTES
    app.config["SECURESHARE_MAX_UPLOAD_LABEL"] = config.transfer.max_upload_label()

    if config.trusted_proxy_hops:
        # remote_addr becomes the address the outermost trusted proxy saw
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=config.trusted_proxy_hops)

    CORS(
        app,
        resources={
            r"/*": {
                "origins": [config.frontend_url],
                "methods": ["GET", "POST", "DELETE", "OPTIONS"],
                "expose_headers": EXPOSED_HEADERS,
                "supports_credentials": True,
            }
        },
    )

    _initialize_services(app, config, clock)

    _register_blueprints(app)

    _register_security_headers(app)

    _register_error_handlers(app)

    _register_health_endpoint(app)

    return app


def _initialize_services(
    app: Flask,
    config: AppConfig,
    clock: Optional[Callable[[], datetime]],
) -> None:
    """
    Build every component, register it in the DependencyContainer and attach
    the container to the app.

    Args:
        app: Flask application
        config: Application configuration
        clock: Optional shared clock
    """
    transfer_config = config.transfer
    container = DependencyContainer()

    # Infrastructure adapters
    index = InMemoryMetadataIndex()
    blob_store = LocalBlobStore(transfer_config.upload_dir, transfer_config.max_upload_bytes)
    scheduler = BackgroundExpirationScheduler(
        retry_delay=transfer_config.expiry_retry_seconds,
        max_retries=transfer_config.expiry_max_retries,
        max_workers=transfer_config.expiry_workers,
        clock=clock,
    )
    rate_limit_repository = InMemoryRateLimitRepository()

    container.register_singleton(IMetadataIndex, index)
    container.register_singleton(IBlobStore, blob_store)
    container.register_singleton(IExpirationScheduler, scheduler)
    container.register_singleton(BackgroundExpirationScheduler, scheduler)
    container.register_singleton(IRateLimitRepository, rate_limit_repository)
    container.register_singleton(RateLimitConfig, config.rate_limit)

    # Raises EntropyUnavailableError on hosts without a secure random source
    id_generator = IdentifierGenerator()
    container.register_singleton(IdentifierGenerator, id_generator)

    event_publisher = EventPublisher()
    container.setup_event_handlers(event_publisher)
    container.register_singleton(EventPublisher, event_publisher)

    # Domain and application services
    # Counters live in wall-clock windows, so the manager keeps the real clock
    rate_limit_manager = RateLimitManager(rate_limit_repository)
    rate_limit_service = RateLimitService(rate_limit_manager, config.rate_limit)
    container.register_singleton(RateLimitManager, rate_limit_manager)
    container.register_singleton(RateLimitService, rate_limit_service)

    transfer_service = TransferService(
        index=index,
        blob_store=blob_store,
        scheduler=scheduler,
        id_generator=id_generator,
        ttl=timedelta(seconds=transfer_config.ttl_seconds),
        event_publisher=event_publisher,
        retry_delay=timedelta(seconds=transfer_config.expiry_retry_seconds),
        clock=clock,
    )
    container.register_singleton(TransferService, transfer_service)

    # Nothing survives a restart, so every payload on disk is an orphan
    transfer_service.recover()

    if config.start_scheduler:
        scheduler.start()

    app.container = container
    app.transfer_service = transfer_service
    app.scheduler = scheduler

    logger.info(
        f"Services initialized: upload_dir={blob_store.base_path}, "
        f"max_upload={transfer_config.max_upload_label()}, "
        f"ttl={transfer_config.ttl_seconds:g}s"
    )
    logger.debug(f"Registered {len(container.registered_types())} services")


def _register_blueprints(app: Flask) -> None:
    """
    Register API blueprints.

    Args:
        app: Flask application
    """
    from .api import api_bp

    app.register_blueprint(api_bp)

    logger.debug("API registered at /api with Swagger UI at /api/docs")


def _register_security_headers(app: Flask) -> None:
    """
    Add hardening headers to every response.

    Args:
        app: Flask application
    """

    @app.after_request
    def apply_security_headers(response):
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


def _register_error_handlers(app: Flask) -> None:
    """
    Register handlers for errors raised outside the API namespaces.

    Args:
        app: Flask application
    """

    @app.errorhandler(RequestEntityTooLarge)
    def handle_request_too_large(error):
        label = app.config.get("SECURESHARE_MAX_UPLOAD_LABEL", "")
        return jsonify({"error": f"File too large (max {label})"}), 413


def _register_health_endpoint(app: Flask) -> None:
    """
    Register health check endpoint.

    Args:
        app: Flask application
    """

    @app.route("/health", methods=["GET"])
    def health():
        """
        Health check endpoint.
        Always answers 200 while the process is serving requests.
        """
        stats = app.transfer_service.stats()
        return jsonify({
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "files": stats["files"],
            "pendingExpiries": stats["pending_expiries"],
        }), 200
