"""
Application Layer

Use-case orchestration on top of the domain services.
"""

from .dependency_container import DependencyContainer, DependencyNotFoundError
from .event_publisher import EventPublisher
from .rate_limit_service import DOWNLOAD_SCOPE, UPLOAD_SCOPE, RateLimitService
from .transfer_service import TransferService

__all__ = [
    "DOWNLOAD_SCOPE",
    "DependencyContainer",
    "DependencyNotFoundError",
    "EventPublisher",
    "RateLimitService",
    "TransferService",
    "UPLOAD_SCOPE",
]
