"""
Rate Limit Decorator

Per-IP rate limiting for API resources. Counted responses carry
X-RateLimit-* headers; rejected ones also carry Retry-After.
"""

import ipaddress
from functools import wraps

from flask import current_app, jsonify, make_response, request

from ..application.rate_limit_service import RateLimitService
from ..domain.errors import RateLimitExceededError


def rate_limit(scope: str):
    """
    Count the request against scope before running the handler.

    Over the limit, the handler is skipped and a 429 with the error body is
    returned instead.

    Usage:
        @rate_limit(UPLOAD_SCOPE)
        def post(self):
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            service = _get_rate_limit_service()
            if service is None:
                return f(*args, **kwargs)

            client_ip = _extract_client_ip(request)
            try:
                entity = service.check_scope_limit(client_ip, scope)
            except RateLimitExceededError as e:
                current_app.logger.info(
                    f"Rate limit exceeded for {client_ip} on {e.scope}, retry in {e.retry_after}s"
                )
                response = make_response(jsonify(e.to_dict()), e.http_status_code)
                response.headers.update(e.headers())
                return response

            response = make_response(f(*args, **kwargs))
            if entity is not None:
                response.headers.update(entity.to_headers())
            return response

        return decorated_function
    return decorator


def _extract_client_ip(request) -> str:
    """
    Client address for counting.

    Only the socket peer counts. Client-supplied X-Forwarded-For is ignored
    here; behind trusted proxies ProxyFix (TRUSTED_PROXY_HOPS) has already
    rewritten remote_addr. Loopback stands in for a missing or malformed peer.
    """
    candidate = request.remote_addr or ""
    if _is_ip(candidate):
        return candidate
    return "127.0.0.1"


def _is_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def _get_rate_limit_service():
    container = getattr(current_app, "container", None)
    service = container.try_resolve(RateLimitService) if container is not None else None
    if service is None:
        current_app.logger.warning("Rate limit service not available")
    return service
