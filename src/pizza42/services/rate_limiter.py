"""Per-endpoint request limits for the ordering API."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from src.pizza42.config import settings
from src.pizza42.services.auth.models import AuthenticatedUser

logger = logging.getLogger(__name__)


def get_user_id_or_ip(request: Request) -> str:
    """
    Key requests on the token subject, or on the client IP before auth has run.

    `get_current_user` puts the user on `request.state`, and FastAPI resolves
    dependencies before the limit decorator runs, so every authenticated
    endpoint is counted per customer rather than per shared NAT address.
    """
    user: AuthenticatedUser | None = getattr(request.state, "user", None)
    if user and user.id:
        return f"user:{user.id}"
    return f"ip:{get_remote_address(request)}"


# Counters live in process memory, so each API instance enforces its own limits
limiter = Limiter(
    key_func=get_user_id_or_ip,
    default_limits=[],
    storage_uri="memory://",
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Answer a limited request with the API's error shape instead of slowapi's plain text.

    Retry-After is the length of the window that was exhausted, an upper bound
    on how long the client has to wait.
    """
    retry_after = exc.limit.limit.get_expiry()
    logger.warning(
        f"Rate limit hit on {request.method} {request.url.path} by {get_user_id_or_ip(request)}",
        extra={"error_type": "rate_limited", "limit": exc.detail},
    )
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "detail": {
                "kind": "rate-limited",
                "message": "Too many requests",
                "limit": exc.detail,
            }
        },
        headers={"Retry-After": str(retry_after)},
    )


# Endpoints using these must take a `request: Request` parameter
limit_order_placement = limiter.limit(settings.order_placement_rate_limit)
limit_order_history = limiter.limit(settings.order_history_rate_limit)
limit_token_diagnostics = limiter.limit(settings.token_diagnostics_rate_limit)
limit_health_check = limiter.limit(settings.health_check_rate_limit)
