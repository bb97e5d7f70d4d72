"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi.errors import RateLimitExceeded
from tenacity import retry, stop_after_attempt, wait_exponential

from src.pizza42.config import settings
from src.pizza42.features.orders import router as orders_router
from src.pizza42.features.verification import router as verification_router
from src.pizza42.services.auth import JWKSCache, JWTValidator, set_jwt_validator
from src.pizza42.services.order_store import create_order_store, get_order_store, set_order_store
from src.pizza42.services.rate_limiter import limit_health_check, limiter, rate_limit_exceeded_handler

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Global JWKS cache instance for cleanup
_jwks_cache = None


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    reraise=True,
)
async def _warm_jwks_cache(cache: JWKSCache) -> None:
    """Fetch JWKS at startup, retrying transient failures."""
    await cache.refresh_keys()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup and shutdown)."""
    global _jwks_cache

    # Startup
    try:
        logger.info("Initializing JWT validator")

        _jwks_cache = JWKSCache(
            jwks_url=settings.jwks_url,
            cache_ttl=settings.jwks_cache_ttl_seconds,
            requests_per_minute=settings.jwks_requests_per_minute,
        )
        await _warm_jwks_cache(_jwks_cache)

        set_jwt_validator(
            JWTValidator(
                jwks_cache=_jwks_cache,
                issuer=settings.auth0_issuer,
                api_audience=settings.auth0_audience,
                client_id=settings.auth0_client_id,
                namespace=settings.claims_namespace,
                algorithms=settings.allowed_jwt_algorithms,
                leeway=settings.jwt_leeway_seconds,
            )
        )
        set_order_store(create_order_store(settings))

        logger.info(
            "API initialized successfully",
            extra={
                "jwks_url": settings.jwks_url,
                "issuer": settings.auth0_issuer,
                "order_store": settings.order_store_backend,
            },
        )

    except Exception as e:
        logger.error(
            f"Failed to initialize API: {e}",
            exc_info=True,
            extra={"error_type": "startup_failed"},
        )
        raise

    yield

    # Shutdown
    try:
        await get_order_store().close()
        set_order_store(None)
        if _jwks_cache is not None:
            await _jwks_cache.close()
        logger.info("Shutdown cleanup completed")
    except Exception as e:
        logger.error(f"Error during shutdown cleanup: {e}", exc_info=True)


app = FastAPI(
    title="Pizza42 API",
    description="Ordering API for Pizza42, secured by Auth0-issued tokens",
    version="1.0.0",
    debug=settings.debug,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

origins = settings.cors_origins.split(",")
logger.info(f"Origins : {origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors (400), not 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": {
                "kind": "invalid-order",
                "message": "Invalid order information",
                "errors": [
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
                ],
            }
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unclassified becomes a generic 500 without internal details."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": {"kind": "internal-error", "message": "Something went wrong!"}},
    )


app.include_router(orders_router, prefix=settings.api_prefix)
app.include_router(verification_router, prefix=settings.api_prefix)


class HealthCheckResponse(BaseModel):
    """Health check response."""

    status: str
    message: str
    timestamp: datetime


@app.get(f"{settings.api_prefix}/health", response_model=HealthCheckResponse)
@limit_health_check
async def health_check(request: Request) -> HealthCheckResponse:
    """Health check endpoint."""
    return HealthCheckResponse(
        status="OK",
        message="Pizza42 API is running",
        timestamp=datetime.now(timezone.utc),
    )
