"""FastAPI dependencies for JWT authentication and authorization gates."""

import logging
from datetime import datetime, timezone

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError

from src.pizza42.config import settings
from src.pizza42.services import PostHogService
from src.pizza42.services.auth.exceptions import AuthenticationError, AuthorizationError
from src.pizza42.services.auth.models import AuthenticatedUser, TokenType, VerifiedToken
from src.pizza42.services.auth.trust import evaluate_trust

# auto_error=False so a missing header gets the same structured 401 as a bad token
security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)

# Global JWT validator instance (initialized in main.py startup)
_jwt_validator = None


def set_jwt_validator(validator):
    """
    Set the global JWT validator instance.

    Called during application startup to initialize the JWT validator.

    Args:
        validator: JWTValidator instance
    """
    global _jwt_validator
    _jwt_validator = validator


def get_jwt_validator():
    """
    Get the global JWT validator instance.

    Raises:
        RuntimeError: If JWT validator not initialized
    """
    if _jwt_validator is None:
        raise RuntimeError(
            "JWT validator not initialized. "
            "Ensure application startup event calls set_jwt_validator()."
        )
    return _jwt_validator


def _unauthorized(error: AuthenticationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=error.to_detail(),
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden(error: AuthorizationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=error.to_detail())


def _track_auth_failure(distinct_id: str, reason: str) -> None:
    PostHogService().capture(
        distinct_id=distinct_id,
        event="authentication_failed",
        properties={"error": reason},
    )


async def get_verified_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> VerifiedToken:
    """
    Verify the bearer token on the request.

    Args:
        credentials: Bearer token from Authorization header

    Returns:
        VerifiedToken with token type and parsed custom claims

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    if credentials is None or not credentials.credentials:
        _track_auth_failure("anonymous", "missing_token")
        raise _unauthorized(AuthenticationError("No token provided", kind="missing-token"))

    try:
        validator = get_jwt_validator()
        return await validator.verify_token(credentials.credentials)

    except ExpiredSignatureError:
        _track_auth_failure("anonymous", "token_expired")
        raise _unauthorized(AuthenticationError("Token has expired", kind="token-expired"))
    except JWTError as e:
        logger.warning(f"JWT verification failed: {str(e)}", extra={"error": str(e)})
        _track_auth_failure("anonymous", "jwt_verification_failed")
        raise _unauthorized(AuthenticationError("Invalid authentication credentials"))
    except AuthenticationError as e:
        _track_auth_failure("anonymous", "invalid_claims")
        raise _unauthorized(e)


async def get_current_user(
    request: Request,
    token: VerifiedToken = Depends(get_verified_token),
) -> AuthenticatedUser:
    """
    Build the authenticated user and evaluate claims trust.

    Also stores the user on `request.state` so the rate limiter can key on it.

    Returns:
        AuthenticatedUser with scopes and trust evaluation

    Raises:
        HTTPException: 401 if the token carries no subject

    Example:
        @router.get("/me")
        async def me(current_user: AuthenticatedUser = Depends(get_current_user)):
            return {"user_id": current_user.id}
    """
    if not token.subject:
        logger.warning(
            "Auth failed: missing user ID",
            extra={"error_type": "missing_sub_claim", "token_type": token.token_type.value},
        )
        _track_auth_failure("anonymous", "missing_sub_claim")
        raise _unauthorized(AuthenticationError("Invalid token: missing user ID"))

    trust = evaluate_trust(token, max_age_seconds=settings.verification_max_age_seconds)

    user = AuthenticatedUser(
        id=token.subject,
        email=token.email,
        token_type=token.token_type,
        scopes=token.scopes,
        trust=trust,
        issued_at=token.issued_at,
    )
    request.state.user = user

    logger.info(
        f"User authenticated: {user.id} ({user.token_type.value} token)",
        extra={"trusted": trust.trusted, "is_stale": trust.is_stale},
    )
    PostHogService().capture(
        distinct_id=user.id,
        event="user_authenticated",
        properties={
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "token_type": user.token_type.value,
            "claims_source": trust.source,
        },
    )

    return user


async def require_verified_email(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """
    Reject users whose email is unverified or who may not place orders.

    Raises:
        HTTPException: 403 with kind "verification-required"
    """
    trust = current_user.trust
    if not (trust.email_verified and trust.can_place_orders):
        logger.info(
            f"Email verification gate rejected {current_user.id}",
            extra={
                "email_verified": trust.email_verified,
                "can_place_orders": trust.can_place_orders,
                "claims_source": trust.source,
            },
        )
        raise _forbidden(
            AuthorizationError(
                "Email verification required to access orders",
                kind="verification-required",
            )
        )
    return current_user


class ScopeChecker:
    """
    Dependency that requires a scope (or RBAC permission) on the token.

    Identity tokens carry no scopes. They are rejected like any other token
    lacking the scope unless `allow_identity_tokens` is set, in which case
    they skip the check entirely.

    Example:
        @router.post("/orders")
        async def place(user: AuthenticatedUser = Depends(ScopeChecker("place:orders"))):
            ...
    """

    def __init__(self, required_scope: str, allow_identity_tokens: bool = False) -> None:
        self.required_scope = required_scope
        self.allow_identity_tokens = allow_identity_tokens

    async def __call__(
        self, current_user: AuthenticatedUser = Depends(get_current_user)
    ) -> AuthenticatedUser:
        if self.allow_identity_tokens and current_user.token_type == TokenType.IDENTITY:
            return current_user

        if self.required_scope not in current_user.scopes:
            logger.info(
                f"Scope gate rejected {current_user.id}",
                extra={
                    "required": self.required_scope,
                    "available": current_user.scopes,
                    "token_type": current_user.token_type.value,
                },
            )
            raise _forbidden(
                AuthorizationError(
                    "Insufficient scope",
                    kind="insufficient-scope",
                    required=self.required_scope,
                )
            )
        return current_user


def require_scope(required_scope: str, allow_identity_tokens: bool = False) -> ScopeChecker:
    """Shorthand for `ScopeChecker(required_scope, allow_identity_tokens)`."""
    return ScopeChecker(required_scope, allow_identity_tokens=allow_identity_tokens)
