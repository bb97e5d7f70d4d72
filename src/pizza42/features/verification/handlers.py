"""API handlers for token verification diagnostics."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from src.pizza42.features.verification.schemas import (
    ProfileResponse,
    ProfileUser,
    VerificationSummary,
    VerifyTokenResponse,
)
from src.pizza42.services.auth.dependencies import get_current_user, get_verified_token
from src.pizza42.services.auth.models import AuthenticatedUser, VerifiedToken
from src.pizza42.services.rate_limiter import limit_token_diagnostics

logger = logging.getLogger(__name__)

router = APIRouter(tags=["verification"])


@router.get("/verify-token", response_model=VerifyTokenResponse)
@limit_token_diagnostics
async def verify_token(
    request: Request,
    current_user: AuthenticatedUser = Depends(get_current_user),
    token: VerifiedToken = Depends(get_verified_token),
) -> VerifyTokenResponse:
    """
    Report how the bearer token was verified.

    Returns the token type, the custom claims the post-login action set and
    any trust warnings (stale or fallback claims). Useful for checking a
    tenant's action configuration from the browser.

    Raises:
        HTTPException: 401 if the token is invalid

    Example Response:
        {
            "valid": true,
            "token_type": "identity",
            "subject": "auth0|68af87cdd97706fada16edb4",
            "custom_claims": {"email_verified": true, "can_place_orders": true, ...},
            "verification": {"trusted": true, "is_stale": false, ...},
            "warnings": []
        }
    """
    exp = token.claims.get("exp")

    return VerifyTokenResponse(
        token_type=token.token_type,
        subject=current_user.id,
        email=current_user.email,
        scopes=current_user.scopes,
        audience=token.audience,
        issuer=token.claims.get("iss"),
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if isinstance(exp, (int, float)) else None,
        custom_claims=token.custom_claims.model_dump(mode="json", exclude_none=True),
        verification=VerificationSummary.from_user(current_user),
        warnings=current_user.trust.warnings,
    )


@router.get("/profile", response_model=ProfileResponse)
@limit_token_diagnostics
async def get_profile(
    request: Request,
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> ProfileResponse:
    """Protected route that only requires a valid token (no scope, no email gate)."""
    return ProfileResponse(
        user=ProfileUser(
            sub=current_user.id,
            email=current_user.email,
            scope=" ".join(current_user.scopes) or None,
            token_type=current_user.token_type,
        )
    )
