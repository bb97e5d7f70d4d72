"""Response models for token verification diagnostics."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from src.pizza42.services.auth.models import AuthenticatedUser, TokenType


class VerificationSummary(BaseModel):
    """Verification state echoed back with every authenticated response."""

    email_verified: bool
    can_place_orders: bool
    token_type: TokenType
    trusted: bool = Field(description="False when the standard email_verified claim was used")
    source: str
    verified_at: datetime | None = None
    verification_age_seconds: float | None = None
    is_stale: bool = False
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user: AuthenticatedUser) -> "VerificationSummary":
        trust = user.trust
        return cls(
            email_verified=trust.email_verified,
            can_place_orders=trust.can_place_orders,
            token_type=user.token_type,
            trusted=trust.trusted,
            source=trust.source,
            verified_at=trust.verified_at,
            verification_age_seconds=trust.verification_age_seconds,
            is_stale=trust.is_stale,
            warnings=trust.warnings,
        )


class VerifyTokenResponse(BaseModel):
    """Diagnostics payload for GET /verify-token."""

    valid: bool = True
    token_type: TokenType
    subject: str
    email: str | None = None
    scopes: list[str] = Field(default_factory=list)
    audience: list[str] = Field(default_factory=list)
    issuer: str | None = None
    expires_at: datetime | None = None
    custom_claims: dict[str, Any] = Field(default_factory=dict)
    verification: VerificationSummary
    warnings: list[str] = Field(default_factory=list)


class ProfileUser(BaseModel):
    sub: str
    email: str | None = None
    scope: str | None = None
    token_type: TokenType


class ProfileResponse(BaseModel):
    """Response model for the protected profile route."""

    message: str = "Protected route accessed successfully"
    user: ProfileUser
