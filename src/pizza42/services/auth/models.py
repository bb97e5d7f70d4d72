"""Data models for authentication."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from src.pizza42.services.auth.claims import CustomClaims


class TokenType(str, Enum):
    """Which audience a verified token was issued for."""

    ACCESS = "access"  # audience is the API identifier
    IDENTITY = "identity"  # audience is the SPA client id


class VerifiedToken(BaseModel):
    """
    Result of a successful signature, issuer and audience check.

    Attributes:
        token_type: Access or identity token
        claims: Full verified claim set
        custom_claims: Namespaced claims parsed once at verification time
    """

    token_type: TokenType
    claims: dict[str, Any]
    custom_claims: CustomClaims = Field(default_factory=CustomClaims)

    @property
    def subject(self) -> str | None:
        return self.claims.get("sub")

    @property
    def email(self) -> str | None:
        return self.claims.get("email")

    @property
    def scopes(self) -> list[str]:
        """Union of the space-delimited `scope` claim and the RBAC `permissions` list."""
        scopes: list[str] = []
        raw_scope = self.claims.get("scope")
        if isinstance(raw_scope, str):
            scopes.extend(raw_scope.split())
        permissions = self.claims.get("permissions")
        if isinstance(permissions, list):
            scopes.extend(p for p in permissions if isinstance(p, str))
        return list(dict.fromkeys(scopes))

    @property
    def issued_at(self) -> datetime | None:
        iat = self.claims.get("iat")
        if isinstance(iat, bool) or not isinstance(iat, (int, float)):
            return None
        return datetime.fromtimestamp(iat, tz=timezone.utc)

    @property
    def audience(self) -> list[str]:
        aud = self.claims.get("aud")
        if isinstance(aud, str):
            return [aud]
        return list(aud or [])


class TrustResult(BaseModel):
    """
    Outcome of evaluating how far the token's verification claims can be trusted.

    `trusted` is False when the post-login action's claims were absent and
    the standard `email_verified` claim was used instead.
    """

    trusted: bool
    source: Literal["post_login_action", "token_fallback"]
    email_verified: bool
    can_place_orders: bool
    verified_at: datetime | None = None
    verification_age_seconds: float | None = None
    is_stale: bool = False
    verification_version: str | None = None
    warnings: list[str] = Field(default_factory=list)
    customer_profile: dict[str, Any] | None = None
    auth_metadata: dict[str, Any] | None = None
    session_security: dict[str, Any] | None = None


class AuthenticatedUser(BaseModel):
    """
    User data extracted from a verified token.

    Attributes:
        id: User id from 'sub' claim (e.g. "auth0|abc123")
        email: User email, when the token carries one
        token_type: Access or identity token
        scopes: Granted scopes and permissions
        issued_at: When the token was issued (`iat`), if present
        trust: Claims trust evaluation for this request

    Example:
        >>> user.id
        'auth0|68af87cdd97706fada16edb4'
    """

    id: str
    email: str | None = None
    token_type: TokenType
    scopes: list[str] = Field(default_factory=list)
    trust: TrustResult
    issued_at: datetime | None = None
