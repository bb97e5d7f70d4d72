"""Authentication module for JWT-based authentication."""

from src.pizza42.services.auth.claims import CustomClaims, parse_custom_claims
from src.pizza42.services.auth.dependencies import (
    ScopeChecker,
    get_current_user,
    get_jwt_validator,
    get_verified_token,
    require_scope,
    require_verified_email,
    set_jwt_validator,
)
from src.pizza42.services.auth.exceptions import AuthenticationError, AuthorizationError
from src.pizza42.services.auth.jwks import JWKSCache
from src.pizza42.services.auth.jwt_validator import JWTValidator
from src.pizza42.services.auth.models import (
    AuthenticatedUser,
    TokenType,
    TrustResult,
    VerifiedToken,
)
from src.pizza42.services.auth.trust import evaluate_trust

__all__ = [
    "get_current_user",
    "get_verified_token",
    "get_jwt_validator",
    "set_jwt_validator",
    "require_verified_email",
    "require_scope",
    "ScopeChecker",
    "JWKSCache",
    "JWTValidator",
    "AuthenticationError",
    "AuthorizationError",
    "AuthenticatedUser",
    "CustomClaims",
    "TokenType",
    "TrustResult",
    "VerifiedToken",
    "evaluate_trust",
    "parse_custom_claims",
]
