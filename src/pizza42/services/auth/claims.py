"""Typed access to the namespaced claims injected by the post-login action."""

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.pizza42.services.auth.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class CustomClaims(BaseModel):
    """
    Namespaced claims set on the token by the post-login action.

    Every field is optional: tokens minted before the action was deployed (or
    access tokens the action does not touch) simply carry none of them.
    Keys are stored here without their namespace prefix.

    Attributes:
        token_verified_at: When the action evaluated the user
        email_verified: Email verification status seen by the action
        can_place_orders: Order-placement eligibility decided by the action
        verification_version: Version tag of the action that set the claims
        customer_profile: Profile snapshot computed at login time
        customer_info: Basic customer info for verified users
        auth_metadata: Login context (client, connection, IP, user agent)
        session_security: Session anomaly summary
        auth_warnings: Non-fatal warnings raised by the action
        verification_required: Notice attached when orders are not allowed
        action_error: Set when the action itself failed
    """

    model_config = ConfigDict(extra="ignore")

    token_verified_at: datetime | None = None
    email_verified: bool | None = None
    can_place_orders: bool | None = None
    verification_version: str | None = None
    customer_profile: dict[str, Any] | None = None
    customer_info: dict[str, Any] | None = None
    auth_metadata: dict[str, Any] | None = None
    session_security: dict[str, Any] | None = None
    auth_warnings: list[str] = Field(default_factory=list)
    verification_required: dict[str, Any] | None = None
    action_error: dict[str, Any] | None = None

    @property
    def has_verification(self) -> bool:
        return self.token_verified_at is not None


def parse_custom_claims(claims: dict[str, Any], namespace: str) -> CustomClaims:
    """
    Extract namespaced claims from a verified claim set.

    Args:
        claims: Verified JWT claims
        namespace: Claim key prefix (e.g. "https://pizza42.com/")

    Returns:
        CustomClaims with the namespace stripped from each key

    Raises:
        AuthenticationError: If a namespaced claim has an unexpected shape

    Example:
        >>> parse_custom_claims({"https://pizza42.com/email_verified": True}, "https://pizza42.com/")
        CustomClaims(..., email_verified=True, ...)
    """
    namespaced = {
        key[len(namespace) :]: value for key, value in claims.items() if key.startswith(namespace)
    }

    try:
        return CustomClaims.model_validate(namespaced)
    except ValidationError as e:
        logger.warning(
            f"Malformed namespaced claims: {e}",
            extra={"error_type": "invalid_custom_claims", "claim_keys": list(namespaced)},
        )
        raise AuthenticationError("Token carries malformed custom claims") from e
