"""Claims-trust evaluation for tokens enriched by the post-login action."""

import logging
from datetime import datetime, timezone

from src.pizza42.services.auth.models import TrustResult, VerifiedToken

logger = logging.getLogger(__name__)

DEFAULT_MAX_VERIFICATION_AGE_SECONDS = 3600

FALLBACK_WARNING = (
    "Post-login verification claims missing; "
    "email verification inferred from the standard email_verified claim"
)


def evaluate_trust(
    token: VerifiedToken,
    max_age_seconds: int = DEFAULT_MAX_VERIFICATION_AGE_SECONDS,
    now: datetime | None = None,
) -> TrustResult:
    """
    Decide which verification state to believe for this request.

    The post-login action stamps `token_verified_at` alongside its
    `email_verified` and `can_place_orders` flags. Those flags are trusted
    when the stamp is present; a stamp older than `max_age_seconds` only adds
    a warning. Without the stamp the standard `email_verified` claim is used
    for both flags and the result is marked as a fallback.

    Args:
        token: Signature-verified token
        max_age_seconds: Age after which the verification stamp is stale
        now: Evaluation time (defaults to current UTC time)

    Returns:
        TrustResult describing the flags, their source and any warnings
    """
    now = now or datetime.now(timezone.utc)
    custom = token.custom_claims

    if not custom.has_verification:
        email_verified = token.claims.get("email_verified") is True
        logger.info(
            "Using fallback verification claims",
            extra={"user_id": token.subject, "email_verified": email_verified},
        )
        return TrustResult(
            trusted=False,
            source="token_fallback",
            email_verified=email_verified,
            can_place_orders=email_verified,
            warnings=[*custom.auth_warnings, FALLBACK_WARNING],
        )

    verified_at = custom.token_verified_at
    if verified_at.tzinfo is None:
        verified_at = verified_at.replace(tzinfo=timezone.utc)

    age_seconds = max(0.0, (now - verified_at).total_seconds())
    is_stale = age_seconds > max_age_seconds

    warnings = list(custom.auth_warnings)
    if is_stale:
        warnings.append(
            f"Verification claims are {int(age_seconds // 60)} minutes old "
            f"(limit {max_age_seconds // 60} minutes); sign in again to refresh them"
        )
        logger.warning(
            "Stale verification claims accepted",
            extra={"user_id": token.subject, "age_seconds": age_seconds},
        )

    return TrustResult(
        trusted=True,
        source="post_login_action",
        email_verified=custom.email_verified is True,
        can_place_orders=custom.can_place_orders is True,
        verified_at=verified_at,
        verification_age_seconds=round(age_seconds, 3),
        is_stale=is_stale,
        verification_version=custom.verification_version,
        warnings=warnings,
        customer_profile=custom.customer_profile,
        auth_metadata=custom.auth_metadata,
        session_security=custom.session_security,
    )
