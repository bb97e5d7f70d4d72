"""Post-login action logic (claims embedded in tokens at login time)."""

from src.pizza42.features.post_login.claims import (
    build_fallback_claims,
    build_login_claims,
    evaluate_session_security,
    hash_user_agent,
)

__all__ = [
    "build_login_claims",
    "build_fallback_claims",
    "evaluate_session_security",
    "hash_user_agent",
]
