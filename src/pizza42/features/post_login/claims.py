"""Claims the post-login action attaches to tokens.

The action runs inside the identity platform, not in this process. This
module holds its logic in Python so the profile it embeds is produced by
the same `build_customer_profile` the API uses, and so tests can mint tokens
carrying exactly what a real login would.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any

from src.pizza42.features.orders.schemas import CustomerStatus
from src.pizza42.features.orders.statistics import build_customer_profile
from src.pizza42.services.order_store.models import Order

logger = logging.getLogger(__name__)

VERIFICATION_VERSION = "2.0.0"
HIGH_FREQUENCY_LOGIN_THRESHOLD = 50
LOGIN_DATA_SOURCE = "dynamodb_realtime"


def hash_user_agent(user_agent: str | None) -> str:
    """
    Short non-cryptographic fingerprint of a user agent string.

    31-multiplier rolling hash over UTF-16 code units, wrapped to a signed
    32-bit integer; the absolute value is returned in hex. Matches the
    fingerprint produced by the deployed action.

    Example:
        >>> hash_user_agent("")
        '0'
    """
    value = 0
    if not user_agent:
        return format(value, "x")

    encoded = user_agent.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        unit = int.from_bytes(encoded[i : i + 2], "little")
        value = (value * 31 + unit) & 0xFFFFFFFF

    if value >= 0x80000000:
        value -= 0x100000000
    return format(abs(value), "x")


def evaluate_session_security(
    ip_address: str | None,
    user_agent: str | None,
    logins_count: int | None,
    now: datetime,
) -> dict[str, Any]:
    """Summarize login anomalies for the session_security claim."""
    anomalies = []
    if not ip_address:
        anomalies.append("Missing IP address")
    if not user_agent:
        anomalies.append("Missing user agent")

    login_count = logins_count or 0
    return {
        "secure": not anomalies,
        "anomalies": anomalies,
        "login_count": login_count,
        "high_frequency_user": login_count > HIGH_FREQUENCY_LOGIN_THRESHOLD,
        "validated_at": now.isoformat(),
        "ip_address": ip_address or "unknown",
        "user_agent_hash": hash_user_agent(user_agent) if user_agent else "unknown",
    }


def build_login_claims(
    namespace: str,
    user: dict[str, Any],
    orders: Sequence[Order],
    *,
    client_id: str | None = None,
    connection: str | None = None,
    login_method: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    logins_count: int | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Build the namespaced claims for a successful login.

    Args:
        namespace: Claim key prefix (e.g. "https://pizza42.com/")
        user: Identity platform user record (email, email_verified, created_at)
        orders: The user's orders, in any order
        client_id: Application the user signed in to
        connection: Connection name (e.g. "Username-Password-Authentication")
        login_method: Connection strategy (e.g. "auth0", "google-oauth2")
        ip_address: Client IP address
        user_agent: Client user agent
        logins_count: Number of logins including this one
        now: Login time (defaults to current UTC time)

    Returns:
        Dict of namespaced claim names to JSON-serializable values
    """
    now = now or datetime.now(timezone.utc)
    email_verified = user.get("email_verified") is True
    can_place_orders = email_verified and bool(user.get("email"))

    profile = build_customer_profile(
        orders,
        customer_since=user.get("created_at"),
        data_source=LOGIN_DATA_SOURCE,
        now=now,
    )

    claims = {
        "email_verified": email_verified,
        "can_place_orders": can_place_orders,
        "token_verified_at": now.isoformat(),
        "verification_version": VERIFICATION_VERSION,
        "customer_profile": profile.model_dump(mode="json"),
        "auth_metadata": {
            "client_id": client_id,
            "connection": connection or "unknown",
            "login_method": login_method or "unknown",
            "login_time": now.isoformat(),
            "ip_address": ip_address or "unknown",
            "user_agent": user_agent or "unknown",
        },
        "session_security": evaluate_session_security(ip_address, user_agent, logins_count, now),
    }

    if not can_place_orders:
        claims["verification_required"] = {
            "message": "Email verification required to place orders",
            "action": "verify_email",
        }

    logger.info(
        f"Built login claims for {user.get('user_id')}",
        extra={"order_count": len(orders), "can_place_orders": can_place_orders},
    )
    return {f"{namespace}{key}": value for key, value in claims.items()}


def build_fallback_claims(
    namespace: str,
    user: dict[str, Any],
    warning: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Reduced claim set used when the order history could not be loaded.

    Verification flags are still set; the profile is a placeholder tagged
    as a fallback and the failure is surfaced through auth_warnings.
    """
    now = now or datetime.now(timezone.utc)
    email_verified = user.get("email_verified") is True

    claims = {
        "email_verified": email_verified,
        "can_place_orders": email_verified,
        "token_verified_at": now.isoformat(),
        "verification_version": VERIFICATION_VERSION,
        "auth_warnings": [warning],
        "customer_profile": {
            "customer_since": user.get("created_at"),
            "status": CustomerStatus.ERROR.value,
            "total_orders": 0,
            "total_spent": 0,
            "error": "Unable to load real-time data",
            "profile_source": "fallback",
        },
    }
    return {f"{namespace}{key}": value for key, value in claims.items()}
