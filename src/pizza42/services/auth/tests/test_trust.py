"""Tests for claims-trust evaluation."""

from datetime import datetime, timedelta, timezone

from src.pizza42.services.auth.claims import CustomClaims
from src.pizza42.services.auth.models import TokenType, VerifiedToken
from src.pizza42.services.auth.trust import FALLBACK_WARNING, evaluate_trust

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _token(claims: dict | None = None, **custom) -> VerifiedToken:
    return VerifiedToken(
        token_type=TokenType.IDENTITY,
        claims={"sub": "auth0|123", **(claims or {})},
        custom_claims=CustomClaims(**custom),
    )


class TestTrustedClaims:
    def test_fresh_claims_are_trusted(self):
        token = _token(
            token_verified_at=NOW - timedelta(minutes=5),
            email_verified=True,
            can_place_orders=True,
            customer_profile={"total_orders": 3},
        )

        result = evaluate_trust(token, now=NOW)

        assert result.trusted is True
        assert result.source == "post_login_action"
        assert result.email_verified is True
        assert result.can_place_orders is True
        assert result.is_stale is False
        assert result.verification_age_seconds == 300
        assert result.warnings == []
        assert result.customer_profile == {"total_orders": 3}

    def test_stale_claims_still_succeed_with_warning(self):
        token = _token(
            token_verified_at=NOW - timedelta(hours=2),
            email_verified=True,
            can_place_orders=True,
        )

        result = evaluate_trust(token, max_age_seconds=3600, now=NOW)

        assert result.trusted is True
        assert result.email_verified is True
        assert result.is_stale is True
        assert len(result.warnings) == 1
        assert "120 minutes old" in result.warnings[0]

    def test_exactly_at_threshold_is_not_stale(self):
        token = _token(token_verified_at=NOW - timedelta(seconds=3600), email_verified=True)

        assert evaluate_trust(token, max_age_seconds=3600, now=NOW).is_stale is False

    def test_future_timestamp_clamped_to_zero_age(self):
        token = _token(token_verified_at=NOW + timedelta(minutes=1), email_verified=True)

        result = evaluate_trust(token, now=NOW)

        assert result.verification_age_seconds == 0
        assert result.is_stale is False

    def test_naive_timestamp_treated_as_utc(self):
        token = _token(token_verified_at=datetime(2025, 6, 1, 11, 0), email_verified=True)

        assert evaluate_trust(token, now=NOW).verification_age_seconds == 3600

    def test_trusted_claims_override_raw_claim(self):
        """The action's verdict wins over the standard claim."""
        token = _token(
            claims={"email_verified": True},
            token_verified_at=NOW,
            email_verified=False,
            can_place_orders=False,
        )

        result = evaluate_trust(token, now=NOW)

        assert result.email_verified is False
        assert result.can_place_orders is False

    def test_missing_flags_default_to_false(self):
        result = evaluate_trust(_token(token_verified_at=NOW), now=NOW)

        assert result.email_verified is False
        assert result.can_place_orders is False

    def test_action_warnings_are_carried(self):
        token = _token(
            token_verified_at=NOW,
            email_verified=True,
            can_place_orders=True,
            auth_warnings=["DynamoDB query failed - using fallback data"],
        )

        result = evaluate_trust(token, now=NOW)

        assert result.warnings == ["DynamoDB query failed - using fallback data"]


class TestFallbackClaims:
    def test_fallback_uses_standard_claim(self):
        result = evaluate_trust(_token(claims={"email_verified": True}), now=NOW)

        assert result.trusted is False
        assert result.source == "token_fallback"
        assert result.email_verified is True
        assert result.can_place_orders is True
        assert result.verified_at is None
        assert FALLBACK_WARNING in result.warnings

    def test_fallback_without_claim_is_unverified(self):
        result = evaluate_trust(_token(), now=NOW)

        assert result.email_verified is False
        assert result.can_place_orders is False

    def test_fallback_requires_boolean_true(self):
        result = evaluate_trust(_token(claims={"email_verified": "true"}), now=NOW)

        assert result.email_verified is False
