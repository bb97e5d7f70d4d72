"""Tests for authentication dependencies and authorization gates."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError

from src.pizza42.services.auth.claims import CustomClaims
from src.pizza42.services.auth.dependencies import (
    ScopeChecker,
    get_current_user,
    get_verified_token,
    require_verified_email,
    set_jwt_validator,
)
from src.pizza42.services.auth.exceptions import AuthenticationError
from src.pizza42.services.auth.models import AuthenticatedUser, TokenType, TrustResult, VerifiedToken

TEST_USER_ID = "auth0|68af87cdd97706fada16edb4"


@pytest.fixture(autouse=True)
def mock_posthog():
    """Auto-mock PostHogService for all tests."""
    with patch("src.pizza42.services.auth.dependencies.PostHogService") as mock:
        mock_instance = Mock()
        mock.return_value = mock_instance
        yield mock_instance


@pytest.fixture
def mock_jwt_validator():
    validator = Mock()
    validator.verify_token = AsyncMock()
    return validator


@pytest.fixture(autouse=True)
def setup_jwt_validator(mock_jwt_validator):
    set_jwt_validator(mock_jwt_validator)
    yield
    set_jwt_validator(None)


def _credentials(token: str = "header.payload.signature") -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def _user(
    token_type: TokenType = TokenType.ACCESS,
    scopes: list[str] | None = None,
    email_verified: bool = True,
    can_place_orders: bool = True,
) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=TEST_USER_ID,
        email="customer@example.com",
        token_type=token_type,
        scopes=scopes or [],
        trust=TrustResult(
            trusted=True,
            source="post_login_action",
            email_verified=email_verified,
            can_place_orders=can_place_orders,
        ),
    )


@pytest.mark.asyncio
class TestGetVerifiedToken:
    async def test_missing_token_raises_401(self, mock_posthog):
        with pytest.raises(HTTPException) as exc_info:
            await get_verified_token(credentials=None)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["kind"] == "missing-token"
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}
        mock_posthog.capture.assert_called_once()

    async def test_invalid_token_raises_401(self, mock_jwt_validator):
        mock_jwt_validator.verify_token.side_effect = JWTError("Signature verification failed")

        with pytest.raises(HTTPException) as exc_info:
            await get_verified_token(credentials=_credentials())

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == {
            "kind": "invalid-token",
            "message": "Invalid authentication credentials",
        }

    async def test_expired_token_raises_401(self, mock_jwt_validator):
        mock_jwt_validator.verify_token.side_effect = ExpiredSignatureError("Signature has expired.")

        with pytest.raises(HTTPException) as exc_info:
            await get_verified_token(credentials=_credentials())

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail["kind"] == "token-expired"

    async def test_malformed_claims_raise_401(self, mock_jwt_validator):
        mock_jwt_validator.verify_token.side_effect = AuthenticationError("Token carries malformed custom claims")

        with pytest.raises(HTTPException) as exc_info:
            await get_verified_token(credentials=_credentials())

        assert exc_info.value.status_code == 401
        assert "malformed" in exc_info.value.detail["message"]

    async def test_valid_token_passed_through(self, mock_jwt_validator):
        verified = VerifiedToken(token_type=TokenType.ACCESS, claims={"sub": TEST_USER_ID})
        mock_jwt_validator.verify_token.return_value = verified

        result = await get_verified_token(credentials=_credentials("raw.jwt.token"))

        assert result is verified
        mock_jwt_validator.verify_token.assert_called_once_with("raw.jwt.token")


@pytest.mark.asyncio
class TestGetCurrentUser:
    async def test_builds_user_and_sets_request_state(self, mock_posthog):
        request = Mock()
        token = VerifiedToken(
            token_type=TokenType.ACCESS,
            claims={"sub": TEST_USER_ID, "scope": "place:orders"},
            custom_claims=CustomClaims(
                token_verified_at=datetime.now(timezone.utc) - timedelta(minutes=1),
                email_verified=True,
                can_place_orders=True,
            ),
        )

        user = await get_current_user(request=request, token=token)

        assert user.id == TEST_USER_ID
        assert user.scopes == ["place:orders"]
        assert user.trust.trusted is True
        assert request.state.user is user
        mock_posthog.capture.assert_called_once()
        assert mock_posthog.capture.call_args.kwargs["event"] == "user_authenticated"

    async def test_missing_sub_raises_401(self):
        token = VerifiedToken(token_type=TokenType.IDENTITY, claims={"email": "a@b.c"})

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(request=Mock(), token=token)

        assert exc_info.value.status_code == 401
        assert "missing user ID" in exc_info.value.detail["message"]

    async def test_issued_at_taken_from_iat(self):
        token = VerifiedToken(
            token_type=TokenType.ACCESS,
            claims={"sub": TEST_USER_ID, "iat": 1735689600},
        )

        user = await get_current_user(request=Mock(), token=token)

        assert user.issued_at == datetime(2025, 1, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("iat", [None, "yesterday", True])
    async def test_issued_at_absent_or_unusable(self, iat):
        claims = {"sub": TEST_USER_ID}
        if iat is not None:
            claims["iat"] = iat
        token = VerifiedToken(token_type=TokenType.ACCESS, claims=claims)

        user = await get_current_user(request=Mock(), token=token)

        assert user.issued_at is None


@pytest.mark.asyncio
class TestEmailVerificationGate:
    async def test_verified_user_passes(self):
        user = _user()

        assert await require_verified_email(current_user=user) is user

    @pytest.mark.parametrize(
        "email_verified,can_place_orders",
        [(False, True), (True, False), (False, False)],
    )
    async def test_unverified_user_rejected(self, email_verified, can_place_orders):
        user = _user(email_verified=email_verified, can_place_orders=can_place_orders)

        with pytest.raises(HTTPException) as exc_info:
            await require_verified_email(current_user=user)

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail["kind"] == "verification-required"


@pytest.mark.asyncio
class TestScopeChecker:
    async def test_scope_present_passes(self):
        user = _user(scopes=["openid", "place:orders"])

        assert await ScopeChecker("place:orders")(current_user=user) is user

    async def test_scope_missing_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            await ScopeChecker("place:orders")(current_user=_user(scopes=["read:orders"]))

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == {
            "kind": "insufficient-scope",
            "message": "Insufficient scope",
            "required": "place:orders",
        }

    async def test_scope_match_is_exact(self):
        """A longer scope that merely contains the required one does not count."""
        with pytest.raises(HTTPException):
            await ScopeChecker("place:orders")(current_user=_user(scopes=["place:orders:admin"]))

    async def test_identity_token_rejected_by_default(self):
        with pytest.raises(HTTPException) as exc_info:
            await ScopeChecker("place:orders")(current_user=_user(token_type=TokenType.IDENTITY))

        assert exc_info.value.detail["kind"] == "insufficient-scope"

    async def test_identity_token_allowed_when_opted_in(self):
        user = _user(token_type=TokenType.IDENTITY)

        checker = ScopeChecker("place:orders", allow_identity_tokens=True)

        assert await checker(current_user=user) is user

    async def test_opt_in_does_not_relax_access_tokens(self):
        checker = ScopeChecker("place:orders", allow_identity_tokens=True)

        with pytest.raises(HTTPException):
            await checker(current_user=_user(token_type=TokenType.ACCESS, scopes=[]))
