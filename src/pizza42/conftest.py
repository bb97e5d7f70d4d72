"""Pytest configuration and shared fixtures."""

import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi.testclient import TestClient
from jose import jwk, jwt

from src.pizza42.config import settings
from src.pizza42.main import app
from src.pizza42.services.auth.dependencies import set_jwt_validator
from src.pizza42.services.auth.jwks import JWKSCache
from src.pizza42.services.auth.jwt_validator import JWTValidator
from src.pizza42.services.order_store.factory import set_order_store
from src.pizza42.services.rate_limiter import limiter

TEST_KID = "test-key-1"
TEST_USER_ID = "auth0|68af87cdd97706fada16edb4"
TEST_EMAIL = "customer@example.com"


def _generate_pem_pair() -> tuple[str, str]:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode()
    )
    return private_pem, public_pem


@pytest.fixture(scope="session")
def rsa_keypair() -> tuple[str, str]:
    """RSA key pair (private PEM, public PEM) acting as the tenant's signing key."""
    return _generate_pem_pair()


@pytest.fixture(scope="session")
def other_rsa_keypair() -> tuple[str, str]:
    """A second key pair the tenant never published."""
    return _generate_pem_pair()


@pytest.fixture
def namespaced() -> Callable[..., dict[str, Any]]:
    """Prefix claim names with the configured claims namespace."""

    def _namespaced(**claims: Any) -> dict[str, Any]:
        return {f"{settings.claims_namespace}{key}": value for key, value in claims.items()}

    return _namespaced


@pytest.fixture
def make_token(rsa_keypair) -> Callable[..., str]:
    """
    Mint RS256 tokens the way the tenant would.

    Example:
        >>> token = make_token(token_type="identity", claims={"email_verified": True})
    """
    private_pem, _ = rsa_keypair

    def _make(
        token_type: str = "access",
        claims: dict[str, Any] | None = None,
        scope: str | None = "place:orders read:orders",
        sub: str | None = TEST_USER_ID,
        expires_in: int = 3600,
        issuer: str | None = None,
        audience: str | list[str] | None = None,
        signing_key: str | None = None,
        kid: str | None = TEST_KID,
    ) -> str:
        now = int(time.time())
        if audience is None:
            audience = (
                [settings.auth0_audience, f"https://{settings.auth0_domain}/userinfo"]
                if token_type == "access"
                else settings.auth0_client_id
            )
        payload: dict[str, Any] = {
            "iss": issuer or settings.auth0_issuer,
            "aud": audience,
            "iat": now,
            "exp": now + expires_in,
        }
        if sub is not None:
            payload["sub"] = sub
        if token_type == "access" and scope is not None:
            payload["scope"] = scope
        if token_type == "identity":
            payload["email"] = TEST_EMAIL
        payload.update(claims or {})

        headers = {"kid": kid} if kid else {}
        return jwt.encode(payload, signing_key or private_pem, algorithm="RS256", headers=headers)

    return _make


@pytest.fixture
def jwks_cache(rsa_keypair) -> JWKSCache:
    """JWKS cache pre-loaded with the test signing key (no network)."""
    _, public_pem = rsa_keypair
    cache = JWKSCache("https://test.example.com/.well-known/jwks.json")
    cache._keys = {TEST_KID: jwk.construct(public_pem, algorithm="RS256")}
    cache._last_refresh = datetime.now(timezone.utc)
    return cache


@pytest.fixture
def jwt_validator(jwks_cache: JWKSCache) -> JWTValidator:
    return JWTValidator(
        jwks_cache=jwks_cache,
        issuer=settings.auth0_issuer,
        api_audience=settings.auth0_audience,
        client_id=settings.auth0_client_id,
        namespace=settings.claims_namespace,
        algorithms=("RS256",),
        leeway=0,
    )


@pytest.fixture(autouse=True)
def disable_rate_limits():
    """Rate limit counters are process-wide; keep them out of unrelated tests."""
    limiter.enabled = False
    yield
    limiter.enabled = True


@pytest.fixture
def client() -> TestClient:
    """
    Provide FastAPI test client for API testing.

    The app lifespan is not run, so tests install the validator and order
    store they need (see `installed_validator`).

    Example:
        >>> def test_health(client):
        >>>     response = client.get("/api/health")
        >>>     assert response.status_code == 200
    """
    return TestClient(app)


@pytest.fixture
def installed_validator(jwt_validator: JWTValidator):
    """Install the real validator (backed by the test key) for HTTP tests."""
    set_jwt_validator(jwt_validator)
    yield jwt_validator
    set_jwt_validator(None)


@pytest.fixture
def reset_order_store():
    yield
    set_order_store(None)
    app.dependency_overrides = {}
