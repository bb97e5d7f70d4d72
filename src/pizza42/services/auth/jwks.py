"""Signing-key cache for the Auth0 tenant's published JWKS."""

import logging
from datetime import datetime, timezone
from typing import Any

import httpx
from jose import jwk
from jose.backends.base import Key

logger = logging.getLogger(__name__)

# kty -> algorithm used to build the key when the JWK omits "alg"
_SUPPORTED_KEY_TYPES = {"RSA": "RS256", "EC": "ES256"}


def load_signing_keys(jwks_keys: list[dict[str, Any]]) -> dict[str, Key]:
    """
    Build verification keys from the `keys` array of a JWKS document.

    Entries without a `kid`, encryption keys (`use` other than "sig") and
    key types other than RSA and EC are skipped.

    Example:
        >>> load_signing_keys([{"kty": "oct", "kid": "k1", "k": "c2VjcmV0"}])
        {}
    """
    keys: dict[str, Key] = {}

    for entry in jwks_keys:
        kid = entry.get("kid")
        kty = entry.get("kty")

        if not kid:
            logger.warning("Skipping JWKS entry without 'kid'", extra={"kty": kty})
        elif entry.get("use", "sig") != "sig":
            logger.debug(f"Skipping {entry.get('use')} key {kid}", extra={"kid": kid})
        elif kty not in _SUPPORTED_KEY_TYPES:
            logger.warning(f"Skipping key {kid} with unsupported kty {kty!r}", extra={"kid": kid})
        else:
            keys[kid] = jwk.construct(entry, algorithm=entry.get("alg", _SUPPORTED_KEY_TYPES[kty]))

    return keys


class JWKSCache:
    """
    In-memory cache of the tenant's signing keys, indexed by `kid`.

    The whole key set is refetched when the TTL runs out. A token whose
    `kid` is not cached also triggers a refetch (Auth0 key rotation), but at
    most once per `min_refresh_interval` seconds; tokens carrying made-up key
    IDs inside that window fail without a network call.

    Example:
        >>> cache = JWKSCache("https://pizza42.us.auth0.com/.well-known/jwks.json")
        >>> key = await cache.get_signing_key(header["kid"])
    """

    def __init__(self, jwks_url: str, cache_ttl: int = 3600, requests_per_minute: int = 5):
        """
        Args:
            jwks_url: Tenant JWKS endpoint
            cache_ttl: Seconds a fetched key set stays valid
            requests_per_minute: Budget for refetches caused by unknown key IDs
        """
        self.jwks_url = jwks_url
        self.cache_ttl = cache_ttl
        self.min_refresh_interval = 60.0 / max(requests_per_minute, 1)
        self._keys: dict[str, Key] = {}
        self._last_refresh: datetime | None = None
        self._http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(10.0, read=30.0, connect=10.0, write=10.0)
        )

    async def get_signing_key(self, kid: str) -> Key:
        """
        Return the verification key for `kid`, fetching the JWKS when needed.

        Raises:
            ValueError: If no published key matches `kid`
            httpx.HTTPError: If the JWKS endpoint cannot be reached
        """
        if self._is_expired():
            await self.refresh_keys()

        if kid not in self._keys and self._refresh_allowed():
            logger.info(f"Unknown key ID '{kid}', refetching JWKS", extra={"kid": kid})
            await self.refresh_keys()

        try:
            return self._keys[kid]
        except KeyError:
            raise ValueError(f"Key ID '{kid}' not found in JWKS") from None

    async def refresh_keys(self) -> None:
        """
        Replace the cached key set with the one currently published.

        Raises:
            httpx.HTTPError: If the request fails or returns an error status
        """
        try:
            response = await self._http_client.get(self.jwks_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(
                f"JWKS fetch from {self.jwks_url} failed: {e}",
                exc_info=True,
                extra={"error_type": "jwks_fetch_failed"},
            )
            raise

        self._keys = load_signing_keys(response.json().get("keys") or [])
        self._last_refresh = datetime.now(timezone.utc)

        if not self._keys:
            logger.warning(
                "JWKS has no usable signing keys; every token will be rejected",
                extra={"jwks_url": self.jwks_url},
            )
        else:
            logger.info("JWKS refreshed", extra={"key_ids": list(self._keys)})

    def _age_seconds(self) -> float | None:
        if self._last_refresh is None:
            return None
        return (datetime.now(timezone.utc) - self._last_refresh).total_seconds()

    def _is_expired(self) -> bool:
        age = self._age_seconds()
        return age is None or age >= self.cache_ttl

    def _refresh_allowed(self) -> bool:
        age = self._age_seconds()
        return age is None or age >= self.min_refresh_interval

    async def close(self) -> None:
        """Close the HTTP client (application shutdown)."""
        await self._http_client.aclose()
