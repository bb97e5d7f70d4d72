"""Auth0 Management API client for reading and updating user profiles."""

import logging
import time
from typing import Any
from urllib.parse import quote

import httpx

from src.pizza42.services.identity.exceptions import IdentityProviderError

logger = logging.getLogger(__name__)

# Refresh the M2M token this many seconds before it expires
_TOKEN_EXPIRY_MARGIN_SECONDS = 60


class ManagementClient:
    """
    Minimal Management API client using the client-credentials grant.

    Holds one machine-to-machine access token in memory and reuses it until
    shortly before it expires.

    Attributes:
        domain: Auth0 tenant domain (e.g. "pizza42.us.auth0.com")
        client_id: M2M application client id
        client_secret: M2M application client secret

    Example:
        >>> client = ManagementClient("pizza42.us.auth0.com", "m2m-id", "m2m-secret")
        >>> user = await client.get_user("auth0|123")
        >>> orders = user.get("user_metadata", {}).get("orders", [])
    """

    def __init__(
        self,
        domain: str,
        client_id: str,
        client_secret: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.domain = domain
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = f"https://{domain}"
        self._access_token: str | None = None
        self._token_expires_at: float = 0.0
        self._http_client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(10.0, read=30.0, connect=10.0, write=10.0)
        )

    async def get_user(self, user_id: str) -> dict[str, Any]:
        """
        Fetch a user record.

        Raises:
            IdentityProviderError: If the request fails
        """
        return await self._request("GET", f"/api/v2/users/{quote(user_id, safe='')}")

    async def update_user_metadata(self, user_id: str, user_metadata: dict[str, Any]) -> dict[str, Any]:
        """
        Merge `user_metadata` into the user's profile.

        Auth0 merges top-level metadata keys, so only the keys passed here are
        replaced.

        Raises:
            IdentityProviderError: If the request fails
        """
        return await self._request(
            "PATCH",
            f"/api/v2/users/{quote(user_id, safe='')}",
            json={"user_metadata": user_metadata},
        )

    async def _get_access_token(self) -> str:
        if self._access_token and time.monotonic() < self._token_expires_at:
            return self._access_token

        try:
            response = await self._http_client.post(
                f"{self.base_url}/oauth/token",
                json={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "audience": f"{self.base_url}/api/v2/",
                },
            )
            response.raise_for_status()
            payload = response.json()
            access_token = payload["access_token"]
            expires_in = int(payload.get("expires_in", 86400))
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Management API token request rejected: {e.response.status_code}",
                extra={"error_type": "m2m_token_rejected"},
            )
            raise IdentityProviderError(
                "Could not obtain Management API token", status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                f"Management API token request failed: {e}",
                exc_info=True,
                extra={"error_type": "m2m_token_failed"},
            )
            raise IdentityProviderError("Could not obtain Management API token") from e
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(
                f"Management API token response unreadable: {e}",
                extra={"error_type": "m2m_token_malformed"},
            )
            raise IdentityProviderError("Could not obtain Management API token") from e

        self._access_token = access_token
        self._token_expires_at = time.monotonic() + max(0, expires_in - _TOKEN_EXPIRY_MARGIN_SECONDS)
        logger.info("Obtained Management API token", extra={"expires_in": expires_in})
        return self._access_token

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        token = await self._get_access_token()
        try:
            response = await self._http_client.request(
                method,
                f"{self.base_url}{path}",
                headers={"Authorization": f"Bearer {token}"},
                **kwargs,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Management API {method} {path} returned {e.response.status_code}",
                extra={"error_type": "management_api_error", "status": e.response.status_code},
            )
            raise IdentityProviderError(
                f"Management API {method} failed", status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                f"Management API {method} {path} failed: {e}",
                exc_info=True,
                extra={"error_type": "management_api_unreachable"},
            )
            raise IdentityProviderError(f"Management API {method} failed") from e
        except ValueError as e:
            logger.error(
                f"Management API {method} {path} returned a non-JSON body: {e}",
                extra={"error_type": "management_api_malformed"},
            )
            raise IdentityProviderError(f"Management API {method} failed") from e

        if not isinstance(body, dict):
            logger.error(
                f"Management API {method} {path} returned {type(body).__name__}, expected an object",
                extra={"error_type": "management_api_malformed"},
            )
            raise IdentityProviderError(f"Management API {method} failed")
        return body

    async def close(self) -> None:
        await self._http_client.aclose()
