"""Verification of tenant-issued JWTs against the cached JWKS."""

import logging
from collections.abc import Iterable
from typing import Any

from jose import JWTError, jwt
from jose.exceptions import JWTClaimsError

from src.pizza42.services.auth.claims import parse_custom_claims
from src.pizza42.services.auth.jwks import JWKSCache
from src.pizza42.services.auth.models import TokenType, VerifiedToken

logger = logging.getLogger(__name__)

# Never accepted, whatever the configuration says
_FORBIDDEN_ALGORITHMS = {"none", "HS256", "HS384", "HS512"}


class JWTValidator:
    """
    Verifies access and identity tokens issued by the Auth0 tenant.

    The audience decides the token type: the API identifier marks an access
    token, the SPA client id marks an identity token. Any other audience is
    rejected.

    Attributes:
        issuer: Expected `iss`, e.g. "https://pizza42.us.auth0.com/"
        api_audience: API identifier expected on access tokens
        client_id: SPA client id expected on identity tokens
        namespace: Prefix of the post-login action's custom claims
        algorithms: Asymmetric algorithms accepted in the JWT header
        leeway: Clock skew tolerance in seconds

    Example:
        >>> validator = JWTValidator(jwks_cache, "https://pizza42.us.auth0.com/",
        ...                          "https://pizza42-api", "spa-client-id")
        >>> token = await validator.verify_token(raw_jwt)
        >>> token.token_type
        <TokenType.ACCESS: 'access'>
    """

    def __init__(
        self,
        jwks_cache: JWKSCache,
        issuer: str,
        api_audience: str,
        client_id: str,
        namespace: str = "https://pizza42.com/",
        algorithms: Iterable[str] = ("RS256",),
        leeway: int = 10,
    ):
        self.jwks_cache = jwks_cache
        self.issuer = issuer
        self.api_audience = api_audience
        self.client_id = client_id
        self.namespace = namespace
        self.algorithms = tuple(alg for alg in algorithms if alg not in _FORBIDDEN_ALGORITHMS)
        self.leeway = leeway

        if not self.algorithms:
            raise ValueError("At least one asymmetric signing algorithm must be allowed")

    async def verify_token(self, token: str) -> VerifiedToken:
        """
        Verify a bearer token and classify it.

        Header algorithm and `kid` are checked before any key lookup, then
        signature, expiry, not-before, issuer and audience. Namespaced
        claims are parsed last.

        Raises:
            JWTError: On any verification failure (ExpiredSignatureError for
                expired tokens, JWTClaimsError for issuer or audience)
            AuthenticationError: If the namespaced claims are malformed
        """
        try:
            algorithm, kid = self._read_header(token)
            signing_key = await self.jwks_cache.get_signing_key(kid)
            claims = jwt.decode(
                token,
                signing_key,
                algorithms=[algorithm],
                issuer=self.issuer,
                options=self._decode_options(),
            )
            token_type = self.classify_audience(claims.get("aud"))
        except JWTError as e:
            logger.warning(f"Rejected token: {e}", extra={"error_type": "jwt_rejected"})
            raise
        except ValueError as e:
            # No published key for this kid
            logger.warning(f"Rejected token: {e}", extra={"error_type": "jwt_unknown_kid"})
            raise JWTError(str(e)) from e
        except Exception as e:
            logger.error(
                f"Token verification crashed: {e}",
                exc_info=True,
                extra={"error_type": "jwt_verification_error"},
            )
            raise JWTError(f"JWT verification error: {e}") from e

        verified = VerifiedToken(
            token_type=token_type,
            claims=claims,
            custom_claims=parse_custom_claims(claims, self.namespace),
        )
        logger.debug(
            f"Verified {token_type.value} token for {verified.subject}",
            extra={"kid": kid, "exp": claims.get("exp")},
        )
        return verified

    def _read_header(self, token: str) -> tuple[str, str]:
        header = jwt.get_unverified_header(token)
        algorithm = header.get("alg")
        if algorithm not in self.algorithms:
            raise JWTError(f"Unsupported signing algorithm: {algorithm!r}")
        kid = header.get("kid")
        if not kid:
            raise JWTError("JWT header missing 'kid'")
        return algorithm, kid

    def _decode_options(self) -> dict[str, Any]:
        return {
            "verify_signature": True,
            "verify_exp": True,
            "verify_nbf": True,
            "verify_iat": True,
            "verify_iss": True,
            # Two audiences are valid; classify_audience checks them
            "verify_aud": False,
            # Identity tokens may carry at_hash without the access token at hand
            "verify_at_hash": False,
            "require_exp": True,
            "require_iat": True,
            "leeway": self.leeway,
        }

    def classify_audience(self, aud: str | list[str] | None) -> TokenType:
        """
        Map the audience claim to a token type.

        Raises:
            JWTClaimsError: If neither expected audience is present
        """
        audiences = [aud] if isinstance(aud, str) else list(aud or [])

        if self.api_audience in audiences:
            return TokenType.ACCESS
        if self.client_id in audiences:
            return TokenType.IDENTITY

        raise JWTClaimsError("Invalid audience")
