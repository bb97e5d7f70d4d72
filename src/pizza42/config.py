"""Application configuration using Pydantic Settings."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # System Configuration
    api_prefix: str = "/api"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000"
    rate_limit_enabled: bool = True

    # Rate Limits (slowapi syntax, ";" separates windows)
    order_placement_rate_limit: str = "10/minute;60/hour"
    order_history_rate_limit: str = "60/minute;600/hour"
    token_diagnostics_rate_limit: str = "30/minute"
    health_check_rate_limit: str = "120/minute"

    # Auth0 Tenant Configuration
    auth0_domain: str = "pizza42.us.auth0.com"
    auth0_audience: str = "https://pizza42-api"
    auth0_client_id: str = "pizza42-spa-client"
    auth0_m2m_client_id: str = ""
    auth0_m2m_client_secret: str = ""

    # JWT Verification Configuration
    jwks_cache_ttl_seconds: int = 3600  # 1 hour
    jwks_requests_per_minute: int = 5
    jwt_algorithms: str = "RS256"
    jwt_leeway_seconds: int = 10  # Clock skew tolerance

    # Claims Trust Configuration
    claims_namespace: str = "https://pizza42.com/"
    verification_max_age_seconds: int = 3600
    order_placement_scope: str = "place:orders"
    allow_identity_tokens_for_orders: bool = False

    # Order Storage Configuration
    order_store_backend: Literal["profile", "table"] = "table"
    dynamodb_table_name: str = "Pizza42-Orders"
    aws_region: str = "us-east-1"
    dynamodb_endpoint_url: str | None = None

    # PostHog Configuration
    posthog_api_key: str | None = None
    posthog_host: str = "https://app.posthog.com"

    @property
    def auth0_issuer(self) -> str:
        """Issuer claim Auth0 puts on every token (trailing slash included)."""
        return f"https://{self.auth0_domain}/"

    @property
    def jwks_url(self) -> str:
        return f"https://{self.auth0_domain}/.well-known/jwks.json"

    @property
    def allowed_jwt_algorithms(self) -> tuple[str, ...]:
        return tuple(alg.strip() for alg in self.jwt_algorithms.split(",") if alg.strip())


settings = Settings()
