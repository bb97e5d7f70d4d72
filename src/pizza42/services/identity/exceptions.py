"""Custom exceptions for the identity platform Management API client."""


class IdentityProviderError(Exception):
    """Raised when a Management API call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
