"""Custom exceptions for authentication and authorization."""


class AuthenticationError(Exception):
    """Raised when authentication fails (missing, malformed or expired tokens, etc.)."""

    def __init__(self, message: str, kind: str = "invalid-token") -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def to_detail(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class AuthorizationError(Exception):
    """Raised when an authenticated user lacks permission to access a resource."""

    def __init__(self, message: str, kind: str, required: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.required = required

    def to_detail(self) -> dict:
        detail = {"kind": self.kind, "message": self.message}
        if self.required is not None:
            detail["required"] = self.required
        return detail
