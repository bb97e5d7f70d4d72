"""Custom exceptions for the orders feature."""


class OrderValidationError(Exception):
    """Raised when an order placement body is incomplete or invalid."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_detail(self) -> dict:
        return {"kind": "invalid-order", "message": self.message, "errors": self.errors}
