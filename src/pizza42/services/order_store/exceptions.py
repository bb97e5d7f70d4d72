"""Custom exceptions for order storage."""


class StorageError(Exception):
    """Raised when the backing order store cannot complete a read or write."""

    pass
