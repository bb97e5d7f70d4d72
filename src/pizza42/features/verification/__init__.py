"""Token verification diagnostics feature."""

from src.pizza42.features.verification.handlers import router

__all__ = ["router"]
