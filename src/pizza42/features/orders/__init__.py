"""Order placement and history feature."""

from src.pizza42.features.orders.handlers import router

__all__ = ["router"]
