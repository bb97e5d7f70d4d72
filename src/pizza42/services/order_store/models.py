"""Pydantic models for orders."""

import secrets
import time
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class PizzaSize(str, Enum):
    """Sizes offered for every pizza."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


# List prices in USD, keyed by pizza then size
MENU: dict[str, dict[PizzaSize, float]] = {
    "Margherita": {PizzaSize.SMALL: 12, PizzaSize.MEDIUM: 16, PizzaSize.LARGE: 20},
    "Pepperoni": {PizzaSize.SMALL: 14, PizzaSize.MEDIUM: 18, PizzaSize.LARGE: 22},
    "Supreme": {PizzaSize.SMALL: 16, PizzaSize.MEDIUM: 20, PizzaSize.LARGE: 24},
    "Hawaiian": {PizzaSize.SMALL: 13, PizzaSize.MEDIUM: 17, PizzaSize.LARGE: 21},
}

DEFAULT_ORDER_STATUS = "confirmed"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def generate_order_id(now: float | None = None) -> str:
    """
    Build an order id that sorts lexicographically by creation time.

    Format: 13-digit zero-padded epoch milliseconds, a dash, 6 random hex
    characters. The suffix keeps ids unique within the same millisecond.

    Example:
        >>> generate_order_id(1735689600.0)[:14]
        '1735689600000-'
    """
    millis = int((time.time() if now is None else now) * 1000)
    return f"{millis:013d}-{secrets.token_hex(3)}"


class NewOrder(BaseModel):
    """Validated order placement input."""

    pizza: str
    size: PizzaSize
    total: float = Field(gt=0, allow_inf_nan=False)
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("pizza")
    @classmethod
    def pizza_on_menu(cls, value: str) -> str:
        if value not in MENU:
            raise ValueError(f"Unknown pizza '{value}'. Choose one of: {', '.join(MENU)}")
        return value

    @field_validator("date")
    @classmethod
    def date_is_aware(cls, value: datetime) -> datetime:
        return _as_utc(value)


class Order(BaseModel):
    """A placed order. Orders are immutable once created."""

    id: str
    user_id: str
    pizza: str
    size: PizzaSize
    total: float = Field(gt=0, allow_inf_nan=False)
    date: datetime
    status: str = DEFAULT_ORDER_STATUS

    @field_validator("date")
    @classmethod
    def date_is_aware(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @classmethod
    def create(cls, user_id: str, new_order: NewOrder, order_id: str | None = None) -> "Order":
        return cls(
            id=order_id or generate_order_id(),
            user_id=user_id,
            pizza=new_order.pizza,
            size=new_order.size,
            total=new_order.total,
            date=new_order.date,
        )

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "id": "1735689600000-a1b2c3",
                "user_id": "auth0|68af87cdd97706fada16edb4",
                "pizza": "Margherita",
                "size": "medium",
                "total": 16.99,
                "date": "2025-01-01T00:00:00Z",
                "status": "confirmed",
            }
        }
