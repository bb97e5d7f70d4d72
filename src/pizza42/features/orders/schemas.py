"""Request and response models for order endpoints."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.pizza42.features.verification.schemas import VerificationSummary
from src.pizza42.services.order_store.models import Order


class CustomerStatus(str, Enum):
    """Customer lifecycle bucket derived from order count."""

    NEW = "new_customer"
    ACTIVE = "active_customer"
    FREQUENT = "frequent_customer"
    ERROR = "error_loading_profile"


class CustomerProfile(BaseModel):
    """Aggregate view over a user's orders. Recomputed on every read, never stored."""

    total_orders: int = Field(ge=0)
    total_spent: float = Field(ge=0)
    average_order_value: float = Field(ge=0)
    favorite_pizza: str | None = None
    favorite_size: str | None = None
    customer_since: datetime | None = None
    first_order: datetime | None = None
    last_order: datetime | None = None
    order_frequency_per_day: float | None = None
    status: CustomerStatus
    profile_generated_at: datetime
    data_source: str


class OrderCreateRequest(BaseModel):
    """
    Raw order placement body.

    Fields are optional here so missing ones produce a single 400 with the
    full list instead of FastAPI's default 422.
    """

    pizza: str | None = None
    size: str | None = None
    total: float | None = None
    date: datetime | None = None

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {"pizza": "Margherita", "size": "medium", "total": 16.99}
        }


class OrderCreateResponse(BaseModel):
    """Response model for order placement."""

    success: bool = True
    message: str = "Order placed successfully"
    order: Order
    verification: VerificationSummary


class OrderListResponse(BaseModel):
    """Response model for order history."""

    orders: list[Order]
    customer_profile: CustomerProfile
    verification: VerificationSummary
