"""Validation of order placement bodies."""

from pydantic import ValidationError

from src.pizza42.features.orders.exceptions import OrderValidationError
from src.pizza42.features.orders.schemas import OrderCreateRequest
from src.pizza42.services.order_store.models import NewOrder

REQUIRED_FIELDS = ("pizza", "size", "total")


def validate_order_request(body: OrderCreateRequest) -> NewOrder:
    """
    Turn a raw placement body into a NewOrder.

    Raises:
        OrderValidationError: If pizza, size or total is missing, the pizza or
            size is not on the menu, or the total is not positive

    Example:
        >>> validate_order_request(OrderCreateRequest(pizza="Margherita", size="medium", total=16.99))
        NewOrder(pizza='Margherita', size=<PizzaSize.MEDIUM: 'medium'>, total=16.99, ...)
    """
    missing = [field for field in REQUIRED_FIELDS if getattr(body, field) in (None, "")]
    if missing:
        raise OrderValidationError(
            "Missing required order information",
            errors=[f"{field} is required" for field in missing],
        )

    try:
        return NewOrder.model_validate(body.model_dump(exclude_none=True))
    except ValidationError as e:
        raise OrderValidationError(
            "Invalid order information",
            errors=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
        ) from e
