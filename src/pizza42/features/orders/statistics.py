"""Customer profile aggregation over a user's orders.

The post-login action embeds the same profile in the identity token at login
time; both paths go through `build_customer_profile`.
"""

from collections.abc import Hashable, Iterable, Sequence
from datetime import datetime, timezone

from src.pizza42.features.orders.schemas import CustomerProfile, CustomerStatus
from src.pizza42.services.order_store.models import Order

FREQUENT_CUSTOMER_MIN_ORDERS = 6
SECONDS_PER_DAY = 86400


def most_frequent(values: Iterable[Hashable | None]):
    """
    Return the most frequent value, or None when there is nothing to count.

    Falsy values (None, "") are ignored. On ties the value that first
    reached the winning count is kept.

    Example:
        >>> most_frequent(["A", "B", "A"])
        'A'
        >>> most_frequent(["A", "B"])
        'A'
    """
    counts: dict = {}
    best = None
    best_count = 0

    for value in values:
        if not value:
            continue
        counts[value] = counts.get(value, 0) + 1
        if counts[value] > best_count:
            best_count = counts[value]
            best = value

    return best


def build_customer_profile(
    orders: Sequence[Order],
    customer_since: datetime | None = None,
    data_source: str = "api_realtime",
    now: datetime | None = None,
) -> CustomerProfile:
    """
    Fold a user's orders into a customer profile.

    First and last order dates are the min and max order timestamps, so the
    result does not depend on the order the store returned them in.

    Args:
        orders: The user's orders, in any order
        customer_since: When the user signed up, if known
        data_source: Where the orders came from (reported back to clients)
        now: Generation time (defaults to current UTC time)

    Returns:
        CustomerProfile; a zeroed "new_customer" profile when there are no orders

    Example:
        >>> profile = build_customer_profile(orders)
        >>> profile.total_spent, profile.average_order_value
        (60.0, 20.0)
    """
    now = now or datetime.now(timezone.utc)

    if not orders:
        return CustomerProfile(
            total_orders=0,
            total_spent=0,
            average_order_value=0,
            customer_since=customer_since,
            status=CustomerStatus.NEW,
            profile_generated_at=now,
            data_source=data_source,
        )

    total_spent = sum(order.total for order in orders)
    dates = [order.date for order in orders]
    first_order, last_order = min(dates), max(dates)
    days_between = max(1.0, (last_order - first_order).total_seconds() / SECONDS_PER_DAY)

    return CustomerProfile(
        total_orders=len(orders),
        total_spent=round(total_spent, 2),
        average_order_value=round(total_spent / len(orders), 2),
        favorite_pizza=most_frequent(order.pizza for order in orders),
        favorite_size=most_frequent(order.size.value for order in orders),
        customer_since=customer_since,
        first_order=first_order,
        last_order=last_order,
        order_frequency_per_day=round(len(orders) / days_between, 3),
        status=(
            CustomerStatus.FREQUENT
            if len(orders) >= FREQUENT_CUSTOMER_MIN_ORDERS
            else CustomerStatus.ACTIVE
        ),
        profile_generated_at=now,
        data_source=data_source,
    )
