"""Order store that keeps each user's orders in their Auth0 profile metadata."""

import asyncio
import logging
import weakref
from typing import Any

from pydantic import ValidationError

from src.pizza42.services.identity import IdentityProviderError, ManagementClient
from src.pizza42.services.order_store.base import OrderStore
from src.pizza42.services.order_store.exceptions import StorageError
from src.pizza42.services.order_store.models import MENU, NewOrder, Order

logger = logging.getLogger(__name__)

ORDERS_METADATA_KEY = "orders"


class ProfileOrderStore(OrderStore):
    """
    Stores orders as a list under `user_metadata.orders`.

    Placing an order is a read-modify-write of the whole list. The
    Management API has no conditional update, so two API processes placing
    orders for the same user at the same moment can still overwrite each
    other. Within one process, writes for a user are serialized with a
    per-user lock.

    Example:
        >>> store = ProfileOrderStore(ManagementClient(domain, m2m_id, m2m_secret))
        >>> order = await store.place("auth0|123", new_order)
    """

    source = "auth0_user_metadata"

    def __init__(self, management_client: ManagementClient) -> None:
        self.management_client = management_client
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    async def place(self, user_id: str, new_order: NewOrder) -> Order:
        order = Order.create(user_id, new_order)

        async with self._lock_for(user_id):
            try:
                user = await self.management_client.get_user(user_id)
                current_orders = list((user.get("user_metadata") or {}).get(ORDERS_METADATA_KEY) or [])
                current_orders.append(order.model_dump(mode="json"))

                await self.management_client.update_user_metadata(
                    user_id, {ORDERS_METADATA_KEY: current_orders}
                )
            except IdentityProviderError as e:
                logger.error(
                    f"Failed to save order for user {user_id}: {e}",
                    exc_info=True,
                    extra={"error_type": "profile_order_write_failed"},
                )
                raise StorageError("Failed to place order") from e

        logger.info(
            f"Order {order.id} saved to profile of {user_id}",
            extra={"order_count": len(current_orders)},
        )
        return order

    async def list(self, user_id: str) -> list[Order]:
        try:
            user = await self.management_client.get_user(user_id)
        except IdentityProviderError as e:
            logger.error(
                f"Failed to read orders for user {user_id}: {e}",
                exc_info=True,
                extra={"error_type": "profile_order_read_failed"},
            )
            raise StorageError("Failed to fetch orders") from e

        raw_orders = (user.get("user_metadata") or {}).get(ORDERS_METADATA_KEY) or []
        orders = parse_order_history(user_id, raw_orders)
        return sorted(orders, key=lambda order: order.date, reverse=True)

    async def close(self) -> None:
        await self.management_client.close()


def parse_order_history(user_id: str, raw_orders: Any) -> list[Order]:
    """
    Validate orders read back from profile metadata.

    Metadata is editable outside this API, so entries that are not objects,
    miss required fields, carry a non-positive total or an off-menu pizza
    are dropped with a warning rather than failing the whole read.
    """
    if not isinstance(raw_orders, list):
        logger.warning(
            f"Order history for {user_id} is not a list, ignoring it",
            extra={"type": type(raw_orders).__name__},
        )
        return []

    orders: list[Order] = []
    for raw in raw_orders:
        if not isinstance(raw, dict):
            logger.warning(f"Skipping non-object order entry for {user_id}")
            continue
        # Older entries used camelCase userId
        data = {"user_id": raw.get("userId", user_id), **raw}
        try:
            order = Order.model_validate(data)
        except ValidationError as e:
            logger.warning(
                f"Skipping invalid order {raw.get('id')!r} for {user_id}: {e.error_count()} errors",
                extra={"order_id": raw.get("id")},
            )
            continue
        if order.pizza not in MENU:
            logger.warning(f"Skipping off-menu order {order.id} for {user_id}")
            continue
        orders.append(order)
    return orders
