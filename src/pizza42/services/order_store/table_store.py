"""DynamoDB-backed order store."""

import asyncio
import logging
from decimal import Decimal
from typing import Any

from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from src.pizza42.services.order_store.base import OrderStore
from src.pizza42.services.order_store.exceptions import StorageError
from src.pizza42.services.order_store.models import NewOrder, Order

logger = logging.getLogger(__name__)


class TableOrderStore(OrderStore):
    """
    Stores each order as its own item in a DynamoDB table.

    Table layout:
        partition key: user_id (S)
        sort key:      order_id (S), time-ordered (see generate_order_id)

    Placing an order is a single conditional put, so concurrent placements
    never clobber each other. Listing queries the user's partition in
    descending sort-key order, newest first.

    Example:
        >>> table = boto3.resource("dynamodb").Table("Pizza42-Orders")
        >>> store = TableOrderStore(table)
        >>> orders = await store.list("auth0|123")
    """

    source = "dynamodb"

    def __init__(self, table: Any) -> None:
        """
        Args:
            table: boto3 `dynamodb.Table` resource
        """
        self.table = table

    async def place(self, user_id: str, new_order: NewOrder) -> Order:
        order = Order.create(user_id, new_order)
        item = to_item(order)

        try:
            await asyncio.to_thread(
                self.table.put_item,
                Item=item,
                ConditionExpression="attribute_not_exists(order_id)",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                f"DynamoDB put_item failed for user {user_id}: {e}",
                exc_info=True,
                extra={"error_type": "dynamodb_put_failed", "order_id": order.id},
            )
            raise StorageError("Failed to place order") from e

        logger.info(f"Order {order.id} stored in DynamoDB for {user_id}")
        return order

    async def list(self, user_id: str) -> list[Order]:
        query_kwargs: dict[str, Any] = {
            "KeyConditionExpression": Key("user_id").eq(user_id),
            "ScanIndexForward": False,
        }
        items: list[dict[str, Any]] = []

        try:
            while True:
                response = await asyncio.to_thread(self.table.query, **query_kwargs)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                query_kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as e:
            logger.error(
                f"DynamoDB query failed for user {user_id}: {e}",
                exc_info=True,
                extra={"error_type": "dynamodb_query_failed"},
            )
            raise StorageError("Failed to fetch orders") from e

        try:
            return [from_item(item) for item in items]
        except (KeyError, ValidationError) as e:
            logger.error(
                f"Malformed order item for user {user_id}: {e}",
                extra={"error_type": "dynamodb_item_invalid"},
            )
            raise StorageError("Failed to fetch orders") from e


def to_item(order: Order) -> dict[str, Any]:
    """Convert an order to a DynamoDB item. Numbers must be Decimal for boto3."""
    return {
        "user_id": order.user_id,
        "order_id": order.id,
        "pizza": order.pizza,
        "size": order.size.value,
        "total": Decimal(str(order.total)),
        "created_at": order.date.isoformat(),
        "status": order.status,
    }


def from_item(item: dict[str, Any]) -> Order:
    return Order(
        id=item["order_id"],
        user_id=item["user_id"],
        pizza=item["pizza"],
        size=item["size"],
        total=float(item["total"]),
        date=item["created_at"],
        status=item.get("status", "confirmed"),
    )
