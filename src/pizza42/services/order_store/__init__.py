"""Order persistence backends."""

from src.pizza42.services.order_store.base import OrderStore
from src.pizza42.services.order_store.exceptions import StorageError
from src.pizza42.services.order_store.factory import (
    create_order_store,
    get_order_store,
    set_order_store,
)
from src.pizza42.services.order_store.models import MENU, NewOrder, Order, PizzaSize
from src.pizza42.services.order_store.profile_store import ProfileOrderStore
from src.pizza42.services.order_store.table_store import TableOrderStore

__all__ = [
    "OrderStore",
    "ProfileOrderStore",
    "TableOrderStore",
    "StorageError",
    "create_order_store",
    "get_order_store",
    "set_order_store",
    "MENU",
    "NewOrder",
    "Order",
    "PizzaSize",
]
