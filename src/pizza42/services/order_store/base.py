"""Order store interface shared by the profile-embedded and table backends."""

from abc import ABC, abstractmethod

from src.pizza42.services.order_store.models import NewOrder, Order


class OrderStore(ABC):
    """
    Abstract order store.

    Implementations persist immutable orders per user. Every failure of the
    backing store (unreachable, rejected write, unreadable data) surfaces as
    StorageError; there is no partial success.

    Attributes:
        source: Tag reported as the customer profile's data_source
    """

    source: str = "unknown"

    @abstractmethod
    async def place(self, user_id: str, new_order: NewOrder) -> Order:
        """
        Persist a new order for the user.

        Raises:
            StorageError: If the order could not be stored
        """
        ...

    @abstractmethod
    async def list(self, user_id: str) -> list[Order]:
        """
        Return the user's orders, newest first.

        Raises:
            StorageError: If the orders could not be read
        """
        ...

    async def close(self) -> None:
        """Release client resources. Called during application shutdown."""
        return None
