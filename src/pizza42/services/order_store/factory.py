"""Order store selection and the process-wide store instance."""

import logging

import boto3

from src.pizza42.config import Settings
from src.pizza42.services.identity import ManagementClient
from src.pizza42.services.order_store.base import OrderStore
from src.pizza42.services.order_store.profile_store import ProfileOrderStore
from src.pizza42.services.order_store.table_store import TableOrderStore

logger = logging.getLogger(__name__)

# Global order store instance (initialized in main.py startup)
_order_store: OrderStore | None = None


def create_order_store(settings: Settings) -> OrderStore:
    """
    Build the order store selected by `settings.order_store_backend`.

    The backend is chosen once at startup; request handlers only ever see
    the OrderStore interface.

    Raises:
        ValueError: If the backend is unknown or its credentials are missing
    """
    backend = settings.order_store_backend

    if backend == "table":
        resource = boto3.resource(
            "dynamodb",
            region_name=settings.aws_region,
            endpoint_url=settings.dynamodb_endpoint_url,
        )
        logger.info(
            "Using DynamoDB order store",
            extra={"table": settings.dynamodb_table_name, "region": settings.aws_region},
        )
        return TableOrderStore(resource.Table(settings.dynamodb_table_name))

    if backend == "profile":
        if not (settings.auth0_m2m_client_id and settings.auth0_m2m_client_secret):
            raise ValueError(
                "Profile order store requires AUTH0_M2M_CLIENT_ID and AUTH0_M2M_CLIENT_SECRET"
            )
        logger.info("Using Auth0 profile order store", extra={"domain": settings.auth0_domain})
        return ProfileOrderStore(
            ManagementClient(
                domain=settings.auth0_domain,
                client_id=settings.auth0_m2m_client_id,
                client_secret=settings.auth0_m2m_client_secret,
            )
        )

    raise ValueError(f"Unknown order store backend: {backend!r}")


def set_order_store(store: OrderStore | None) -> None:
    """Set the global order store instance."""
    global _order_store
    _order_store = store


def get_order_store() -> OrderStore:
    """
    Get the global order store instance (usable as a FastAPI dependency).

    Raises:
        RuntimeError: If the order store is not initialized
    """
    if _order_store is None:
        raise RuntimeError(
            "Order store not initialized. "
            "Ensure application startup event calls set_order_store()."
        )
    return _order_store
