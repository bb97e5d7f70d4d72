"""API handlers for order placement and history."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.pizza42.config import settings
from src.pizza42.features.orders.exceptions import OrderValidationError
from src.pizza42.features.orders.schemas import (
    OrderCreateRequest,
    OrderCreateResponse,
    OrderListResponse,
)
from src.pizza42.features.orders.statistics import build_customer_profile
from src.pizza42.features.orders.validators import validate_order_request
from src.pizza42.features.verification.schemas import VerificationSummary
from src.pizza42.services import PostHogService
from src.pizza42.services.auth.dependencies import require_scope, require_verified_email
from src.pizza42.services.auth.models import AuthenticatedUser
from src.pizza42.services.order_store import OrderStore, StorageError, get_order_store
from src.pizza42.services.rate_limiter import limit_order_history, limit_order_placement

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

require_order_scope = require_scope(
    settings.order_placement_scope,
    allow_identity_tokens=settings.allow_identity_tokens_for_orders,
)


def _storage_failed(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"kind": "storage-failed", "message": message},
    )


@router.post("", response_model=OrderCreateResponse, status_code=status.HTTP_201_CREATED)
@limit_order_placement
async def place_order(
    request: Request,
    body: OrderCreateRequest,
    current_user: AuthenticatedUser = Depends(require_verified_email),
    _scoped_user: AuthenticatedUser = Depends(require_order_scope),
    store: OrderStore = Depends(get_order_store),
) -> OrderCreateResponse:
    """
    Place a pizza order.

    Requires a verified email and the `place:orders` scope.

    Args:
        body: {pizza, size, total, date?}
        current_user: User from the verified token

    Returns:
        The created order and the verification state used to authorize it

    Raises:
        HTTPException: 400 if order information is missing or invalid
        HTTPException: 403 if email is unverified or scope is insufficient
        HTTPException: 500 if the order store fails

    Example Response:
        {
            "success": true,
            "message": "Order placed successfully",
            "order": {"id": "1735689600000-a1b2c3", "pizza": "Margherita", ...},
            "verification": {"email_verified": true, "trusted": true, ...}
        }
    """
    try:
        new_order = validate_order_request(body)
        order = await store.place(current_user.id, new_order)

    except OrderValidationError as e:
        logger.info(f"Rejected order from {current_user.id}: {e.errors}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.to_detail()) from e
    except StorageError as e:
        logger.error(f"Error placing order for user {current_user.id}: {e}", exc_info=True)
        PostHogService().capture(
            distinct_id=current_user.id,
            event="order_placement_failed",
            properties={"store": store.source},
        )
        raise _storage_failed("Failed to place order") from e

    PostHogService().capture(
        distinct_id=current_user.id,
        event="order_placed",
        properties={
            "order_id": order.id,
            "pizza": order.pizza,
            "size": order.size.value,
            "total": order.total,
            "store": store.source,
        },
    )

    return OrderCreateResponse(order=order, verification=VerificationSummary.from_user(current_user))


@router.get("", response_model=OrderListResponse)
@limit_order_history
async def list_orders(
    request: Request,
    current_user: AuthenticatedUser = Depends(require_verified_email),
    store: OrderStore = Depends(get_order_store),
) -> OrderListResponse:
    """
    Get the user's order history with a customer profile computed from it.

    Raises:
        HTTPException: 403 if email is unverified
        HTTPException: 500 if the order store fails
    """
    try:
        orders = await store.list(current_user.id)
    except StorageError as e:
        logger.error(f"Error fetching orders for user {current_user.id}: {e}", exc_info=True)
        raise _storage_failed("Failed to fetch orders") from e

    return OrderListResponse(
        orders=orders,
        customer_profile=build_customer_profile(
            orders, customer_since=current_user.issued_at, data_source=store.source
        ),
        verification=VerificationSummary.from_user(current_user),
    )
