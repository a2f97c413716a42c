"""Order API endpoints for shoppers.

Provides endpoints for placing and following orders:
- POST /orders - place an order from the cart
- GET /orders - list the shopper's orders (paginated)
- GET /orders/{order_ref} - order details
- PUT /orders/{order_ref}/cancel - cancel an order
- GET /orders/{order_ref}/track - tracking timeline
- POST /orders/{order_ref}/reorder - copy an order's items into the cart

``order_ref`` is either the order id or its order number (``ORD-...``).
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies import CurrentUser, RequestId, get_session
from storefront.api.schemas import (
    ApiResponse,
    CancelOrderRequest,
    CartSchema,
    CheckoutRequest,
    ErrorResponse,
    OrderPayload,
    OrderSchema,
    PageSchema,
    PaginationSchema,
    ReorderPayload,
    TrackingSchema,
)
from storefront.application.checkout_service import CheckoutService, get_checkout_service
from storefront.application.order_service import OrderService, get_order_service
from storefront.application.pagination import PaginatedResult, PaginationParams
from storefront.domain.entities import Order
from storefront.domain.state_machines import OrderStatus
from storefront.infrastructure.config import settings

router = APIRouter(prefix="/orders", tags=["Orders"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request or order state"},
    401: {"model": ErrorResponse, "description": "Authentication required"},
    404: {"model": ErrorResponse, "description": "Order not found"},
    409: {"model": ErrorResponse, "description": "Insufficient stock or concurrent update"},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_service(
    session: Annotated[AsyncSession, Depends(get_session)],
    request_id: RequestId,
) -> OrderService:
    """Get order service with request ID."""
    return get_order_service(session, request_id=request_id)


def get_checkout(
    session: Annotated[AsyncSession, Depends(get_session)],
    request_id: RequestId,
) -> CheckoutService:
    """Get checkout service with request ID."""
    return get_checkout_service(session, request_id=request_id)


OrderServiceDep = Annotated[OrderService, Depends(get_service)]


def pagination_params(
    page: Annotated[int, Query(description="Page number (1-based)")] = 1,
    limit: Annotated[int, Query(description="Items per page")] = settings.default_page_size,
) -> PaginationParams:
    """Read page and limit; out-of-range values are clamped."""
    return PaginationParams(page=page, limit=limit)


Pagination = Annotated[PaginationParams, Depends(pagination_params)]


# ============================================================================
# Converters
# ============================================================================


def order_to_response(order: Order, message: str) -> ApiResponse[OrderPayload]:
    """Convert an order to the shopper-facing response envelope."""
    return ApiResponse[OrderPayload](
        message=message,
        data=OrderPayload(order=OrderSchema.from_order(order)),
    )


def orders_to_page(
    result: PaginatedResult[Order], include_internal: bool = False
) -> PageSchema[OrderSchema]:
    """Convert a page of orders to the list payload."""
    return PageSchema[OrderSchema](
        items=[OrderSchema.from_order(o, include_internal=include_internal) for o in result.items],
        pagination=PaginationSchema.from_result(result),
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "",
    response_model=ApiResponse[OrderPayload],
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_order(
    body: CheckoutRequest,
    user_id: CurrentUser,
    checkout: Annotated[CheckoutService, Depends(get_checkout)],
) -> ApiResponse[OrderPayload]:
    """Place an order from the shopper's cart.

    Stock for every line is reserved, the order is created and the cart
    is emptied in one transaction. If any line cannot be covered nothing
    changes.
    """
    order = await checkout.checkout(
        user_id,
        shipping_address=body.shipping_address.to_domain(),
        payment_method=body.payment_method,
        billing_address=body.billing_address.to_domain() if body.billing_address else None,
        notes=body.notes,
    )
    return order_to_response(order, "Order placed successfully")


@router.get(
    "",
    response_model=ApiResponse[PageSchema[OrderSchema]],
    responses={401: ERROR_RESPONSES[401]},
)
async def list_orders(
    user_id: CurrentUser,
    service: OrderServiceDep,
    params: Pagination,
    order_status: Annotated[OrderStatus | None, Query(alias="status")] = None,
) -> ApiResponse[PageSchema[OrderSchema]]:
    """List the shopper's orders, newest first."""
    result = await service.list_orders(user_id, params, status=order_status)
    return ApiResponse[PageSchema[OrderSchema]](
        message="Orders retrieved",
        data=orders_to_page(result),
    )


@router.get(
    "/{order_ref}",
    response_model=ApiResponse[OrderPayload],
    responses=ERROR_RESPONSES,
)
async def get_order(
    order_ref: str,
    user_id: CurrentUser,
    service: OrderServiceDep,
) -> ApiResponse[OrderPayload]:
    order = await service.get_order(order_ref, user_id=user_id)
    return order_to_response(order, "Order retrieved")


@router.put(
    "/{order_ref}/cancel",
    response_model=ApiResponse[OrderPayload],
    responses=ERROR_RESPONSES,
)
async def cancel_order(
    order_ref: str,
    user_id: CurrentUser,
    service: OrderServiceDep,
    body: Annotated[CancelOrderRequest | None, Body()] = None,
) -> ApiResponse[OrderPayload]:
    """Cancel an order that has not shipped yet and return its stock."""
    order = await service.cancel_order(
        order_ref,
        cancelled_by=user_id,
        reason=body.reason if body else None,
        user_id=user_id,
    )
    return order_to_response(order, "Order cancelled successfully")


@router.get(
    "/{order_ref}/track",
    response_model=ApiResponse[TrackingSchema],
    responses=ERROR_RESPONSES,
)
async def track_order(
    order_ref: str,
    user_id: CurrentUser,
    service: OrderServiceDep,
) -> ApiResponse[TrackingSchema]:
    tracking = await service.track_order(order_ref, user_id)
    return ApiResponse[TrackingSchema](
        message="Order tracking info",
        data=TrackingSchema.from_tracking(tracking),
    )


@router.post(
    "/{order_ref}/reorder",
    response_model=ApiResponse[ReorderPayload],
    responses=ERROR_RESPONSES,
)
async def reorder(
    order_ref: str,
    user_id: CurrentUser,
    service: OrderServiceDep,
) -> ApiResponse[ReorderPayload]:
    """Copy an order's items into the cart at current prices.

    Items that are no longer available are skipped and listed by name.
    """
    result = await service.reorder(order_ref, user_id)
    products = await service.cart_service.product_summaries(result.cart)

    message = "Items added to cart"
    if result.unavailable_items:
        message += ". Some items are unavailable: " + ", ".join(result.unavailable_items)

    return ApiResponse[ReorderPayload](
        message=message,
        data=ReorderPayload(
            cart=CartSchema.from_cart(result.cart, products),
            unavailable_items=result.unavailable_items,
        ),
    )
