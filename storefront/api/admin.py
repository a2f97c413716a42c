"""Admin order API endpoints.

Provides endpoints for operating orders:
- GET /admin/orders - list all orders (paginated, filterable)
- GET /admin/orders/{order_ref} - order details including internal notes
- PUT /admin/orders/{order_ref}/status - move an order through its lifecycle
- PUT /admin/orders/{order_ref}/payment - record a payment status
- POST /admin/orders/reconcile-stock - repair stock of cancelled orders

All endpoints require the admin role.
"""

from typing import Annotated

from fastapi import APIRouter, Query

from storefront.api.dependencies import AdminUser
from storefront.api.orders import OrderServiceDep, Pagination, orders_to_page
from storefront.api.schemas import (
    ApiResponse,
    ErrorResponse,
    OrderPayload,
    OrderSchema,
    PageSchema,
    ReconcileSchema,
    UpdateOrderStatusRequest,
    UpdatePaymentRequest,
)
from storefront.domain.entities import Order
from storefront.domain.state_machines import OrderStatus
from storefront.domain.value_objects import PaymentStatus

router = APIRouter(prefix="/admin/orders", tags=["Admin"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid status transition"},
    401: {"model": ErrorResponse, "description": "Authentication required"},
    403: {"model": ErrorResponse, "description": "Admin access required"},
    404: {"model": ErrorResponse, "description": "Order not found"},
    409: {"model": ErrorResponse, "description": "Concurrent update"},
}


def admin_order_response(order: Order, message: str) -> ApiResponse[OrderPayload]:
    """Convert an order to the admin response envelope."""
    return ApiResponse[OrderPayload](
        message=message,
        data=OrderPayload(order=OrderSchema.from_order(order, include_internal=True)),
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=ApiResponse[PageSchema[OrderSchema]],
    responses={401: ERROR_RESPONSES[401], 403: ERROR_RESPONSES[403]},
)
async def list_all_orders(
    _admin: AdminUser,
    service: OrderServiceDep,
    params: Pagination,
    order_status: Annotated[OrderStatus | None, Query(alias="status")] = None,
    payment_status: Annotated[PaymentStatus | None, Query(alias="paymentStatus")] = None,
) -> ApiResponse[PageSchema[OrderSchema]]:
    """List every order, newest first."""
    result = await service.list_all_orders(
        params, status=order_status, payment_status=payment_status
    )
    return ApiResponse[PageSchema[OrderSchema]](
        message="Orders retrieved",
        data=orders_to_page(result, include_internal=True),
    )


@router.post(
    "/reconcile-stock",
    response_model=ApiResponse[ReconcileSchema],
    responses={401: ERROR_RESPONSES[401], 403: ERROR_RESPONSES[403]},
)
async def reconcile_stock(
    _admin: AdminUser,
    service: OrderServiceDep,
) -> ApiResponse[ReconcileSchema]:
    """Restore stock for cancelled orders whose restore never completed.

    Safe to run repeatedly; an order is never restored twice.
    """
    result = await service.reconcile_stock()
    return ApiResponse[ReconcileSchema](
        message=f"Stock reconciled for {result.orders_repaired} order(s)",
        data=ReconcileSchema.from_result(result),
    )


@router.get(
    "/{order_ref}",
    response_model=ApiResponse[OrderPayload],
    responses=ERROR_RESPONSES,
)
async def get_order(
    order_ref: str,
    _admin: AdminUser,
    service: OrderServiceDep,
) -> ApiResponse[OrderPayload]:
    order = await service.get_order(order_ref)
    return admin_order_response(order, "Order retrieved")


@router.put(
    "/{order_ref}/status",
    response_model=ApiResponse[OrderPayload],
    responses=ERROR_RESPONSES,
)
async def update_order_status(
    order_ref: str,
    body: UpdateOrderStatusRequest,
    _admin: AdminUser,
    service: OrderServiceDep,
) -> ApiResponse[OrderPayload]:
    """Move an order to a new status.

    Setting ``cancelled`` cancels the order and returns its stock, using
    the note as the cancellation reason.
    """
    order = await service.update_status(
        order_ref,
        body.status,
        note=body.note,
        tracking_number=body.tracking_number,
        carrier=body.carrier,
        internal_note=body.internal_note,
    )
    return admin_order_response(order, "Order status updated")


@router.put(
    "/{order_ref}/payment",
    response_model=ApiResponse[OrderPayload],
    responses=ERROR_RESPONSES,
)
async def update_payment(
    order_ref: str,
    body: UpdatePaymentRequest,
    _admin: AdminUser,
    service: OrderServiceDep,
) -> ApiResponse[OrderPayload]:
    order = await service.update_payment(order_ref, body.status, body.transaction_id)
    return admin_order_response(order, "Payment status updated")
