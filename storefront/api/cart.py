"""Cart API endpoints.

Provides endpoints for the shopper's cart:
- GET /cart - current cart (created on first access)
- POST /cart/items - add a variant
- PUT /cart/items/{item_id} - change a line's quantity
- DELETE /cart/items/{item_id} - remove a line
- DELETE /cart - clear the cart
- POST /cart/apply-coupon - apply a coupon code
- DELETE /cart/coupon - remove the coupon
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies import CurrentUser, RequestId, get_session
from storefront.api.schemas import (
    AddCartItemRequest,
    ApiResponse,
    ApplyCouponRequest,
    CartPayload,
    CartSchema,
    ErrorResponse,
    UpdateCartItemRequest,
)
from storefront.application.cart_service import CartService, get_cart_service
from storefront.domain.entities import Cart

router = APIRouter(prefix="/cart", tags=["Cart"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    401: {"model": ErrorResponse, "description": "Authentication required"},
    404: {"model": ErrorResponse, "description": "Not found"},
    409: {"model": ErrorResponse, "description": "Insufficient stock or concurrent update"},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_service(
    session: Annotated[AsyncSession, Depends(get_session)],
    request_id: RequestId,
) -> CartService:
    """Get cart service with request ID."""
    return get_cart_service(session, request_id=request_id)


CartServiceDep = Annotated[CartService, Depends(get_service)]


# ============================================================================
# Converters
# ============================================================================


async def cart_to_response(
    service: CartService, cart: Cart, message: str
) -> ApiResponse[CartPayload]:
    """Convert a cart to the response envelope, with product display details."""
    products = await service.product_summaries(cart)
    return ApiResponse[CartPayload](
        message=message,
        data=CartPayload(cart=CartSchema.from_cart(cart, products)),
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=ApiResponse[CartPayload],
    responses={401: ERROR_RESPONSES[401]},
)
async def get_cart(user_id: CurrentUser, service: CartServiceDep) -> ApiResponse[CartPayload]:
    """Get the shopper's cart, creating an empty one on first access."""
    cart = await service.get_cart(user_id)
    return await cart_to_response(service, cart, "Cart retrieved successfully")


@router.post(
    "/items",
    response_model=ApiResponse[CartPayload],
    responses=ERROR_RESPONSES,
)
async def add_item(
    body: AddCartItemRequest,
    user_id: CurrentUser,
    service: CartServiceDep,
) -> ApiResponse[CartPayload]:
    """Add a variant to the cart.

    Adding a variant that is already in the cart increases that line's
    quantity; the unit price of the existing line is kept.
    """
    cart = await service.add_item(
        user_id,
        product_id=body.product_id,
        size=body.variant.size,
        color=body.variant.color,
        quantity=body.quantity,
    )
    return await cart_to_response(service, cart, "Item added to cart")


@router.put(
    "/items/{item_id}",
    response_model=ApiResponse[CartPayload],
    responses=ERROR_RESPONSES,
)
async def update_item(
    item_id: str,
    body: UpdateCartItemRequest,
    user_id: CurrentUser,
    service: CartServiceDep,
) -> ApiResponse[CartPayload]:
    """Change a line's quantity. A quantity of 0 removes the line."""
    cart = await service.update_item(user_id, item_id, body.quantity)
    return await cart_to_response(service, cart, "Cart updated")


@router.delete(
    "/items/{item_id}",
    response_model=ApiResponse[CartPayload],
    responses=ERROR_RESPONSES,
)
async def remove_item(
    item_id: str,
    user_id: CurrentUser,
    service: CartServiceDep,
) -> ApiResponse[CartPayload]:
    cart = await service.remove_item(user_id, item_id)
    return await cart_to_response(service, cart, "Item removed from cart")


@router.delete(
    "",
    response_model=ApiResponse[CartPayload],
    responses=ERROR_RESPONSES,
)
async def clear_cart(user_id: CurrentUser, service: CartServiceDep) -> ApiResponse[CartPayload]:
    """Remove every line and the coupon."""
    cart = await service.clear_cart(user_id)
    return await cart_to_response(service, cart, "Cart cleared")


@router.post(
    "/apply-coupon",
    response_model=ApiResponse[CartPayload],
    responses=ERROR_RESPONSES,
)
async def apply_coupon(
    body: ApplyCouponRequest,
    user_id: CurrentUser,
    service: CartServiceDep,
) -> ApiResponse[CartPayload]:
    """Apply a coupon code, replacing any coupon already applied."""
    cart, percent = await service.apply_coupon(user_id, body.coupon_code)
    return await cart_to_response(service, cart, f"Coupon applied! {percent}% off")


@router.delete(
    "/coupon",
    response_model=ApiResponse[CartPayload],
    responses=ERROR_RESPONSES,
)
async def remove_coupon(user_id: CurrentUser, service: CartServiceDep) -> ApiResponse[CartPayload]:
    cart = await service.remove_coupon(user_id)
    return await cart_to_response(service, cart, "Coupon removed")
