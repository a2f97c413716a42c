"""API schemas for the storefront checkout API.

Pydantic models for request/response validation and serialization.
JSON field names are camelCase; Python attributes stay snake_case.
Amounts are rendered in major currency units (rupees).
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storefront.application.cart_service import ProductSummary
from storefront.application.order_service import ReconcileResult, TrackingInfo
from storefront.application.pagination import PaginatedResult
from storefront.domain.entities import Cart, CartItem, Order, OrderItem
from storefront.domain.pricing import CartTotals
from storefront.domain.state_machines import OrderStatus
from storefront.domain.value_objects import (
    Address,
    Money,
    PaymentMethod,
    PaymentStatus,
    ShippingInfo,
    StatusHistoryEntry,
)
from storefront.infrastructure.config import settings

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema that reads and writes camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def to_amount(money: Money) -> float:
    """Render money in major units for JSON."""
    return money.to_float()


# ============================================================================
# Common Schemas
# ============================================================================


class ApiResponse(CamelModel, Generic[T]):
    """Envelope wrapping every successful response."""

    success: bool = Field(default=True, description="Always true for successful responses")
    message: str = Field(..., description="Human-readable summary")
    data: T | None = Field(default=None, description="Response payload")


class ErrorResponse(CamelModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    success: bool = Field(default=False, description="Always false for errors")
    message: str = Field(..., description="Human-readable error message")
    error_code: str = Field(..., description="Machine-readable error code")
    details: dict[str, Any] | list[Any] = Field(
        default_factory=dict, description="Additional error details"
    )
    request_id: str | None = Field(default=None, description="Request ID for correlation")


class PaginationSchema(CamelModel):
    """Pagination metadata of a list response."""

    page: int = Field(..., description="Current page number (1-based)")
    limit: int = Field(..., description="Items per page")
    total_items: int = Field(..., description="Total number of items")
    total_pages: int = Field(..., description="Total number of pages")
    has_next_page: bool
    has_prev_page: bool
    next_page: int | None = None
    prev_page: int | None = None

    @classmethod
    def from_result(cls, result: PaginatedResult[Any]) -> "PaginationSchema":
        return cls(
            page=result.page,
            limit=result.limit,
            total_items=result.total,
            total_pages=result.total_pages,
            has_next_page=result.has_next,
            has_prev_page=result.has_prev,
            next_page=result.page + 1 if result.has_next else None,
            prev_page=result.page - 1 if result.has_prev else None,
        )


class PageSchema(CamelModel, Generic[T]):
    """List payload: one page of items plus pagination metadata."""

    items: list[T]
    pagination: PaginationSchema


class VariantSchema(CamelModel):
    """Size/color selector of a variant."""

    size: str
    color: str
    sku: str | None = None


class TotalsSchema(CamelModel):
    """Derived cart totals or an order's pricing snapshot."""

    subtotal: float
    discount: float
    coupon_code: str | None = None
    shipping: float
    tax: float
    total: float
    currency: str

    @classmethod
    def from_totals(cls, totals: CartTotals) -> "TotalsSchema":
        return cls(
            subtotal=to_amount(totals.subtotal),
            discount=to_amount(totals.discount),
            coupon_code=totals.coupon_code,
            shipping=to_amount(totals.shipping),
            tax=to_amount(totals.tax),
            total=to_amount(totals.total),
            currency=totals.total.currency,
        )


# ============================================================================
# Cart Schemas
# ============================================================================


class VariantRequest(CamelModel):
    """Variant selector in an add-to-cart request."""

    size: str = Field(..., min_length=1, description="Variant size")
    color: str = Field(..., min_length=1, description="Variant color")


class AddCartItemRequest(CamelModel):
    """Request to add a variant to the cart."""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    quantity: int = Field(
        default=1,
        ge=1,
        le=settings.max_item_quantity,
        description="Units to add",
    )
    variant: VariantRequest


class UpdateCartItemRequest(CamelModel):
    """Request to change an item's quantity; 0 removes the item."""

    quantity: int = Field(..., ge=0, le=settings.max_item_quantity, description="New quantity")


class ApplyCouponRequest(CamelModel):
    """Request to apply a coupon code."""

    coupon_code: str = Field(..., min_length=1, max_length=50, description="Coupon code")


class CartItemSchema(CamelModel):
    """A line in the cart."""

    id: str
    product_id: str
    name: str | None = None
    image: str | None = None
    variant: VariantSchema
    quantity: int
    price: float = Field(..., description="Unit price snapshot taken at add time")
    line_total: float
    added_at: datetime

    @classmethod
    def from_item(cls, item: CartItem, product: ProductSummary | None = None) -> "CartItemSchema":
        return cls(
            id=str(item.id),
            product_id=item.product_id,
            name=product.name if product else None,
            image=product.image if product else None,
            variant=VariantSchema(
                size=item.variant.size, color=item.variant.color, sku=item.variant.sku
            ),
            quantity=item.quantity,
            price=to_amount(item.unit_price),
            line_total=to_amount(item.line_total),
            added_at=item.added_at,
        )


class CartSchema(TotalsSchema):
    """The shopper's cart with its derived totals."""

    id: str
    user_id: str
    items: list[CartItemSchema]
    item_count: int
    updated_at: datetime

    @classmethod
    def from_cart(
        cls,
        cart: Cart,
        products: dict[str, ProductSummary] | None = None,
    ) -> "CartSchema":
        products = products or {}
        totals = TotalsSchema.from_totals(cart.totals)
        return cls(
            id=str(cart.id),
            user_id=cart.user_id,
            items=[CartItemSchema.from_item(i, products.get(i.product_id)) for i in cart.items],
            item_count=cart.item_count,
            updated_at=cart.updated_at,
            **totals.model_dump(),
        )


class CartPayload(CamelModel):
    cart: CartSchema


# ============================================================================
# Order Schemas
# ============================================================================


class AddressSchema(CamelModel):
    """Shipping or billing address."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    phone: str = Field(..., pattern=r"^[0-9]{10}$", description="10-digit phone number")
    email: str | None = Field(default=None, max_length=255)
    street: str = Field(..., min_length=1, max_length=500)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., pattern=r"^[0-9]{6}$", description="6-digit PIN code")
    country: str = Field(default="India", max_length=100)

    def to_domain(self) -> Address:
        return Address(
            name=self.name,
            phone=self.phone,
            email=self.email,
            street=self.street,
            city=self.city,
            state=self.state,
            zip_code=self.zip_code,
            country=self.country,
        )

    @classmethod
    def from_domain(cls, address: Address) -> "AddressSchema":
        return cls(
            name=address.name,
            phone=address.phone,
            email=address.email,
            street=address.street,
            city=address.city,
            state=address.state,
            zip_code=address.zip_code,
            country=address.country,
        )


class CheckoutRequest(CamelModel):
    """Request to place an order from the cart."""

    shipping_address: AddressSchema
    billing_address: AddressSchema | None = None
    payment_method: PaymentMethod
    notes: str | None = Field(default=None, max_length=1000)


class CancelOrderRequest(CamelModel):
    """Request to cancel an order."""

    reason: str | None = Field(default=None, max_length=500)


class OrderItemSchema(CamelModel):
    """Frozen order line."""

    product_id: str
    name: str
    image: str | None = None
    variant: VariantSchema
    quantity: int
    price: float
    total: float

    @classmethod
    def from_item(cls, item: OrderItem) -> "OrderItemSchema":
        return cls(
            product_id=item.product_id,
            name=item.name,
            image=item.image,
            variant=VariantSchema(
                size=item.variant.size, color=item.variant.color, sku=item.variant.sku
            ),
            quantity=item.quantity,
            price=to_amount(item.unit_price),
            total=to_amount(item.line_total),
        )


class PaymentSchema(CamelModel):
    method: PaymentMethod
    status: PaymentStatus
    transaction_id: str | None = None
    paid_at: datetime | None = None


class StatusHistorySchema(CamelModel):
    status: str
    timestamp: datetime
    note: str | None = None

    @classmethod
    def from_entry(cls, entry: StatusHistoryEntry) -> "StatusHistorySchema":
        return cls(status=entry.status, timestamp=entry.timestamp, note=entry.note)


class ShippingSchema(CamelModel):
    carrier: str | None = None
    tracking_number: str | None = None
    estimated_delivery: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None

    @classmethod
    def from_info(cls, info: ShippingInfo) -> "ShippingSchema":
        return cls(
            carrier=info.carrier,
            tracking_number=info.tracking_number,
            estimated_delivery=info.estimated_delivery,
            shipped_at=info.shipped_at,
            delivered_at=info.delivered_at,
        )


class CancellationSchema(CamelModel):
    reason: str | None = None
    cancelled_at: datetime
    cancelled_by: str


class NotesSchema(CamelModel):
    customer: str | None = None
    internal: str | None = None


class OrderSchema(CamelModel):
    """Full order representation."""

    id: str
    order_number: str
    user_id: str
    items: list[OrderItemSchema]
    shipping_address: AddressSchema
    billing_address: AddressSchema
    payment: PaymentSchema
    pricing: TotalsSchema
    status: OrderStatus
    status_history: list[StatusHistorySchema]
    shipping: ShippingSchema
    cancellation: CancellationSchema | None = None
    notes: NotesSchema
    can_cancel: bool
    stock_restored_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order: Order, include_internal: bool = False) -> "OrderSchema":
        """Build the response for an order.

        Internal notes are only included for admin views.
        """
        cancellation = None
        if order.cancellation:
            cancellation = CancellationSchema(
                reason=order.cancellation.reason,
                cancelled_at=order.cancellation.cancelled_at,
                cancelled_by=order.cancellation.cancelled_by,
            )
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            user_id=order.user_id,
            items=[OrderItemSchema.from_item(item) for item in order.items],
            shipping_address=AddressSchema.from_domain(order.shipping_address),
            billing_address=AddressSchema.from_domain(order.billing_address),
            payment=PaymentSchema(
                method=order.payment.method,
                status=order.payment.status,
                transaction_id=order.payment.transaction_id,
                paid_at=order.payment.paid_at,
            ),
            pricing=TotalsSchema.from_totals(order.pricing),
            status=order.status,
            status_history=[StatusHistorySchema.from_entry(e) for e in order.status_history],
            shipping=ShippingSchema.from_info(order.shipping),
            cancellation=cancellation,
            notes=NotesSchema(
                customer=order.customer_note,
                internal=order.internal_note if include_internal else None,
            ),
            can_cancel=order.can_cancel,
            stock_restored_at=order.stock_restored_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderPayload(CamelModel):
    order: OrderSchema


class TrackingSchema(CamelModel):
    """Public tracking view of an order."""

    order_number: str
    status: OrderStatus
    shipping: ShippingSchema
    timeline: list[StatusHistorySchema]

    @classmethod
    def from_tracking(cls, info: TrackingInfo) -> "TrackingSchema":
        return cls(
            order_number=info.order_number,
            status=info.status,
            shipping=ShippingSchema.from_info(info.shipping),
            timeline=[StatusHistorySchema.from_entry(e) for e in info.timeline],
        )


class ReorderPayload(CamelModel):
    cart: CartSchema
    unavailable_items: list[str]


# ============================================================================
# Admin Schemas
# ============================================================================


class UpdateOrderStatusRequest(CamelModel):
    """Request to move an order to a new status."""

    status: OrderStatus
    note: str | None = Field(default=None, max_length=500)
    tracking_number: str | None = Field(default=None, max_length=100)
    carrier: str | None = Field(default=None, max_length=100)
    internal_note: str | None = Field(default=None, max_length=1000)


class UpdatePaymentRequest(CamelModel):
    """Request to record a payment status."""

    status: PaymentStatus
    transaction_id: str | None = Field(default=None, max_length=200)


class ReconcileSchema(CamelModel):
    """Outcome of a stock reconciliation pass."""

    orders_repaired: int
    units_restored: int
    order_numbers: list[str]
    skipped: list[str]

    @classmethod
    def from_result(cls, result: ReconcileResult) -> "ReconcileSchema":
        return cls(
            orders_repaired=result.orders_repaired,
            units_restored=result.units_restored,
            order_numbers=result.order_numbers,
            skipped=result.skipped,
        )
