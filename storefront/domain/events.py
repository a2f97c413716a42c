"""Domain events for the storefront checkout core.

Domain events represent significant occurrences in the domain.
Aggregates record them while they change; services collect them
after the surrounding transaction has committed and write them
to the structured log.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

from storefront.domain.base import DomainEvent


# ============================================================================
# Cart Events
# ============================================================================


@dataclass(frozen=True)
class CartItemAdded(DomainEvent):
    """Event raised when a variant is added to a cart (new line or merge)."""

    event_type: ClassVar[str] = "cart.item_added"

    cart_id: str = ""
    item_id: str = ""
    product_id: str = ""
    size: str = ""
    color: str = ""
    quantity: int = 0
    unit_price_minor: int = 0
    merged: bool = False

    def _payload(self) -> dict[str, Any]:
        return {
            "cart_id": self.cart_id,
            "item_id": self.item_id,
            "product_id": self.product_id,
            "size": self.size,
            "color": self.color,
            "quantity": self.quantity,
            "unit_price_minor": self.unit_price_minor,
            "merged": self.merged,
        }


@dataclass(frozen=True)
class CartItemRemoved(DomainEvent):
    """Event raised when an item is removed from a cart."""

    event_type: ClassVar[str] = "cart.item_removed"

    cart_id: str = ""
    item_id: str = ""
    product_id: str = ""

    def _payload(self) -> dict[str, Any]:
        return {
            "cart_id": self.cart_id,
            "item_id": self.item_id,
            "product_id": self.product_id,
        }


@dataclass(frozen=True)
class CartItemQuantityUpdated(DomainEvent):
    """Event raised when item quantity is changed."""

    event_type: ClassVar[str] = "cart.item_quantity_updated"

    cart_id: str = ""
    item_id: str = ""
    old_quantity: int = 0
    new_quantity: int = 0

    def _payload(self) -> dict[str, Any]:
        return {
            "cart_id": self.cart_id,
            "item_id": self.item_id,
            "old_quantity": self.old_quantity,
            "new_quantity": self.new_quantity,
        }


@dataclass(frozen=True)
class CartCleared(DomainEvent):
    """Event raised when a cart is emptied (by the shopper or by checkout)."""

    event_type: ClassVar[str] = "cart.cleared"

    cart_id: str = ""
    items_removed: int = 0

    def _payload(self) -> dict[str, Any]:
        return {"cart_id": self.cart_id, "items_removed": self.items_removed}


@dataclass(frozen=True)
class CouponApplied(DomainEvent):
    """Event raised when a coupon is applied to a cart."""

    event_type: ClassVar[str] = "cart.coupon_applied"

    cart_id: str = ""
    coupon_code: str = ""
    percent: int = 0
    discount_minor: int = 0

    def _payload(self) -> dict[str, Any]:
        return {
            "cart_id": self.cart_id,
            "coupon_code": self.coupon_code,
            "percent": self.percent,
            "discount_minor": self.discount_minor,
        }


@dataclass(frozen=True)
class CouponRemoved(DomainEvent):
    """Event raised when a coupon is removed from a cart."""

    event_type: ClassVar[str] = "cart.coupon_removed"

    cart_id: str = ""
    coupon_code: str = ""

    def _payload(self) -> dict[str, Any]:
        return {"cart_id": self.cart_id, "coupon_code": self.coupon_code}


# ============================================================================
# Order Events
# ============================================================================


@dataclass(frozen=True)
class OrderPlaced(DomainEvent):
    """Event raised when checkout creates an order."""

    event_type: ClassVar[str] = "order.placed"

    order_id: str = ""
    order_number: str = ""
    user_id: str = ""
    item_count: int = 0
    total_minor: int = 0
    payment_method: str = ""

    def _payload(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "item_count": self.item_count,
            "total_minor": self.total_minor,
            "payment_method": self.payment_method,
        }


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Event raised on every non-cancelling status transition."""

    event_type: ClassVar[str] = "order.status_changed"

    order_id: str = ""
    order_number: str = ""
    old_status: str = ""
    new_status: str = ""
    note: str | None = None

    def _payload(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "old_status": self.old_status,
            "new_status": self.new_status,
            "note": self.note,
        }


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Event raised when an order is cancelled."""

    event_type: ClassVar[str] = "order.cancelled"

    order_id: str = ""
    order_number: str = ""
    reason: str | None = None
    cancelled_by: str = ""

    def _payload(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "reason": self.reason,
            "cancelled_by": self.cancelled_by,
        }


@dataclass(frozen=True)
class OrderPaymentUpdated(DomainEvent):
    """Event raised when the recorded payment status changes."""

    event_type: ClassVar[str] = "order.payment_updated"

    order_id: str = ""
    order_number: str = ""
    old_status: str = ""
    new_status: str = ""
    transaction_id: str | None = None

    def _payload(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "order_number": self.order_number,
            "old_status": self.old_status,
            "new_status": self.new_status,
            "transaction_id": self.transaction_id,
        }
