"""Domain layer - Entities, value objects, pricing, state machine, domain events.

This module exports the core domain building blocks following DDD patterns:

- **Entities**: Objects with identity (Cart, Order)
- **Value Objects**: Immutable objects compared by value (Money, Address, typed IDs)
- **Pricing**: Pure totals computation and coupon policies
- **State Machine**: Deterministic order status transitions (OrderStatus)
- **Domain Events**: Represent significant domain occurrences
- **Exceptions**: Domain-specific errors and invariant violations

Example usage:
    from storefront.domain import Cart, Money, VariantSelection

    cart = Cart.create(user_id="user-1")
    cart.add_item(
        "prod-1",
        VariantSelection(size="M", color="Black"),
        quantity=2,
        unit_price=Money.from_major(500),
    )
    print(cart.totals.total)  # ₹1180.00 INR
"""

# Base classes
from storefront.domain.base import AggregateRoot, DomainEvent, Entity, ValueObject, utcnow

# Entities
from storefront.domain.entities import Cart, CartItem, Order, OrderItem

# Events
from storefront.domain.events import (
    CartCleared,
    CartItemAdded,
    CartItemQuantityUpdated,
    CartItemRemoved,
    CouponApplied,
    CouponRemoved,
    OrderCancelled,
    OrderPaymentUpdated,
    OrderPlaced,
    OrderStatusChanged,
)

# Exceptions
from storefront.domain.exceptions import (
    CartItemNotFoundError,
    ConcurrentModificationError,
    CurrencyMismatchError,
    DomainError,
    EmptyCartError,
    InsufficientStockError,
    InvalidCouponError,
    InvalidInputError,
    InvalidQuantityError,
    InvalidStateTransitionError,
    MoneyError,
    NegativeMoneyError,
    NotFoundError,
    OrderNotCancellableError,
    OrderNotFoundError,
    ProductNotFoundError,
    VariantNotFoundError,
)

# Pricing
from storefront.domain.pricing import (
    CartTotals,
    DiscountPolicy,
    PricingPolicy,
    StaticCouponPolicy,
    compute_totals,
    normalize_coupon_code,
)

# State machines
from storefront.domain.state_machines import OrderStatus, validate_order_transition

# Value objects
from storefront.domain.value_objects import (
    Address,
    Cancellation,
    CartId,
    CartItemId,
    Money,
    OrderId,
    PaymentInfo,
    PaymentMethod,
    PaymentStatus,
    ShippingInfo,
    StatusHistoryEntry,
    VariantKey,
    VariantSelection,
)

__all__ = [
    # Base
    "AggregateRoot",
    "DomainEvent",
    "Entity",
    "ValueObject",
    "utcnow",
    # Entities
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    # Events
    "CartCleared",
    "CartItemAdded",
    "CartItemQuantityUpdated",
    "CartItemRemoved",
    "CouponApplied",
    "CouponRemoved",
    "OrderCancelled",
    "OrderPaymentUpdated",
    "OrderPlaced",
    "OrderStatusChanged",
    # Exceptions
    "CartItemNotFoundError",
    "ConcurrentModificationError",
    "CurrencyMismatchError",
    "DomainError",
    "EmptyCartError",
    "InsufficientStockError",
    "InvalidCouponError",
    "InvalidInputError",
    "InvalidQuantityError",
    "InvalidStateTransitionError",
    "MoneyError",
    "NegativeMoneyError",
    "NotFoundError",
    "OrderNotCancellableError",
    "OrderNotFoundError",
    "ProductNotFoundError",
    "VariantNotFoundError",
    # Pricing
    "CartTotals",
    "DiscountPolicy",
    "PricingPolicy",
    "StaticCouponPolicy",
    "compute_totals",
    "normalize_coupon_code",
    # State machines
    "OrderStatus",
    "validate_order_transition",
    # Value objects
    "Address",
    "Cancellation",
    "CartId",
    "CartItemId",
    "Money",
    "OrderId",
    "PaymentInfo",
    "PaymentMethod",
    "PaymentStatus",
    "ShippingInfo",
    "StatusHistoryEntry",
    "VariantKey",
    "VariantSelection",
]
