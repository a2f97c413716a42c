"""Domain exceptions.

All domain-level errors that represent business rule violations.
These exceptions are raised by entities, state machines and services
when invariants are violated or invalid operations are attempted.
Every one of them is a recoverable, user-facing condition.
"""

from typing import Any, ClassVar


class DomainError(Exception):
    """Base class for all domain exceptions.

    Attributes:
        error_code: Machine-readable code surfaced by the API.
        message: Human-readable error message.
        details: Additional error context.
    """

    error_code: ClassVar[str] = "DOMAIN_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Not Found
# ============================================================================


class NotFoundError(DomainError):
    """Raised when a cart, order, product, variant or item is absent."""

    error_code: ClassVar[str] = "NOT_FOUND"

    def __init__(
        self,
        resource: str,
        identifier: str | None = None,
        message: str | None = None,
    ) -> None:
        """Initialize not found error.

        Args:
            resource: Kind of resource that was looked up (e.g., "Order").
            identifier: Identifier that was looked up.
            message: Override for the default "<resource> not found".
        """
        super().__init__(
            message or f"{resource} not found",
            details={"resource": resource, "identifier": identifier},
        )


class CartItemNotFoundError(NotFoundError):
    """Raised when a cart item is not found."""

    def __init__(self, cart_id: str, item_id: str) -> None:
        super().__init__("Cart item", item_id)
        self.details["cart_id"] = cart_id


class OrderNotFoundError(NotFoundError):
    """Raised when an order is not found (or not owned by the caller)."""

    def __init__(self, order_ref: str) -> None:
        super().__init__("Order", order_ref)


class ProductNotFoundError(NotFoundError):
    """Raised when a product is missing or not available for sale."""

    def __init__(self, product_id: str) -> None:
        super().__init__("Product", product_id)


class VariantNotFoundError(NotFoundError):
    """Raised when a size/color combination does not exist for a product."""

    def __init__(self, product_id: str, size: str, color: str) -> None:
        super().__init__(
            "Variant",
            f"{product_id}:{size}/{color}",
            message="Selected size/color combination is not available",
        )


# ============================================================================
# Invalid Input
# ============================================================================


class InvalidInputError(DomainError):
    """Raised when a request is well-formed but semantically invalid."""

    error_code: ClassVar[str] = "INVALID_INPUT"


class InvalidCouponError(InvalidInputError):
    """Raised when a coupon code is unknown to the discount policy."""

    error_code: ClassVar[str] = "INVALID_COUPON"

    def __init__(self, coupon_code: str) -> None:
        super().__init__(
            "Invalid coupon code",
            details={"coupon_code": coupon_code},
        )


class InvalidQuantityError(InvalidInputError):
    """Raised when an invalid quantity is provided."""

    error_code: ClassVar[str] = "INVALID_QUANTITY"

    def __init__(self, quantity: int, reason: str = "Quantity must be positive") -> None:
        super().__init__(
            f"Invalid quantity {quantity}: {reason}",
            details={"quantity": quantity, "reason": reason},
        )


class InvalidStateTransitionError(InvalidInputError):
    """Raised when an invalid order status transition is attempted."""

    error_code: ClassVar[str] = "INVALID_TRANSITION"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        current_state: str,
        target_state: str,
        allowed_transitions: list[str] | None = None,
    ) -> None:
        allowed = allowed_transitions or []
        message = (
            f"Cannot transition {entity_type}({entity_id}) "
            f"from '{current_state}' to '{target_state}'. "
            f"Allowed transitions: {allowed}"
        )
        super().__init__(
            message,
            details={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "current_state": current_state,
                "target_state": target_state,
                "allowed_transitions": allowed,
            },
        )


# ============================================================================
# Inventory
# ============================================================================


class InsufficientStockError(DomainError):
    """Raised when the requested quantity exceeds available stock."""

    error_code: ClassVar[str] = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_id: str,
        size: str,
        color: str,
        requested: int,
        available: int | None = None,
        product_name: str | None = None,
    ) -> None:
        """Initialize insufficient stock error.

        Args:
            product_id: Product identifier.
            size: Variant size.
            color: Variant color.
            requested: Quantity requested.
            available: Quantity available, when known.
            product_name: Product name for the message, when known.
        """
        label = product_name or product_id
        if available is None:
            message = f"Insufficient stock for {label} ({size}/{color})"
        else:
            message = f"Only {available} items available in stock for {label} ({size}/{color})"
        super().__init__(
            message,
            details={
                "product_id": product_id,
                "size": size,
                "color": color,
                "requested": requested,
                "available": available,
            },
        )


# ============================================================================
# Cart / Order
# ============================================================================


class EmptyCartError(DomainError):
    """Raised when trying to checkout an empty cart."""

    error_code: ClassVar[str] = "EMPTY_CART"

    def __init__(self, cart_id: str | None = None) -> None:
        super().__init__("Your cart is empty", details={"cart_id": cart_id})


class OrderNotCancellableError(DomainError):
    """Raised when trying to cancel an order that cannot be cancelled."""

    error_code: ClassVar[str] = "ORDER_NOT_CANCELLABLE"

    def __init__(self, order_id: str, current_status: str) -> None:
        super().__init__(
            "This order cannot be cancelled",
            details={"order_id": order_id, "current_status": current_status},
        )


class ConcurrentModificationError(DomainError):
    """Raised when a save loses an optimistic concurrency race."""

    error_code: ClassVar[str] = "CONCURRENT_MODIFICATION"

    def __init__(self, entity_type: str, entity_id: str) -> None:
        super().__init__(
            f"{entity_type} {entity_id} was modified concurrently, please retry",
            details={"entity_type": entity_type, "entity_id": entity_id},
        )


# ============================================================================
# Money Errors
# ============================================================================


class MoneyError(DomainError):
    """Base class for money-related errors."""

    error_code: ClassVar[str] = "MONEY_ERROR"


class CurrencyMismatchError(MoneyError):
    """Raised when attempting to combine money with different currencies."""

    def __init__(self, currency1: str, currency2: str) -> None:
        super().__init__(
            f"Cannot combine money with different currencies: {currency1} and {currency2}",
            details={"currency1": currency1, "currency2": currency2},
        )


class NegativeMoneyError(MoneyError):
    """Raised when attempting to create money with negative amount."""

    def __init__(self, amount: int) -> None:
        super().__init__(
            f"Money amount cannot be negative: {amount}",
            details={"amount": amount},
        )
