"""Domain entities for the storefront checkout core.

Entities are domain objects with identity that persists across state changes.
This module contains the two aggregates: Cart and Order.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Self

from storefront.domain.base import AggregateRoot, Entity, ValueObject, utcnow
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
from storefront.domain.exceptions import (
    CartItemNotFoundError,
    EmptyCartError,
    InvalidInputError,
    InvalidQuantityError,
    InvalidStateTransitionError,
    OrderNotCancellableError,
)
from storefront.domain.pricing import CartTotals, PricingPolicy, compute_totals
from storefront.domain.state_machines import OrderStatus, validate_order_transition
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


# ============================================================================
# Cart Item Entity
# ============================================================================


@dataclass
class CartItem(Entity[CartItemId]):
    """An item in a shopping cart.

    CartItem is an entity (not an aggregate root) that belongs to
    the Cart aggregate. It maintains its own identity within the cart.

    Attributes:
        id: Unique identifier for this cart item.
        product_id: Catalog product identifier.
        variant: Size, color and SKU of the chosen variant.
        quantity: Number of units.
        unit_price: Price snapshot taken when the item was added.
        added_at: Timestamp when item was added.
    """

    id: CartItemId
    product_id: str
    variant: VariantSelection
    quantity: int
    unit_price: Money
    added_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        """Validate cart item constraints."""
        if self.quantity <= 0:
            raise InvalidQuantityError(self.quantity)

    @property
    def variant_key(self) -> VariantKey:
        return VariantKey(self.product_id, self.variant.size, self.variant.color)

    @property
    def line_total(self) -> Money:
        """Calculate total price for this line item.

        Returns:
            Unit price multiplied by quantity.
        """
        return self.unit_price * self.quantity

    def update_quantity(self, new_quantity: int) -> int:
        """Update item quantity.

        Args:
            new_quantity: New quantity value.

        Returns:
            Previous quantity.

        Raises:
            InvalidQuantityError: If quantity is not positive.
        """
        if new_quantity <= 0:
            raise InvalidQuantityError(new_quantity)
        old_quantity = self.quantity
        self.quantity = new_quantity
        return old_quantity


# ============================================================================
# Cart Aggregate Root
# ============================================================================


@dataclass(kw_only=True)
class Cart(AggregateRoot[CartId]):
    """Shopping cart aggregate root.

    One cart exists per user. It holds at most one item per variant
    and recomputes its totals through the pricing engine after every
    mutation, so ``totals`` is always consistent with ``items``.

    Attributes:
        id: Unique cart identifier.
        user_id: Owner of the cart.
        items: Cart items in insertion order.
        coupon_code: Applied coupon code, upper-cased.
        coupon_percent: Discount percent resolved when the coupon was applied.
        policy: Tax and shipping parameters (not persisted).
    """

    id: CartId
    user_id: str
    items: list[CartItem] = field(default_factory=list)
    coupon_code: str | None = None
    coupon_percent: int = 0
    policy: PricingPolicy = field(default_factory=PricingPolicy, compare=False, repr=False)
    totals: CartTotals = field(init=False, compare=False)

    def __post_init__(self) -> None:
        self._recalculate()

    @classmethod
    def create(cls, user_id: str, policy: PricingPolicy | None = None) -> "Cart":
        """Create an empty cart for a user.

        Args:
            user_id: Owner of the cart.
            policy: Pricing parameters, defaults to the standard policy.

        Returns:
            New Cart instance.
        """
        return cls(
            id=CartId.generate(),
            user_id=user_id,
            policy=policy or PricingPolicy(),
        )

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    @property
    def item_count(self) -> int:
        """Get total number of units (sum of quantities)."""
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return len(self.items) == 0

    def get_item(self, item_id: CartItemId) -> CartItem | None:
        """Find item by ID.

        Args:
            item_id: Cart item identifier.

        Returns:
            CartItem if found, None otherwise.
        """
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def find_variant(self, key: VariantKey) -> CartItem | None:
        """Find the item holding a given variant, if any."""
        for item in self.items:
            if item.variant_key == key:
                return item
        return None

    def require_item(self, item_id: CartItemId) -> CartItem:
        item = self.get_item(item_id)
        if item is None:
            raise CartItemNotFoundError(str(self.id), str(item_id))
        return item

    # -------------------------------------------------------------------------
    # Cart Item Operations
    # -------------------------------------------------------------------------

    def add_item(
        self,
        product_id: str,
        variant: VariantSelection,
        quantity: int,
        unit_price: Money,
    ) -> CartItem:
        """Add a variant to the cart.

        If the same (product, size, color) is already in the cart its
        quantity is increased and the original price snapshot is kept.
        Otherwise a new cart item is created.

        Args:
            product_id: Catalog product identifier.
            variant: Chosen size/color (and SKU).
            quantity: Number of units to add.
            unit_price: Current effective price of the variant.

        Returns:
            The new or updated CartItem.

        Raises:
            InvalidQuantityError: If quantity is not positive.
        """
        if quantity <= 0:
            raise InvalidQuantityError(quantity)

        key = VariantKey(product_id, variant.size, variant.color)
        item = self.find_variant(key)
        merged = item is not None
        if item is not None:
            item.update_quantity(item.quantity + quantity)
        else:
            item = CartItem(
                id=CartItemId.generate(),
                product_id=product_id,
                variant=variant,
                quantity=quantity,
                unit_price=unit_price,
            )
            self.items.append(item)

        self._changed()
        self._record_event(
            CartItemAdded(
                aggregate_id=str(self.id),
                aggregate_type="Cart",
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=product_id,
                size=variant.size,
                color=variant.color,
                quantity=quantity,
                unit_price_minor=item.unit_price.amount_minor,
                merged=merged,
            )
        )
        return item

    def update_item_quantity(self, item_id: CartItemId, quantity: int) -> CartItem | None:
        """Set the quantity of an item; zero or less removes it.

        Args:
            item_id: ID of item to update.
            quantity: New quantity.

        Returns:
            Updated CartItem, or None when the item was removed.

        Raises:
            CartItemNotFoundError: If item is not in cart.
        """
        item = self.require_item(item_id)
        if quantity <= 0:
            self.remove_item(item_id)
            return None

        old_quantity = item.update_quantity(quantity)
        self._changed()
        self._record_event(
            CartItemQuantityUpdated(
                aggregate_id=str(self.id),
                aggregate_type="Cart",
                cart_id=str(self.id),
                item_id=str(item_id),
                old_quantity=old_quantity,
                new_quantity=quantity,
            )
        )
        return item

    def remove_item(self, item_id: CartItemId) -> CartItem:
        """Remove an item from the cart.

        Raises:
            CartItemNotFoundError: If item is not in cart.
        """
        item = self.require_item(item_id)
        self.items.remove(item)
        self._changed()
        self._record_event(
            CartItemRemoved(
                aggregate_id=str(self.id),
                aggregate_type="Cart",
                cart_id=str(self.id),
                item_id=str(item_id),
                product_id=item.product_id,
            )
        )
        return item

    def clear(self) -> int:
        """Remove all items and any applied coupon.

        Returns:
            Number of items removed.
        """
        count = len(self.items)
        self.items.clear()
        self.coupon_code = None
        self.coupon_percent = 0
        self._changed()
        self._record_event(
            CartCleared(
                aggregate_id=str(self.id),
                aggregate_type="Cart",
                cart_id=str(self.id),
                items_removed=count,
            )
        )
        return count

    # -------------------------------------------------------------------------
    # Coupons
    # -------------------------------------------------------------------------

    def apply_coupon(self, code: str, percent: int) -> None:
        """Apply a resolved coupon, replacing any previous one.

        The discount is recomputed from the current subtotal; applying
        the same coupon twice yields the same discount.
        """
        self.coupon_code = code
        self.coupon_percent = percent
        self._changed()
        self._record_event(
            CouponApplied(
                aggregate_id=str(self.id),
                aggregate_type="Cart",
                cart_id=str(self.id),
                coupon_code=code,
                percent=percent,
                discount_minor=self.totals.discount.amount_minor,
            )
        )

    def remove_coupon(self) -> None:
        previous = self.coupon_code
        self.coupon_code = None
        self.coupon_percent = 0
        self._changed()
        if previous:
            self._record_event(
                CouponRemoved(
                    aggregate_id=str(self.id),
                    aggregate_type="Cart",
                    cart_id=str(self.id),
                    coupon_code=previous,
                )
            )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _recalculate(self) -> None:
        self.totals = compute_totals(
            self.items,
            self.coupon_percent,
            self.policy,
            coupon_code=self.coupon_code,
        )

    def _changed(self) -> None:
        self._recalculate()
        self._touch()


# ============================================================================
# Order Item
# ============================================================================


@dataclass(frozen=True)
class OrderItem(ValueObject):
    """A line item in an order.

    Order items are immutable snapshots taken at checkout: name, image and
    SKU come from the catalog at that moment, the price from the cart.

    Attributes:
        product_id: Product identifier.
        name: Product name at time of order.
        image: Primary image URL at time of order.
        variant: Size, color and SKU.
        quantity: Ordered quantity.
        unit_price: Price per unit from the cart snapshot.
    """

    product_id: str
    name: str
    variant: VariantSelection
    quantity: int
    unit_price: Money
    image: str | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity

    @property
    def variant_key(self) -> VariantKey:
        return VariantKey(self.product_id, self.variant.size, self.variant.color)

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "image": self.image,
            "variant": self.variant.to_dict(),
            "quantity": self.quantity,
            "unit_price": self.unit_price.amount_minor,
            "currency": self.unit_price.currency,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            product_id=data["product_id"],
            name=data["name"],
            image=data.get("image"),
            variant=VariantSelection.from_dict(data["variant"]),
            quantity=data["quantity"],
            unit_price=Money(data["unit_price"], data.get("currency", "INR")),
        )


# ============================================================================
# Order Aggregate Root
# ============================================================================


@dataclass(kw_only=True)
class Order(AggregateRoot[OrderId]):
    """Order aggregate root.

    Orders are created once at checkout from a cart snapshot. Afterwards
    only status, shipping, payment, cancellation and stock restoration
    fields change; items, addresses and pricing never do.

    Attributes:
        id: Storage identifier.
        order_number: Human-readable number, ``ORD-YYYYMMDD-NNNNNN``.
        user_id: Owner of the order.
        items: Immutable line snapshots.
        shipping_address: Delivery address.
        billing_address: Billing address (defaults to shipping address).
        payment: Payment method and recorded status.
        pricing: Totals copied verbatim from the cart.
        status: Current order status.
        status_history: Append-only status log.
        shipping: Carrier metadata.
        cancellation: Set when the order is cancelled.
        customer_note: Note left by the shopper at checkout.
        internal_note: Note left by staff.
        stock_restored_at: Set once cancelled stock has been returned.
    """

    id: OrderId
    order_number: str
    user_id: str
    items: list[OrderItem]
    shipping_address: Address
    billing_address: Address
    payment: PaymentInfo
    pricing: CartTotals
    status: OrderStatus = OrderStatus.PENDING
    status_history: list[StatusHistoryEntry] = field(default_factory=list)
    shipping: ShippingInfo = field(default_factory=ShippingInfo)
    cancellation: Cancellation | None = None
    customer_note: str | None = None
    internal_note: str | None = None
    stock_restored_at: datetime | None = None

    @classmethod
    def place(
        cls,
        *,
        order_number: str,
        user_id: str,
        items: list[OrderItem],
        shipping_address: Address,
        payment_method: PaymentMethod,
        pricing: CartTotals,
        billing_address: Address | None = None,
        customer_note: str | None = None,
    ) -> "Order":
        """Create a pending order.

        Factory method that creates the order, its first history entry and
        the placement event.

        Args:
            order_number: Number drawn from the daily sequence.
            user_id: Owner of the order.
            items: Line snapshots.
            shipping_address: Delivery address.
            payment_method: Chosen payment method.
            pricing: Totals copied from the cart.
            billing_address: Billing address, defaults to shipping address.
            customer_note: Optional note from the shopper.

        Returns:
            New Order instance.

        Raises:
            EmptyCartError: If there are no items.
        """
        if not items:
            raise EmptyCartError()

        now = utcnow()
        order = cls(
            id=OrderId.generate(),
            order_number=order_number,
            user_id=user_id,
            items=list(items),
            shipping_address=shipping_address,
            billing_address=billing_address or shipping_address,
            payment=PaymentInfo(
                method=payment_method,
                status=payment_method.initial_payment_status(),
            ),
            pricing=pricing,
            status_history=[
                StatusHistoryEntry(OrderStatus.PENDING.value, now, "Order placed")
            ],
            customer_note=customer_note,
            created_at=now,
            updated_at=now,
        )
        order._record_event(
            OrderPlaced(
                aggregate_id=str(order.id),
                aggregate_type="Order",
                order_id=str(order.id),
                order_number=order_number,
                user_id=user_id,
                item_count=order.item_count,
                total_minor=pricing.total.amount_minor,
                payment_method=payment_method.value,
            )
        )
        return order

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def can_cancel(self) -> bool:
        return self.status.is_cancellable()

    @property
    def needs_stock_restore(self) -> bool:
        """Cancelled, but the compensating restore has not been recorded."""
        return self.status == OrderStatus.CANCELLED and self.stock_restored_at is None

    # -------------------------------------------------------------------------
    # State Transitions
    # -------------------------------------------------------------------------

    def update_status(
        self,
        new_status: OrderStatus,
        note: str | None = None,
        tracking_number: str | None = None,
        carrier: str | None = None,
    ) -> None:
        """Move the order to a new status.

        Cancellation is not accepted here because it must be paired with
        a stock restore; use ``cancel`` instead.

        Args:
            new_status: Target status.
            note: Note recorded in the history entry.
            tracking_number: Carrier tracking number, if known.
            carrier: Carrier name, if known.

        Raises:
            InvalidStateTransitionError: If the transition is not allowed.
        """
        if new_status == OrderStatus.CANCELLED:
            raise InvalidStateTransitionError(
                entity_type="Order",
                entity_id=self.order_number,
                current_state=self.status.value,
                target_state=new_status.value,
                allowed_transitions=[
                    s.value for s in self.status.allowed_transitions() if s != OrderStatus.CANCELLED
                ],
            )
        validate_order_transition(self.order_number, self.status, new_status)

        now = utcnow()
        old_status = self.status
        shipping = self.shipping
        if tracking_number:
            shipping = replace(shipping, tracking_number=tracking_number)
        if carrier:
            shipping = replace(shipping, carrier=carrier)
        if new_status == OrderStatus.SHIPPED:
            shipping = replace(shipping, shipped_at=now)
        elif new_status == OrderStatus.DELIVERED:
            shipping = replace(shipping, delivered_at=now)

        self.shipping = shipping
        self.status = new_status
        self.status_history.append(StatusHistoryEntry(new_status.value, now, note))
        self._touch()
        self._record_event(
            OrderStatusChanged(
                aggregate_id=str(self.id),
                aggregate_type="Order",
                order_id=str(self.id),
                order_number=self.order_number,
                old_status=old_status.value,
                new_status=new_status.value,
                note=note,
            )
        )

    def cancel(self, reason: str | None, cancelled_by: str) -> None:
        """Cancel the order.

        The caller is responsible for restoring stock in the same
        transaction and then calling ``mark_stock_restored``.

        Args:
            reason: Cancellation reason.
            cancelled_by: Actor who cancelled (user id or "admin").

        Raises:
            OrderNotCancellableError: If order cannot be cancelled.
        """
        if not self.can_cancel:
            raise OrderNotCancellableError(self.order_number, self.status.value)

        now = utcnow()
        self.status = OrderStatus.CANCELLED
        self.cancellation = Cancellation(reason=reason, cancelled_at=now, cancelled_by=cancelled_by)
        self.status_history.append(
            StatusHistoryEntry(OrderStatus.CANCELLED.value, now, reason or "Order cancelled")
        )
        self._touch()
        self._record_event(
            OrderCancelled(
                aggregate_id=str(self.id),
                aggregate_type="Order",
                order_id=str(self.id),
                order_number=self.order_number,
                reason=reason,
                cancelled_by=cancelled_by,
            )
        )

    def mark_stock_restored(self) -> None:
        """Record that cancelled stock has been returned to inventory.

        Raises:
            InvalidInputError: If the order is not cancelled.
        """
        if self.status != OrderStatus.CANCELLED:
            raise InvalidInputError(
                "Only cancelled orders can have stock restored",
                details={"order_number": self.order_number, "status": self.status.value},
            )
        self.stock_restored_at = utcnow()
        self._touch()

    def update_payment(self, status: PaymentStatus, transaction_id: str | None = None) -> None:
        """Record a payment status reported by the payment collaborator.

        Args:
            status: New payment status.
            transaction_id: Gateway reference, if any.
        """
        old_status = self.payment.status
        payment = replace(self.payment, status=status)
        if transaction_id:
            payment = replace(payment, transaction_id=transaction_id)
        if status == PaymentStatus.COMPLETED:
            payment = replace(payment, paid_at=utcnow())
        self.payment = payment
        self._touch()
        self._record_event(
            OrderPaymentUpdated(
                aggregate_id=str(self.id),
                aggregate_type="Order",
                order_id=str(self.id),
                order_number=self.order_number,
                old_status=old_status.value,
                new_status=status.value,
                transaction_id=transaction_id,
            )
        )
