"""Order application service.

Orchestrates order lifecycle management after checkout:
- Listing and looking up orders (by id or order number)
- Customer cancellation with compensating stock restore
- Tracking and reorder
- Admin status and payment updates
- Reconciling stock for cancelled orders whose restore never landed

Cancellation flips the status, restores every line's stock and stamps
the order's ``stock_restored_at`` marker in one transaction.
"""

from dataclasses import dataclass, field

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.application.cart_service import CartService
from storefront.application.inventory_service import InventoryLedger
from storefront.application.pagination import PaginatedResult, PaginationParams
from storefront.application.policies import pricing_policy_from_settings, publish_events
from storefront.domain.entities import Cart, Order
from storefront.domain.exceptions import ConcurrentModificationError, OrderNotFoundError
from storefront.domain.pricing import PricingPolicy
from storefront.domain.state_machines import OrderStatus
from storefront.domain.value_objects import (
    PaymentStatus,
    ShippingInfo,
    StatusHistoryEntry,
    VariantSelection,
)
from storefront.infrastructure.database import unit_of_work
from storefront.infrastructure.repositories import CartRepository, OrderRepository

logger = structlog.get_logger()

ADMIN_ACTOR = "admin"


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class TrackingInfo:
    """Public tracking view of an order."""

    order_number: str
    status: OrderStatus
    shipping: ShippingInfo
    timeline: list[StatusHistoryEntry]


@dataclass
class ReorderResult:
    """Cart after a reorder and the names of lines that could not be added."""

    cart: Cart
    unavailable_items: list[str] = field(default_factory=list)


@dataclass
class ReconcileResult:
    """Outcome of a stock reconciliation pass."""

    orders_repaired: int = 0
    units_restored: int = 0
    order_numbers: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


# ============================================================================
# Order Service
# ============================================================================


class OrderService:
    """Application service for managing orders after checkout."""

    def __init__(
        self,
        session: AsyncSession,
        request_id: str | None = None,
        pricing_policy: PricingPolicy | None = None,
    ) -> None:
        """Initialize service.

        Args:
            session: Database session for this request.
            request_id: Request ID for correlation.
            pricing_policy: Tax and shipping parameters for carts touched by reorder.
        """
        self.session = session
        self.request_id = request_id
        policy = pricing_policy or pricing_policy_from_settings()
        self.orders = OrderRepository(session)
        self.carts = CartRepository(session, policy)
        self.ledger = InventoryLedger(session, request_id=request_id)
        self.cart_service = CartService(session, request_id=request_id, pricing_policy=policy)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def list_orders(
        self,
        user_id: str,
        params: PaginationParams,
        status: OrderStatus | None = None,
    ) -> PaginatedResult[Order]:
        """List a user's orders, newest first."""
        orders, total = await self.orders.find_all(
            user_id=user_id,
            status=status,
            offset=params.offset,
            limit=params.limit,
        )
        return PaginatedResult(items=orders, total=total, page=params.page, limit=params.limit)

    async def list_all_orders(
        self,
        params: PaginationParams,
        status: OrderStatus | None = None,
        payment_status: PaymentStatus | None = None,
    ) -> PaginatedResult[Order]:
        """List every order (admin), newest first."""
        orders, total = await self.orders.find_all(
            status=status,
            payment_status=payment_status.value if payment_status else None,
            offset=params.offset,
            limit=params.limit,
        )
        return PaginatedResult(items=orders, total=total, page=params.page, limit=params.limit)

    async def get_order(self, order_ref: str, user_id: str | None = None) -> Order:
        """Get an order by id or order number.

        Args:
            order_ref: Storage id, or order number when it starts with ``ORD-``.
            user_id: Owner to scope the lookup to; None for admin access.

        Raises:
            OrderNotFoundError: If no such order exists for the owner.
        """
        order = await self.orders.get(order_ref, user_id=user_id)
        if order is None:
            raise OrderNotFoundError(order_ref)
        return order

    async def track_order(self, order_ref: str, user_id: str) -> TrackingInfo:
        order = await self.get_order(order_ref, user_id)
        return TrackingInfo(
            order_number=order.order_number,
            status=order.status,
            shipping=order.shipping,
            timeline=list(order.status_history),
        )

    # -------------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------------

    async def cancel_order(
        self,
        order_ref: str,
        cancelled_by: str,
        reason: str | None = None,
        user_id: str | None = None,
        internal_note: str | None = None,
    ) -> Order:
        """Cancel an order and return its stock, atomically.

        Args:
            order_ref: Order id or order number.
            cancelled_by: Actor recorded on the cancellation.
            reason: Cancellation reason.
            user_id: Owner to scope the lookup to; None for admin access.
            internal_note: Staff note to store on the order.

        Returns:
            The cancelled order.

        Raises:
            OrderNotFoundError: If the order does not exist for the owner.
            OrderNotCancellableError: If the order has progressed too far.
            ConcurrentModificationError: If the order changed concurrently.
        """
        order = await self.get_order(order_ref, user_id)

        async with unit_of_work(self.session):
            order.cancel(reason, cancelled_by)
            if internal_note is not None:
                order.internal_note = internal_note
            await self._restore_stock(order)
            await self.orders.save(order)

        logger.info(
            "Order cancelled",
            order_number=order.order_number,
            cancelled_by=cancelled_by,
            reason=reason,
            request_id=self.request_id,
        )
        publish_events(order, self.request_id)
        return order

    async def reconcile_stock(self) -> ReconcileResult:
        """Restore stock for cancelled orders that lack the restoration marker.

        Each order is repaired in its own transaction. Orders that another
        writer touches meanwhile are skipped and picked up by the next run.
        Running the pass again never restores an order twice.
        """
        result = ReconcileResult()
        pending = await self.orders.list_needing_restore()
        for order in pending:
            try:
                async with unit_of_work(self.session):
                    await self._restore_stock(order)
                    await self.orders.save(order)
            except ConcurrentModificationError:
                logger.warning(
                    "Skipping order modified during reconciliation",
                    order_number=order.order_number,
                    request_id=self.request_id,
                )
                result.skipped.append(order.order_number)
                continue
            result.orders_repaired += 1
            result.units_restored += order.item_count
            result.order_numbers.append(order.order_number)

        logger.info(
            "Stock reconciliation finished",
            candidates=len(pending),
            orders_repaired=result.orders_repaired,
            units_restored=result.units_restored,
            request_id=self.request_id,
        )
        return result

    async def _restore_stock(self, order: Order) -> None:
        for item in order.items:
            await self.ledger.restore(item.variant_key, item.quantity)
        order.mark_stock_restored()

    # -------------------------------------------------------------------------
    # Reorder
    # -------------------------------------------------------------------------

    async def reorder(self, order_ref: str, user_id: str) -> ReorderResult:
        """Copy an order's lines into the user's cart at current prices.

        Lines whose product is missing or inactive, or whose variant is
        missing or out of stock, are skipped and reported by name.
        Quantities are capped at current stock.
        """
        order = await self.get_order(order_ref, user_id)
        cart = await self.cart_service.get_cart(user_id)
        result = ReorderResult(cart=cart)
        async with unit_of_work(self.session):
            for item in order.items:
                variant = await self.ledger.get_variant(item.variant_key)
                if variant is None or not variant.product_active or variant.stock < 1:
                    result.unavailable_items.append(item.name)
                    continue

                key = variant.key
                cart.add_item(
                    key.product_id,
                    VariantSelection(size=key.size, color=key.color, sku=variant.sku),
                    min(item.quantity, variant.stock),
                    variant.unit_price,
                )
            await self.carts.save(cart)

        logger.info(
            "Order items copied to cart",
            order_number=order.order_number,
            cart_id=str(cart.id),
            unavailable=len(result.unavailable_items),
            request_id=self.request_id,
        )
        publish_events(cart, self.request_id)
        return result

    # -------------------------------------------------------------------------
    # Admin Updates
    # -------------------------------------------------------------------------

    async def update_status(
        self,
        order_ref: str,
        status: OrderStatus,
        note: str | None = None,
        tracking_number: str | None = None,
        carrier: str | None = None,
        internal_note: str | None = None,
    ) -> Order:
        """Move an order to a new status (admin).

        Cancelling goes through the guarded cancel path so that stock is
        restored; the note becomes the cancellation reason.

        Raises:
            OrderNotFoundError: If the order does not exist.
            InvalidStateTransitionError: If the transition is not allowed.
            OrderNotCancellableError: If cancelling an order that has shipped.
            ConcurrentModificationError: If the order changed concurrently.
        """
        if status == OrderStatus.CANCELLED:
            return await self.cancel_order(
                order_ref, cancelled_by=ADMIN_ACTOR, reason=note, internal_note=internal_note
            )

        order = await self.get_order(order_ref)
        old_status = order.status

        async with unit_of_work(self.session):
            order.update_status(status, note, tracking_number=tracking_number, carrier=carrier)
            if internal_note is not None:
                order.internal_note = internal_note
            await self.orders.save(order)

        logger.info(
            "Order status updated",
            order_number=order.order_number,
            from_status=old_status.value,
            to_status=status.value,
            request_id=self.request_id,
        )
        publish_events(order, self.request_id)
        return order

    async def update_payment(
        self,
        order_ref: str,
        status: PaymentStatus,
        transaction_id: str | None = None,
    ) -> Order:
        """Record a payment status reported by the payment collaborator (admin)."""
        order = await self.get_order(order_ref)

        async with unit_of_work(self.session):
            order.update_payment(status, transaction_id)
            await self.orders.save(order)

        logger.info(
            "Order payment updated",
            order_number=order.order_number,
            payment_status=status.value,
            request_id=self.request_id,
        )
        publish_events(order, self.request_id)
        return order


# ============================================================================
# Service Factory
# ============================================================================


def get_order_service(session: AsyncSession, request_id: str | None = None) -> OrderService:
    """Get order service instance.

    Args:
        session: Database session for this request.
        request_id: Request ID for correlation.

    Returns:
        OrderService instance.
    """
    return OrderService(session, request_id=request_id)
