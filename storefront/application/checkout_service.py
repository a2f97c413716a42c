"""Checkout application service.

Turns the shopper's cart into an order as a single unit of work:

1. Reject an empty (or missing) cart.
2. Resolve every line's current variant and check its stock.
3. Freeze order line snapshots (catalog name/image/SKU, cart price).
4. In one transaction: reserve every line, draw the next order number,
   create the order, clear the cart, commit.

If anything fails the transaction is rolled back: no order exists and
no stock has moved.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.application.inventory_service import InventoryLedger
from storefront.application.policies import pricing_policy_from_settings, publish_events
from storefront.domain.entities import Cart, Order, OrderItem
from storefront.domain.exceptions import EmptyCartError, InsufficientStockError
from storefront.domain.pricing import PricingPolicy
from storefront.domain.value_objects import Address, PaymentMethod, VariantSelection
from storefront.infrastructure.database import unit_of_work
from storefront.infrastructure.repositories import (
    CartRepository,
    OrderNumberSequence,
    OrderRepository,
)

logger = structlog.get_logger()


class CheckoutService:
    """Application service that places orders from carts."""

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
            pricing_policy: Tax and shipping parameters for loaded carts.
        """
        self.session = session
        self.request_id = request_id
        self.carts = CartRepository(session, pricing_policy or pricing_policy_from_settings())
        self.orders = OrderRepository(session)
        self.sequence = OrderNumberSequence(session)
        self.ledger = InventoryLedger(session, request_id=request_id)

    async def checkout(
        self,
        user_id: str,
        shipping_address: Address,
        payment_method: PaymentMethod,
        billing_address: Address | None = None,
        notes: str | None = None,
    ) -> Order:
        """Place an order from the user's cart.

        Args:
            user_id: Cart owner.
            shipping_address: Delivery address.
            payment_method: Chosen payment method.
            billing_address: Billing address, defaults to the shipping address.
            notes: Optional note from the shopper.

        Returns:
            The created order.

        Raises:
            EmptyCartError: If the cart is missing or has no items.
            InsufficientStockError: If any line cannot be covered. Nothing
                is reserved in that case.
            ConcurrentModificationError: If the cart changed during checkout.
        """
        cart = await self.carts.get_by_user(user_id)
        if cart is None or cart.is_empty:
            raise EmptyCartError(str(cart.id) if cart else None)

        items = await self._snapshot_items(cart)

        async with unit_of_work(self.session):
            for item in items:
                await self.ledger.reserve(item.variant_key, item.quantity, product_name=item.name)

            order_number = await self.sequence.next_number()
            order = Order.place(
                order_number=order_number,
                user_id=user_id,
                items=items,
                shipping_address=shipping_address,
                billing_address=billing_address,
                payment_method=payment_method,
                pricing=cart.totals,
                customer_note=notes,
            )
            await self.orders.add(order)

            cart.clear()
            await self.carts.save(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=user_id,
            item_count=order.item_count,
            total=order.pricing.total.amount_minor,
            payment_method=payment_method.value,
            request_id=self.request_id,
        )
        publish_events(order, self.request_id)
        publish_events(cart, self.request_id)
        return order

    async def _snapshot_items(self, cart: Cart) -> list[OrderItem]:
        """Validate each cart line against the catalog and freeze it.

        Raises:
            InsufficientStockError: If a variant is gone or short of stock.
        """
        items: list[OrderItem] = []
        for line in cart.items:
            snapshot = await self.ledger.get_variant(line.variant_key)
            if snapshot is None or snapshot.stock < line.quantity:
                raise InsufficientStockError(
                    product_id=line.product_id,
                    size=line.variant.size,
                    color=line.variant.color,
                    requested=line.quantity,
                    available=snapshot.stock if snapshot else 0,
                    product_name=snapshot.product_name if snapshot else None,
                )
            items.append(
                OrderItem(
                    product_id=line.product_id,
                    name=snapshot.product_name,
                    image=snapshot.image,
                    variant=VariantSelection(
                        size=line.variant.size,
                        color=line.variant.color,
                        sku=line.variant.sku or snapshot.sku,
                    ),
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
            )
        return items


# ============================================================================
# Service Factory
# ============================================================================


def get_checkout_service(session: AsyncSession, request_id: str | None = None) -> CheckoutService:
    """Get checkout service instance.

    Args:
        session: Database session for this request.
        request_id: Request ID for correlation.

    Returns:
        CheckoutService instance.
    """
    return CheckoutService(session, request_id=request_id)
