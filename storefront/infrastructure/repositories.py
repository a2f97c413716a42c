"""Repositories for the Cart and Order aggregates.

Repositories translate between domain aggregates and table rows. Saves
are conditional on the version that was loaded, so a writer that lost a
race gets ConcurrentModificationError instead of silently overwriting.
"""

from datetime import date, datetime
from typing import Any

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.domain.base import utcnow
from storefront.domain.entities import Cart, CartItem, Order, OrderItem
from storefront.domain.exceptions import ConcurrentModificationError
from storefront.domain.pricing import CartTotals, PricingPolicy
from storefront.domain.state_machines import OrderStatus
from storefront.domain.value_objects import (
    Address,
    Cancellation,
    CartId,
    CartItemId,
    Money,
    OrderId,
    PaymentInfo,
    ShippingInfo,
    StatusHistoryEntry,
    VariantSelection,
)
from storefront.infrastructure.models import CartModel, OrderModel, OrderSequenceModel

ORDER_NUMBER_PREFIX = "ORD-"

carts = CartModel.__table__
orders = OrderModel.__table__
order_sequences = OrderSequenceModel.__table__


def _as_datetime(value: datetime | str) -> datetime:
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


# ============================================================================
# Cart Repository
# ============================================================================


class CartRepository:
    """Repository for Cart aggregates (one per user)."""

    def __init__(self, session: AsyncSession, policy: PricingPolicy) -> None:
        """Initialize repository.

        Args:
            session: Async SQLAlchemy session.
            policy: Pricing parameters attached to every loaded cart.
        """
        self.session = session
        self.policy = policy

    async def get_by_user(self, user_id: str) -> Cart | None:
        result = await self.session.execute(select(carts).where(carts.c.user_id == user_id))
        row = result.mappings().one_or_none()
        return self._to_domain(row) if row else None

    async def add(self, cart: Cart) -> Cart:
        """Insert a new cart.

        Raises:
            IntegrityError: If the user already has a cart.
        """
        await self.session.execute(insert(carts).values(**self._to_row(cart), version=1))
        cart.version = 1
        return cart

    async def save(self, cart: Cart) -> Cart:
        """Persist changes to an existing cart.

        Raises:
            ConcurrentModificationError: If the cart changed since it was loaded.
        """
        result = await self.session.execute(
            update(carts)
            .where(carts.c.id == str(cart.id), carts.c.version == cart.version)
            .values(**self._to_row(cart), version=cart.version + 1)
        )
        if result.rowcount == 0:
            raise ConcurrentModificationError("Cart", str(cart.id))
        cart.version += 1
        return cart

    @staticmethod
    def _to_row(cart: Cart) -> dict[str, Any]:
        return {
            "id": str(cart.id),
            "user_id": cart.user_id,
            "items": [
                {
                    "id": str(item.id),
                    "product_id": item.product_id,
                    "variant": item.variant.to_dict(),
                    "quantity": item.quantity,
                    "unit_price": item.unit_price.amount_minor,
                    "currency": item.unit_price.currency,
                    "added_at": item.added_at.isoformat(),
                }
                for item in cart.items
            ],
            "coupon_code": cart.coupon_code,
            "coupon_percent": cart.coupon_percent,
            "created_at": cart.created_at,
            "updated_at": cart.updated_at,
        }

    def _to_domain(self, row: Any) -> Cart:
        items = [
            CartItem(
                id=CartItemId.from_string(data["id"]),
                product_id=data["product_id"],
                variant=VariantSelection.from_dict(data["variant"]),
                quantity=data["quantity"],
                unit_price=Money(data["unit_price"], data.get("currency", self.policy.currency)),
                added_at=datetime.fromisoformat(data["added_at"]),
            )
            for data in row["items"] or []
        ]
        return Cart(
            id=CartId.from_string(row["id"]),
            user_id=row["user_id"],
            items=items,
            coupon_code=row["coupon_code"],
            coupon_percent=row["coupon_percent"],
            policy=self.policy,
            version=row["version"],
            created_at=_as_datetime(row["created_at"]),
            updated_at=_as_datetime(row["updated_at"]),
        )


# ============================================================================
# Order Repository
# ============================================================================


class OrderRepository:
    """Repository for Order aggregates."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, order: Order) -> Order:
        await self.session.execute(insert(orders).values(**self._to_row(order), version=1))
        order.version = 1
        return order

    async def save(self, order: Order) -> Order:
        """Persist changes to an existing order.

        Raises:
            ConcurrentModificationError: If the order changed since it was loaded.
        """
        result = await self.session.execute(
            update(orders)
            .where(orders.c.id == str(order.id), orders.c.version == order.version)
            .values(**self._to_row(order), version=order.version + 1)
        )
        if result.rowcount == 0:
            raise ConcurrentModificationError("Order", order.order_number)
        order.version += 1
        return order

    async def get(self, order_ref: str, user_id: str | None = None) -> Order | None:
        """Get an order by storage id or order number.

        References starting with ``ORD-`` are order numbers.

        Args:
            order_ref: Order id or order number.
            user_id: Restrict the lookup to this owner, if given.

        Returns:
            Order if found (and owned), None otherwise.
        """
        if order_ref.startswith(ORDER_NUMBER_PREFIX):
            query = select(orders).where(orders.c.order_number == order_ref)
        else:
            query = select(orders).where(orders.c.id == order_ref)
        if user_id is not None:
            query = query.where(orders.c.user_id == user_id)
        result = await self.session.execute(query)
        row = result.mappings().one_or_none()
        return self._to_domain(row) if row else None

    async def find_all(
        self,
        user_id: str | None = None,
        status: OrderStatus | None = None,
        payment_status: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[Order], int]:
        """List orders newest first with optional filters.

        Returns:
            Tuple of (orders on the requested page, total matching count).
        """
        conditions = []
        if user_id is not None:
            conditions.append(orders.c.user_id == user_id)
        if status is not None:
            conditions.append(orders.c.status == status.value)
        if payment_status is not None:
            conditions.append(orders.c.payment_status == payment_status)

        count_result = await self.session.execute(
            select(func.count()).select_from(orders).where(*conditions)
        )
        total = count_result.scalar_one()

        result = await self.session.execute(
            select(orders)
            .where(*conditions)
            .order_by(orders.c.created_at.desc(), orders.c.order_number.desc())
            .offset(offset)
            .limit(limit)
        )
        return [self._to_domain(row) for row in result.mappings().all()], total

    async def list_needing_restore(self) -> list[Order]:
        """Cancelled orders whose stock has not been returned yet."""
        result = await self.session.execute(
            select(orders)
            .where(
                orders.c.status == OrderStatus.CANCELLED.value,
                orders.c.stock_restored_at.is_(None),
            )
            .order_by(orders.c.created_at)
        )
        return [self._to_domain(row) for row in result.mappings().all()]

    @staticmethod
    def _to_row(order: Order) -> dict[str, Any]:
        return {
            "id": str(order.id),
            "order_number": order.order_number,
            "user_id": order.user_id,
            "status": order.status.value,
            "payment_status": order.payment.status.value,
            "items": [item.to_dict() for item in order.items],
            "shipping_address": order.shipping_address.to_dict(),
            "billing_address": order.billing_address.to_dict(),
            "pricing": order.pricing.to_dict(),
            "total": order.pricing.total.amount_minor,
            "payment": order.payment.to_dict(),
            "status_history": [entry.to_dict() for entry in order.status_history],
            "shipping": order.shipping.to_dict(),
            "cancellation": order.cancellation.to_dict() if order.cancellation else None,
            "customer_note": order.customer_note,
            "internal_note": order.internal_note,
            "stock_restored_at": order.stock_restored_at,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
        }

    @staticmethod
    def _to_domain(row: Any) -> Order:
        cancellation = row["cancellation"]
        stock_restored_at = row["stock_restored_at"]
        return Order(
            id=OrderId.from_string(row["id"]),
            order_number=row["order_number"],
            user_id=row["user_id"],
            items=[OrderItem.from_dict(item) for item in row["items"]],
            shipping_address=Address.from_dict(row["shipping_address"]),
            billing_address=Address.from_dict(row["billing_address"]),
            payment=PaymentInfo.from_dict(row["payment"]),
            pricing=CartTotals.from_dict(row["pricing"]),
            status=OrderStatus(row["status"]),
            status_history=[StatusHistoryEntry.from_dict(e) for e in row["status_history"]],
            shipping=ShippingInfo.from_dict(row["shipping"]),
            cancellation=Cancellation.from_dict(cancellation) if cancellation else None,
            customer_note=row["customer_note"],
            internal_note=row["internal_note"],
            stock_restored_at=_as_datetime(stock_restored_at) if stock_restored_at else None,
            version=row["version"],
            created_at=_as_datetime(row["created_at"]),
            updated_at=_as_datetime(row["updated_at"]),
        )


# ============================================================================
# Order Number Sequence
# ============================================================================


class OrderNumberSequence:
    """Issues ``ORD-YYYYMMDD-NNNNNN`` numbers from a per-day counter row.

    The counter is advanced by a single conditional increment in the
    caller's transaction, so numbers are unique and consecutive per day
    and a rolled-back checkout does not burn a number.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def next_number(self, day: date | None = None) -> str:
        """Draw the next order number for a day (UTC today by default)."""
        day = day or utcnow().date()
        value = await self._increment(day)
        if value is None:
            try:
                async with self.session.begin_nested():
                    await self.session.execute(
                        insert(order_sequences).values(day=day, value=1)
                    )
                value = 1
            except IntegrityError:
                # Another transaction created today's row first
                value = await self._increment(day)
                if value is None:
                    raise
        return format_order_number(day, value)

    async def _increment(self, day: date) -> int | None:
        result = await self.session.execute(
            update(order_sequences)
            .where(order_sequences.c.day == day)
            .values(value=order_sequences.c.value + 1)
            .returning(order_sequences.c.value)
        )
        return result.scalar_one_or_none()


def format_order_number(day: date, value: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}{day:%Y%m%d}-{value:06d}"
