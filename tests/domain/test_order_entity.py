"""Tests for the Order aggregate."""

from decimal import Decimal

import pytest

from storefront.domain import (
    Address,
    Cart,
    Money,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    VariantSelection,
)
from storefront.domain.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from storefront.domain.exceptions import (
    EmptyCartError,
    InvalidInputError,
    InvalidStateTransitionError,
    OrderNotCancellableError,
)


@pytest.fixture
def items() -> list[OrderItem]:
    return [
        OrderItem(
            product_id="prod-tee",
            name="Classic Tee",
            variant=VariantSelection(size="M", color="Black", sku="TEE-M-BLK"),
            quantity=2,
            unit_price=Money(50000),
        )
    ]


@pytest.fixture
def order(items: list[OrderItem], address: Address) -> Order:
    cart = Cart.create("user-123")
    cart.add_item("prod-tee", items[0].variant, 2, Money(50000))
    return Order.place(
        order_number="ORD-20261016-000001",
        user_id="user-123",
        items=items,
        shipping_address=address,
        payment_method=PaymentMethod.COD,
        pricing=cart.totals,
    )


class TestPlaceOrder:
    """Tests for Order.place."""

    def test_place_creates_pending_order(self, order: Order, address: Address) -> None:
        assert order.status == OrderStatus.PENDING
        assert order.item_count == 2
        assert order.billing_address == address
        assert order.pricing.total == Money(118000)
        assert [e.status for e in order.status_history] == ["pending"]
        assert order.status_history[0].note == "Order placed"

    def test_cod_payment_starts_pending(self, order: Order) -> None:
        assert order.payment.method == PaymentMethod.COD
        assert order.payment.status == PaymentStatus.PENDING

    def test_online_payment_starts_processing(
        self, items: list[OrderItem], address: Address
    ) -> None:
        order = Order.place(
            order_number="ORD-20261016-000002",
            user_id="user-123",
            items=items,
            shipping_address=address,
            payment_method=PaymentMethod.UPI,
            pricing=Cart.create("user-123").totals,
        )
        assert order.payment.status == PaymentStatus.PROCESSING

    def test_place_without_items_raises(self, address: Address) -> None:
        with pytest.raises(EmptyCartError):
            Order.place(
                order_number="ORD-20261016-000003",
                user_id="user-123",
                items=[],
                shipping_address=address,
                payment_method=PaymentMethod.COD,
                pricing=Cart.create("user-123").totals,
            )

    def test_place_records_event(self, order: Order) -> None:
        events = order.collect_events()
        assert len(events) == 1
        assert isinstance(events[0], OrderPlaced)
        assert events[0].total_minor == 118000

    def test_order_item_round_trips_through_dict(self, items: list[OrderItem]) -> None:
        assert OrderItem.from_dict(items[0].to_dict()) == items[0]


class TestOrderStatusUpdates:
    """Tests for Order.update_status."""

    def test_ship_records_tracking(self, order: Order) -> None:
        order.update_status(
            OrderStatus.SHIPPED,
            note="Handed to courier",
            tracking_number="TRK123",
            carrier="BlueDart",
        )

        assert order.status == OrderStatus.SHIPPED
        assert order.shipping.tracking_number == "TRK123"
        assert order.shipping.carrier == "BlueDart"
        assert order.shipping.shipped_at is not None
        assert order.status_history[-1].note == "Handed to courier"

    def test_deliver_stamps_delivery_time(self, order: Order) -> None:
        order.update_status(OrderStatus.SHIPPED)
        order.update_status(OrderStatus.DELIVERED)
        assert order.shipping.delivered_at is not None

    def test_invalid_transition_raises(self, order: Order) -> None:
        order.update_status(OrderStatus.SHIPPED)
        with pytest.raises(InvalidStateTransitionError):
            order.update_status(OrderStatus.CONFIRMED)
        assert order.status == OrderStatus.SHIPPED

    def test_cancel_is_not_a_plain_status_update(self, order: Order) -> None:
        with pytest.raises(InvalidStateTransitionError):
            order.update_status(OrderStatus.CANCELLED)
        assert order.status == OrderStatus.PENDING

    def test_status_change_event(self, order: Order) -> None:
        order.collect_events()
        order.update_status(OrderStatus.CONFIRMED)

        (event,) = order.collect_events()
        assert isinstance(event, OrderStatusChanged)
        assert (event.old_status, event.new_status) == ("pending", "confirmed")


class TestOrderCancellation:
    """Tests for Order.cancel and stock restoration marker."""

    def test_cancel_pending_order(self, order: Order) -> None:
        order.cancel("Changed my mind", cancelled_by="user-123")

        assert order.status == OrderStatus.CANCELLED
        assert order.cancellation is not None
        assert order.cancellation.reason == "Changed my mind"
        assert order.cancellation.cancelled_by == "user-123"
        assert order.status_history[-1].note == "Changed my mind"
        assert order.needs_stock_restore

    def test_cancel_without_reason_uses_default_note(self, order: Order) -> None:
        order.cancel(None, cancelled_by="user-123")
        assert order.status_history[-1].note == "Order cancelled"

    def test_cannot_cancel_shipped_order(self, order: Order) -> None:
        order.update_status(OrderStatus.SHIPPED)

        with pytest.raises(OrderNotCancellableError):
            order.cancel("Too late", cancelled_by="user-123")
        assert order.status == OrderStatus.SHIPPED

    def test_cannot_cancel_twice(self, order: Order) -> None:
        order.cancel(None, cancelled_by="user-123")
        with pytest.raises(OrderNotCancellableError):
            order.cancel(None, cancelled_by="user-123")

    def test_mark_stock_restored(self, order: Order) -> None:
        order.cancel(None, cancelled_by="admin")
        order.mark_stock_restored()

        assert order.stock_restored_at is not None
        assert not order.needs_stock_restore

    def test_mark_stock_restored_requires_cancellation(self, order: Order) -> None:
        with pytest.raises(InvalidInputError):
            order.mark_stock_restored()

    def test_cancel_event(self, order: Order) -> None:
        order.collect_events()
        order.cancel("Duplicate order", cancelled_by="admin")

        (event,) = order.collect_events()
        assert isinstance(event, OrderCancelled)
        assert event.cancelled_by == "admin"


class TestOrderPayment:
    """Tests for Order.update_payment."""

    def test_completed_payment_stamps_paid_at(self, order: Order) -> None:
        order.update_payment(PaymentStatus.COMPLETED, transaction_id="txn_42")

        assert order.payment.status == PaymentStatus.COMPLETED
        assert order.payment.transaction_id == "txn_42"
        assert order.payment.paid_at is not None

    def test_failed_payment(self, order: Order) -> None:
        order.update_payment(PaymentStatus.FAILED)

        assert order.payment.status == PaymentStatus.FAILED
        assert order.payment.paid_at is None


class TestMoney:
    """Tests for Money arithmetic used by orders."""

    def test_from_major_avoids_float_artefacts(self) -> None:
        assert Money.from_major(0.1) + Money.from_major(0.2) == Money.from_major("0.3")

    def test_to_float(self) -> None:
        assert Money(118000).to_float() == 1180.0
        assert Money.from_decimal(Decimal("249.505")).amount_minor == 24951
