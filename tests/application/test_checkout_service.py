"""Tests for the checkout orchestrator."""

import pytest
from sqlalchemy import func, select

from storefront.application.cart_service import CartService
from storefront.application.checkout_service import CheckoutService
from storefront.application.inventory_service import InventoryLedger
from storefront.domain.exceptions import EmptyCartError, InsufficientStockError
from storefront.domain.state_machines import OrderStatus
from storefront.domain.value_objects import Money, PaymentMethod, PaymentStatus, VariantKey
from storefront.infrastructure.models import OrderModel
from storefront.infrastructure.repositories import CartRepository, OrderRepository


@pytest.fixture
def cart_service(session) -> CartService:
    return CartService(session)


@pytest.fixture
def checkout(session) -> CheckoutService:
    return CheckoutService(session, request_id="test-request")


async def count_orders(session_factory) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(OrderModel))
        return result.scalar_one()


class TestCheckout:
    """Tests for CheckoutService.checkout."""

    async def test_end_to_end_checkout(
        self, cart_service, checkout, session_factory, tee, address, user_id, stock_of
    ) -> None:
        """One tee (500 x 2) becomes a pending COD order and stock drops by 2."""
        cart = await cart_service.add_item(user_id, "prod-tee", "M", "Black", quantity=2)
        assert cart.totals.subtotal == Money(100000)
        assert cart.totals.tax == Money(18000)
        assert cart.totals.shipping.is_zero()
        assert cart.totals.total == Money(118000)

        order = await checkout.checkout(user_id, address, PaymentMethod.COD)

        assert order.status == OrderStatus.PENDING
        assert order.payment.status == PaymentStatus.PENDING
        assert order.pricing == cart.totals
        assert order.items[0].name == "Classic Tee"
        assert order.items[0].image == "https://cdn.example.com/tee.jpg"
        assert order.items[0].quantity == 2
        assert order.billing_address == address
        assert await stock_of("prod-tee", "M", "Black") == 8

        async with session_factory() as other:
            stored_cart = await CartRepository(other, cart_service.pricing_policy).get_by_user(
                user_id
            )
            stored_order = await OrderRepository(other).get(order.order_number, user_id=user_id)
        assert stored_cart is not None and stored_cart.is_empty
        assert stored_order is not None
        assert stored_order.pricing.total == Money(118000)

    async def test_order_number_format(self, cart_service, checkout, tee, address, user_id) -> None:
        await cart_service.add_item(user_id, "prod-tee", "M", "Black")

        order = await checkout.checkout(user_id, address, PaymentMethod.CARD)

        assert order.order_number.startswith("ORD-")
        assert order.order_number.endswith("-000001")
        assert order.payment.status == PaymentStatus.PROCESSING

    async def test_coupon_is_carried_onto_order(
        self, cart_service, checkout, tee, address, user_id
    ) -> None:
        await cart_service.add_item(user_id, "prod-tee", "M", "Black", quantity=2)
        await cart_service.apply_coupon(user_id, "SAVE20")

        order = await checkout.checkout(user_id, address, PaymentMethod.UPI, notes="Leave at door")

        assert order.pricing.coupon_code == "SAVE20"
        assert order.pricing.discount == Money(20000)
        assert order.pricing.total == Money(98000)
        assert order.customer_note == "Leave at door"

    async def test_empty_cart_creates_no_order(
        self, cart_service, checkout, session_factory, address, user_id
    ) -> None:
        await cart_service.get_cart(user_id)

        with pytest.raises(EmptyCartError):
            await checkout.checkout(user_id, address, PaymentMethod.COD)
        assert await count_orders(session_factory) == 0

    async def test_missing_cart_is_empty(self, checkout, address, user_id) -> None:
        with pytest.raises(EmptyCartError):
            await checkout.checkout(user_id, address, PaymentMethod.COD)

    async def test_shortage_rolls_back_everything(
        self, cart_service, checkout, session_factory, tee, cap, address, user_id, stock_of
    ) -> None:
        """If any line cannot be covered, no stock moves and no order exists."""
        await cart_service.add_item(user_id, "prod-tee", "M", "Black", quantity=2)
        await cart_service.add_item(user_id, "prod-cap", "Free", "Red", quantity=3)

        # Someone else buys two caps in the meantime
        async with session_factory() as other:
            other_cart = CartService(other)
            await other_cart.add_item("user-999", "prod-cap", "Free", "Red", quantity=2)
            await CheckoutService(other).checkout("user-999", address, PaymentMethod.COD)

        with pytest.raises(InsufficientStockError) as exc_info:
            await checkout.checkout(user_id, address, PaymentMethod.COD)

        assert exc_info.value.details["available"] == 1
        assert await stock_of("prod-tee", "M", "Black") == 10
        assert await stock_of("prod-cap", "Free", "Red") == 1
        assert await count_orders(session_factory) == 1

        async with session_factory() as other:
            stored = await CartRepository(other, cart_service.pricing_policy).get_by_user(user_id)
        assert stored.item_count == 5

    async def test_failed_reservation_releases_earlier_lines(
        self,
        cart_service,
        checkout,
        session_factory,
        tee,
        cap,
        address,
        user_id,
        stock_of,
        monkeypatch,
    ) -> None:
        """Stock sold between validation and reservation undoes the lines already reserved."""
        await cart_service.add_item(user_id, "prod-tee", "M", "Black", quantity=2)
        await cart_service.add_item(user_id, "prod-cap", "Free", "Red", quantity=3)

        validate = checkout._snapshot_items

        async def validate_then_sell_caps(cart):
            items = await validate(cart)
            async with session_factory() as other:
                await InventoryLedger(other).reserve(VariantKey("prod-cap", "Free", "Red"), 2)
                await other.commit()
            return items

        monkeypatch.setattr(checkout, "_snapshot_items", validate_then_sell_caps)

        with pytest.raises(InsufficientStockError) as exc_info:
            await checkout.checkout(user_id, address, PaymentMethod.COD)

        assert exc_info.value.details["available"] == 1
        assert await stock_of("prod-tee", "M", "Black") == 10
        assert await stock_of("prod-cap", "Free", "Red") == 1
        assert await count_orders(session_factory) == 0

    async def test_order_numbers_are_consecutive(
        self, cart_service, checkout, tee, address, user_id
    ) -> None:
        numbers = []
        for _ in range(3):
            await cart_service.add_item(user_id, "prod-tee", "M", "Black")
            order = await checkout.checkout(user_id, address, PaymentMethod.COD)
            numbers.append(order.order_number)

        suffixes = [int(number.rsplit("-", 1)[1]) for number in numbers]
        assert suffixes == [1, 2, 3]
        assert len(set(numbers)) == 3

