"""Tests for the cart application service."""

import pytest

from storefront.application.cart_service import CartService
from storefront.domain.exceptions import (
    CartItemNotFoundError,
    InsufficientStockError,
    InvalidCouponError,
    InvalidQuantityError,
    NotFoundError,
    ProductNotFoundError,
    VariantNotFoundError,
)
from storefront.domain.value_objects import Money
from storefront.infrastructure.repositories import CartRepository


@pytest.fixture
def service(session) -> CartService:
    return CartService(session, request_id="test-request")


class TestGetCart:
    """Tests for lazy cart creation."""

    async def test_first_access_creates_empty_cart(self, service, user_id) -> None:
        cart = await service.get_cart(user_id)

        assert cart.user_id == user_id
        assert cart.is_empty
        assert cart.version == 1

    async def test_same_cart_on_next_access(self, service, user_id) -> None:
        first = await service.get_cart(user_id)
        second = await service.get_cart(user_id)
        assert second.id == first.id


class TestAddItem:
    """Tests for CartService.add_item."""

    async def test_add_item_snapshots_price(self, service, tee, user_id) -> None:
        cart = await service.add_item(user_id, "prod-tee", "M", "Black", quantity=2)

        assert len(cart.items) == 1
        item = cart.items[0]
        assert item.unit_price == Money(50000)
        assert item.variant.sku == "TEE-M-BLK"
        assert cart.totals.total == Money(118000)

    async def test_add_same_variant_twice_merges(self, service, tee, user_id) -> None:
        await service.add_item(user_id, "prod-tee", "M", "Black", quantity=2)
        cart = await service.add_item(user_id, "prod-tee", "M", "Black", quantity=3)

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 5

    async def test_cart_is_persisted(self, service, session_factory, tee, user_id) -> None:
        await service.add_item(user_id, "prod-tee", "M", "Black")

        async with session_factory() as other:
            stored = await CartRepository(other, service.pricing_policy).get_by_user(user_id)
        assert stored is not None
        assert stored.item_count == 1
        assert stored.totals.subtotal == Money(50000)

    async def test_merged_quantity_is_checked_against_stock(self, service, tee, user_id) -> None:
        """8 in cart plus 3 more exceeds the 10 units in stock."""
        await service.add_item(user_id, "prod-tee", "M", "Black", quantity=8)

        with pytest.raises(InsufficientStockError) as exc_info:
            await service.add_item(user_id, "prod-tee", "M", "Black", quantity=3)
        assert exc_info.value.details["requested"] == 11

    async def test_unknown_product(self, service, user_id) -> None:
        with pytest.raises(ProductNotFoundError):
            await service.add_item(user_id, "prod-missing", "M", "Black")

    async def test_inactive_product_cannot_be_added(self, service, draft_product, user_id) -> None:
        with pytest.raises(ProductNotFoundError):
            await service.add_item(user_id, "prod-draft", "M", "Olive")

    async def test_unknown_variant(self, service, tee, user_id) -> None:
        with pytest.raises(VariantNotFoundError):
            await service.add_item(user_id, "prod-tee", "S", "Green")

    async def test_quantity_limits(self, service, tee, user_id) -> None:
        with pytest.raises(InvalidQuantityError):
            await service.add_item(user_id, "prod-tee", "M", "Black", quantity=0)
        with pytest.raises(InvalidQuantityError):
            await service.add_item(user_id, "prod-tee", "M", "Black", quantity=11)

    async def test_product_summaries(self, service, tee, cap, user_id) -> None:
        await service.add_item(user_id, "prod-tee", "M", "Black")
        cart = await service.add_item(user_id, "prod-cap", "Free", "Red")

        summaries = await service.product_summaries(cart)

        assert summaries["prod-tee"].name == "Classic Tee"
        assert summaries["prod-cap"].image is None


class TestUpdateAndRemove:
    """Tests for quantity updates and removals."""

    async def test_update_quantity(self, service, tee, user_id) -> None:
        cart = await service.add_item(user_id, "prod-tee", "M", "Black")
        item_id = str(cart.items[0].id)

        cart = await service.update_item(user_id, item_id, 4)

        assert cart.items[0].quantity == 4
        assert cart.totals.subtotal == Money(200000)

    async def test_update_to_zero_removes(self, service, tee, user_id) -> None:
        cart = await service.add_item(user_id, "prod-tee", "M", "Black")

        cart = await service.update_item(user_id, str(cart.items[0].id), 0)

        assert cart.is_empty

    async def test_increase_beyond_stock(self, service, tee, user_id) -> None:
        cart = await service.add_item(user_id, "prod-tee", "L", "White")

        with pytest.raises(InsufficientStockError):
            await service.update_item(user_id, str(cart.items[0].id), 2)

    async def test_update_above_maximum(self, service, tee, user_id) -> None:
        cart = await service.add_item(user_id, "prod-tee", "M", "Black")
        with pytest.raises(InvalidQuantityError):
            await service.update_item(user_id, str(cart.items[0].id), 11)

    async def test_unknown_item(self, service, tee, user_id) -> None:
        await service.add_item(user_id, "prod-tee", "M", "Black")

        with pytest.raises(CartItemNotFoundError):
            await service.remove_item(user_id, "not-a-uuid")
        with pytest.raises(CartItemNotFoundError):
            await service.update_item(user_id, "7b0e2a43-6a80-4c48-9f44-1c5f3d4b9a11", 2)

    async def test_remove_item(self, service, tee, cap, user_id) -> None:
        await service.add_item(user_id, "prod-tee", "M", "Black")
        cart = await service.add_item(user_id, "prod-cap", "Free", "Red")
        tee_item = next(i for i in cart.items if i.product_id == "prod-tee")

        cart = await service.remove_item(user_id, str(tee_item.id))

        assert [i.product_id for i in cart.items] == ["prod-cap"]

    async def test_operations_need_an_existing_cart(self, service, user_id) -> None:
        with pytest.raises(NotFoundError):
            await service.clear_cart(user_id)

    async def test_clear_cart(self, service, tee, user_id) -> None:
        await service.add_item(user_id, "prod-tee", "M", "Black", quantity=2)
        await service.apply_coupon(user_id, "SAVE20")

        cart = await service.clear_cart(user_id)

        assert cart.is_empty
        assert cart.coupon_code is None


class TestCoupons:
    """Tests for coupon application through the service."""

    async def test_apply_known_coupon(self, service, tee, user_id) -> None:
        await service.add_item(user_id, "prod-tee", "M", "Black", quantity=2)

        cart, percent = await service.apply_coupon(user_id, "save20")

        assert percent == 20
        assert cart.coupon_code == "SAVE20"
        assert cart.totals.discount == Money(20000)

    async def test_unknown_coupon_leaves_cart_unchanged(
        self, service, session_factory, tee, user_id
    ) -> None:
        await service.add_item(user_id, "prod-tee", "M", "Black", quantity=2)
        await service.apply_coupon(user_id, "FIRST10")

        with pytest.raises(InvalidCouponError):
            await service.apply_coupon(user_id, "BOGUS")

        async with session_factory() as other:
            stored = await CartRepository(other, service.pricing_policy).get_by_user(user_id)
        assert stored.coupon_code == "FIRST10"
        assert stored.totals.discount == Money(10000)

    async def test_remove_coupon(self, service, tee, user_id) -> None:
        await service.add_item(user_id, "prod-tee", "M", "Black", quantity=2)
        await service.apply_coupon(user_id, "SAVE20")

        cart = await service.remove_coupon(user_id)

        assert cart.coupon_code is None
        assert cart.totals.total == Money(118000)
