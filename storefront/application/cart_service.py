"""Cart application service.

Orchestrates cart use cases:
- Lazily creating the shopper's cart
- Adding, updating and removing items with advisory stock checks
- Applying and removing coupons through the discount policy

Every mutation loads the cart, changes the aggregate, saves it with a
version check and commits, then logs the aggregate's domain events.
"""

from dataclasses import dataclass
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.application.inventory_service import InventoryLedger
from storefront.application.policies import (
    discount_policy_from_settings,
    pricing_policy_from_settings,
    publish_events,
)
from storefront.catalog.repository import CatalogRepository
from storefront.domain.entities import Cart
from storefront.domain.exceptions import (
    CartItemNotFoundError,
    InsufficientStockError,
    InvalidQuantityError,
    NotFoundError,
    ProductNotFoundError,
)
from storefront.domain.pricing import DiscountPolicy, PricingPolicy, normalize_coupon_code
from storefront.domain.value_objects import CartItemId, VariantKey
from storefront.infrastructure.config import settings
from storefront.infrastructure.database import unit_of_work
from storefront.infrastructure.repositories import CartRepository

logger = structlog.get_logger()


@dataclass(frozen=True)
class ProductSummary:
    """Display details of a product referenced by a cart line."""

    name: str
    image: str | None
    status: str


class CartService:
    """Application service for the shopper's cart."""

    def __init__(
        self,
        session: AsyncSession,
        request_id: str | None = None,
        pricing_policy: PricingPolicy | None = None,
        discount_policy: DiscountPolicy | None = None,
    ) -> None:
        """Initialize service.

        Args:
            session: Database session for this request.
            request_id: Request ID for correlation.
            pricing_policy: Tax and shipping parameters.
            discount_policy: Coupon resolver.
        """
        self.session = session
        self.request_id = request_id
        self.pricing_policy = pricing_policy or pricing_policy_from_settings()
        self.discount_policy = discount_policy or discount_policy_from_settings()
        self.carts = CartRepository(session, self.pricing_policy)
        self.catalog = CatalogRepository(session)
        self.ledger = InventoryLedger(session, request_id=request_id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def get_cart(self, user_id: str) -> Cart:
        """Get the user's cart, creating an empty one on first access."""
        cart = await self.carts.get_by_user(user_id)
        if cart is not None:
            return cart

        cart = Cart.create(user_id, self.pricing_policy)
        try:
            async with unit_of_work(self.session):
                await self.carts.add(cart)
        except IntegrityError:
            # A concurrent request created it first
            existing = await self.carts.get_by_user(user_id)
            if existing is None:
                raise
            return existing

        logger.info("Cart created", cart_id=str(cart.id), user_id=user_id, request_id=self.request_id)
        return cart

    async def product_summaries(self, cart: Cart) -> dict[str, ProductSummary]:
        """Current name, image and status for every product in the cart."""
        products = await self.catalog.get_many(item.product_id for item in cart.items)
        return {
            product_id: ProductSummary(
                name=product.name,
                image=product.image_url,
                status=product.status,
            )
            for product_id, product in products.items()
        }

    # -------------------------------------------------------------------------
    # Item Operations
    # -------------------------------------------------------------------------

    async def add_item(
        self,
        user_id: str,
        product_id: str,
        size: str,
        color: str,
        quantity: int = 1,
    ) -> Cart:
        """Add a variant to the user's cart.

        The stock check compares the variant's stock against the merged
        quantity (already in cart plus requested). It is advisory; the
        reservation at checkout is authoritative.

        Args:
            user_id: Cart owner.
            product_id: Catalog product ID.
            size: Variant size.
            color: Variant color.
            quantity: Units to add (1 to max_item_quantity).

        Returns:
            The updated cart.

        Raises:
            InvalidQuantityError: If quantity is out of range.
            ProductNotFoundError: If the product is missing or not active.
            VariantNotFoundError: If the size/color does not exist.
            InsufficientStockError: If stock cannot cover the merged quantity.
        """
        self._check_quantity(quantity, minimum=1)

        product = await self.catalog.get_by_id(product_id, include_variants=False)
        if product is None or not product.is_active:
            raise ProductNotFoundError(product_id)

        key = VariantKey(product_id, size, color)
        snapshot = await self.ledger.require_variant(key)

        cart = await self.get_cart(user_id)
        existing = cart.find_variant(key)
        wanted = quantity + (existing.quantity if existing else 0)
        if snapshot.stock < wanted:
            raise InsufficientStockError(
                product_id=product_id,
                size=size,
                color=color,
                requested=wanted,
                available=snapshot.stock,
                product_name=snapshot.product_name,
            )

        async with unit_of_work(self.session):
            cart.add_item(product_id, snapshot.selection, quantity, snapshot.unit_price)
            await self.carts.save(cart)

        logger.info(
            "Item added to cart",
            cart_id=str(cart.id),
            product_id=product_id,
            size=size,
            color=color,
            quantity=quantity,
            request_id=self.request_id,
        )
        publish_events(cart, self.request_id)
        return cart

    async def update_item(self, user_id: str, item_id: str, quantity: int) -> Cart:
        """Set an item's quantity; zero or less removes the item.

        Raises:
            InvalidQuantityError: If quantity exceeds the per-line maximum.
            NotFoundError: If the user has no cart or no such item.
            InsufficientStockError: If increasing beyond current stock.
        """
        if quantity > settings.max_item_quantity:
            raise InvalidQuantityError(
                quantity, f"Quantity cannot exceed {settings.max_item_quantity}"
            )

        cart = await self._require_cart(user_id)
        item = cart.require_item(self._parse_item_id(cart, item_id))

        if quantity > item.quantity and not await self.ledger.check_available(
            item.variant_key, quantity
        ):
            raise InsufficientStockError(
                product_id=item.product_id,
                size=item.variant.size,
                color=item.variant.color,
                requested=quantity,
            )

        async with unit_of_work(self.session):
            cart.update_item_quantity(item.id, quantity)
            await self.carts.save(cart)

        logger.info(
            "Cart item updated",
            cart_id=str(cart.id),
            item_id=item_id,
            quantity=quantity,
            request_id=self.request_id,
        )
        publish_events(cart, self.request_id)
        return cart

    async def remove_item(self, user_id: str, item_id: str) -> Cart:
        """Remove an item from the user's cart.

        Raises:
            NotFoundError: If the user has no cart or no such item.
        """
        cart = await self._require_cart(user_id)
        parsed = self._parse_item_id(cart, item_id)

        async with unit_of_work(self.session):
            cart.remove_item(parsed)
            await self.carts.save(cart)

        logger.info(
            "Cart item removed",
            cart_id=str(cart.id),
            item_id=item_id,
            request_id=self.request_id,
        )
        publish_events(cart, self.request_id)
        return cart

    async def clear_cart(self, user_id: str) -> Cart:
        """Remove every item and the coupon from the user's cart."""
        cart = await self._require_cart(user_id)

        async with unit_of_work(self.session):
            cart.clear()
            await self.carts.save(cart)

        logger.info("Cart cleared", cart_id=str(cart.id), request_id=self.request_id)
        publish_events(cart, self.request_id)
        return cart

    # -------------------------------------------------------------------------
    # Coupons
    # -------------------------------------------------------------------------

    async def apply_coupon(self, user_id: str, coupon_code: str) -> tuple[Cart, int]:
        """Apply a coupon, replacing any previous one.

        Unknown codes fail before anything is changed.

        Returns:
            Tuple of (updated cart, discount percent).

        Raises:
            NotFoundError: If the user has no cart.
            InvalidCouponError: If the code is unknown.
        """
        cart = await self._require_cart(user_id)
        percent = self.discount_policy.resolve_coupon(coupon_code)
        code = normalize_coupon_code(coupon_code)

        async with unit_of_work(self.session):
            cart.apply_coupon(code, percent)
            await self.carts.save(cart)

        logger.info(
            "Coupon applied",
            cart_id=str(cart.id),
            coupon_code=code,
            percent=percent,
            discount=cart.totals.discount.amount_minor,
            request_id=self.request_id,
        )
        publish_events(cart, self.request_id)
        return cart, percent

    async def remove_coupon(self, user_id: str) -> Cart:
        cart = await self._require_cart(user_id)

        async with unit_of_work(self.session):
            cart.remove_coupon()
            await self.carts.save(cart)

        publish_events(cart, self.request_id)
        return cart

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _require_cart(self, user_id: str) -> Cart:
        cart = await self.carts.get_by_user(user_id)
        if cart is None:
            raise NotFoundError("Cart", user_id)
        return cart

    @staticmethod
    def _parse_item_id(cart: Cart, item_id: str) -> CartItemId:
        try:
            return CartItemId(UUID(item_id))
        except ValueError:
            raise CartItemNotFoundError(str(cart.id), item_id) from None

    @staticmethod
    def _check_quantity(quantity: int, minimum: int) -> None:
        if quantity < minimum or quantity > settings.max_item_quantity:
            raise InvalidQuantityError(
                quantity,
                f"Quantity must be between {minimum} and {settings.max_item_quantity}",
            )


# ============================================================================
# Service Factory
# ============================================================================


def get_cart_service(session: AsyncSession, request_id: str | None = None) -> CartService:
    """Get cart service instance.

    Args:
        session: Database session for this request.
        request_id: Request ID for correlation.

    Returns:
        CartService instance.
    """
    return CartService(session, request_id=request_id)
