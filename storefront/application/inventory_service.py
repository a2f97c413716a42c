"""Inventory ledger.

Per-variant stock counters and the only primitives allowed to change
them. Both primitives run in the caller's transaction:

- ``reserve`` is a single conditional decrement evaluated by the
  database (``UPDATE ... WHERE stock >= :quantity``). Two shoppers
  racing for the last unit cannot both succeed.
- ``restore`` is an unconditional increment used to compensate
  cancelled orders.

The product's ``total_stock`` moves together with its variant.
"""

import structlog
from sqlalchemy import and_, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.catalog.models import Product, ProductVariant
from storefront.catalog.repository import CatalogRepository, VariantSnapshot
from storefront.domain.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    VariantNotFoundError,
)
from storefront.domain.value_objects import VariantKey

logger = structlog.get_logger()

variants = ProductVariant.__table__
products = Product.__table__


class InventoryLedger:
    """Stock mutations and availability checks for product variants."""

    def __init__(self, session: AsyncSession, request_id: str | None = None) -> None:
        """Initialize the ledger.

        Args:
            session: Session whose transaction the mutations join.
            request_id: Request ID for correlation.
        """
        self.session = session
        self.catalog = CatalogRepository(session)
        self.request_id = request_id

    async def get_variant(self, key: VariantKey) -> VariantSnapshot | None:
        """Look up a variant (with product details) by its indexed triple."""
        return await self.catalog.get_variant(key)

    async def check_available(self, key: VariantKey, quantity: int) -> bool:
        """Advisory check that a variant currently has enough stock.

        The answer can be stale by the time the shopper checks out;
        only ``reserve`` is authoritative.
        """
        stock = await self.catalog.get_variant_stock(key)
        return stock is not None and stock >= quantity

    async def reserve(
        self,
        key: VariantKey,
        quantity: int,
        product_name: str | None = None,
    ) -> None:
        """Decrement stock if, and only if, enough is available.

        Args:
            key: Variant to reserve.
            quantity: Units to take.
            product_name: Name used in the error message.

        Raises:
            InvalidQuantityError: If quantity is not positive.
            InsufficientStockError: If the variant is missing or short of stock.
                Nothing is changed in that case.
        """
        if quantity <= 0:
            raise InvalidQuantityError(quantity)

        result = await self.session.execute(
            update(variants)
            .where(
                and_(
                    variants.c.product_id == key.product_id,
                    variants.c.size == key.size,
                    variants.c.color == key.color,
                    variants.c.stock >= quantity,
                )
            )
            .values(stock=variants.c.stock - quantity)
        )
        if result.rowcount == 0:
            available = await self.catalog.get_variant_stock(key)
            logger.info(
                "Stock reservation refused",
                variant=str(key),
                requested=quantity,
                available=available,
                request_id=self.request_id,
            )
            raise InsufficientStockError(
                product_id=key.product_id,
                size=key.size,
                color=key.color,
                requested=quantity,
                available=available,
                product_name=product_name,
            )

        await self._adjust_total_stock(key.product_id, -quantity)
        logger.info(
            "Stock reserved",
            variant=str(key),
            quantity=quantity,
            request_id=self.request_id,
        )

    async def restore(self, key: VariantKey, quantity: int) -> bool:
        """Return units to a variant.

        A variant that no longer exists cannot take stock back; that is
        logged and reported rather than failing the caller.

        Returns:
            True if stock was restored, False if the variant is gone.
        """
        if quantity <= 0:
            raise InvalidQuantityError(quantity)

        result = await self.session.execute(
            update(variants)
            .where(
                and_(
                    variants.c.product_id == key.product_id,
                    variants.c.size == key.size,
                    variants.c.color == key.color,
                )
            )
            .values(stock=variants.c.stock + quantity)
        )
        if result.rowcount == 0:
            logger.warning(
                "Cannot restore stock for missing variant",
                variant=str(key),
                quantity=quantity,
                request_id=self.request_id,
            )
            return False

        await self._adjust_total_stock(key.product_id, quantity)
        logger.info(
            "Stock restored",
            variant=str(key),
            quantity=quantity,
            request_id=self.request_id,
        )
        return True

    async def require_variant(self, key: VariantKey) -> VariantSnapshot:
        """Like ``get_variant`` but raises when the variant does not exist.

        Raises:
            VariantNotFoundError: If there is no such size/color for the product.
        """
        snapshot = await self.get_variant(key)
        if snapshot is None:
            raise VariantNotFoundError(key.product_id, key.size, key.color)
        return snapshot

    async def _adjust_total_stock(self, product_id: str, delta: int) -> None:
        await self.session.execute(
            update(products)
            .where(products.c.id == product_id)
            .values(total_stock=products.c.total_stock + delta)
        )
