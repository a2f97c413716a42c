"""Catalog repository for database operations.

Read access to products and variants. Stock counters are written only
by the inventory ledger.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.catalog.models import Product, ProductStatus, ProductVariant
from storefront.domain.value_objects import Money, VariantKey, VariantSelection


@dataclass(frozen=True)
class VariantSnapshot:
    """Point-in-time view of a variant together with its product.

    Attributes:
        key: (product, size, color) identity.
        sku: Variant SKU.
        stock: Units on hand when read.
        unit_price: Effective price (variant, sale or base price).
        product_name: Product display name.
        image: Primary image URL.
        product_status: Catalog status of the product.
    """

    key: VariantKey
    sku: str | None
    stock: int
    unit_price: Money
    product_name: str
    image: str | None
    product_status: str

    @property
    def product_active(self) -> bool:
        return self.product_status == ProductStatus.ACTIVE

    @property
    def selection(self) -> VariantSelection:
        return VariantSelection(size=self.key.size, color=self.key.color, sku=self.sku)

    @classmethod
    def from_rows(cls, product: Product, variant: ProductVariant) -> "VariantSnapshot":
        return cls(
            key=VariantKey(product.id, variant.size, variant.color),
            sku=variant.sku,
            stock=variant.stock,
            unit_price=Money(product.effective_price(variant), product.currency),
            product_name=product.name,
            image=product.image_url,
            product_status=product.status,
        )


class CatalogRepository:
    """Repository for Product and ProductVariant reads.

    Example usage:
        async with async_session_factory() as session:
            repo = CatalogRepository(session)
            snapshot = await repo.get_variant(VariantKey("prod-1", "M", "Black"))
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def save(self, product: Product) -> Product:
        """Save a product (and its variants) to the database.

        The product's total stock is recomputed from its variants.

        Args:
            product: Product to save.

        Returns:
            Saved product.
        """
        product.total_stock = sum(v.stock or 0 for v in product.variants)
        self.session.add(product)
        await self.session.flush()
        return product

    async def get_by_id(
        self,
        product_id: str,
        include_variants: bool = True,
    ) -> Product | None:
        """Get product by ID.

        Args:
            product_id: Product ID.
            include_variants: Whether to eagerly load variants.

        Returns:
            Product if found, None otherwise.
        """
        query = select(Product).where(Product.id == product_id)
        if include_variants:
            query = query.options(selectinload(Product.variants))

        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_many(self, product_ids: Iterable[str]) -> dict[str, Product]:
        """Get several products with their variants, keyed by ID.

        Missing IDs are simply absent from the result.
        """
        ids = list(set(product_ids))
        if not ids:
            return {}
        query = (
            select(Product)
            .where(Product.id.in_(ids))
            .options(selectinload(Product.variants))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return {product.id: product for product in result.scalars().all()}

    async def get_variant(self, key: VariantKey) -> VariantSnapshot | None:
        """Look up a variant by its (product, size, color) triple.

        Args:
            key: Variant identity.

        Returns:
            VariantSnapshot if the variant exists, None otherwise.
        """
        query = (
            select(Product, ProductVariant)
            .join(ProductVariant, ProductVariant.product_id == Product.id)
            .where(
                and_(
                    ProductVariant.product_id == key.product_id,
                    ProductVariant.size == key.size,
                    ProductVariant.color == key.color,
                )
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        row = result.one_or_none()
        if row is None:
            return None
        product, variant = row
        return VariantSnapshot.from_rows(product, variant)

    async def get_variant_stock(self, key: VariantKey) -> int | None:
        """Read the current stock counter of a variant, bypassing the identity map."""
        query = select(ProductVariant.stock).where(
            and_(
                ProductVariant.product_id == key.product_id,
                ProductVariant.size == key.size,
                ProductVariant.color == key.color,
            )
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()
