"""SQLAlchemy models for the product catalog.

Defines Product and ProductVariant tables. Product CRUD lives outside
this service; here the tables are read for pricing and display, and
their stock counters are mutated only through the inventory ledger.
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.infrastructure.database import Base


class ProductStatus:
    """Catalog status values. Only active products can be sold."""

    ACTIVE = "active"
    DRAFT = "draft"
    ARCHIVED = "archived"


class Product(Base):
    """Product in the catalog.

    Attributes:
        id: Unique product identifier.
        name: Display name.
        image_url: Primary image URL.
        price: Base price in minor units.
        sale_price: Discounted price in minor units, if on sale.
        currency: Currency code.
        status: Catalog status (active, draft, archived).
        total_stock: Sum of all variant stock counters.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    sale_price: Mapped[int | None] = mapped_column(Integer, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ProductStatus.ACTIVE,
        index=True,
    )
    total_stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    variants: Mapped[list["ProductVariant"]] = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
    )

    __table_args__ = (CheckConstraint("total_stock >= 0", name="ck_products_total_stock"),)

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name={self.name[:30]})>"

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE

    def effective_price(self, variant: "ProductVariant") -> int:
        """Price a shopper pays for a variant right now.

        Variant override first, then the sale price, then the base price.

        Returns:
            Price in minor units.
        """
        return variant.price or self.sale_price or self.price


class ProductVariant(Base):
    """Purchasable size/color combination of a product.

    The (product_id, size, color) triple is unique, so variant lookup by
    the triple is a single indexed read.

    Attributes:
        id: Unique variant identifier.
        product_id: Parent product ID.
        size: Size label.
        color: Color label.
        sku: Stock keeping unit.
        stock: Units on hand, never negative.
        price: Price override in minor units, if any.
    """

    __tablename__ = "product_variants"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    size: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str] = mapped_column(String(50), nullable=False)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    price: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Relationships
    product: Mapped["Product"] = relationship("Product", back_populates="variants")

    __table_args__ = (
        UniqueConstraint("product_id", "size", "color", name="uq_product_variants_selector"),
        CheckConstraint("stock >= 0", name="ck_product_variants_stock"),
    )

    def __repr__(self) -> str:
        return f"<ProductVariant(product_id={self.product_id}, {self.size}/{self.color})>"
