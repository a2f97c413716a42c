"""SQLAlchemy models for database tables.

Provides ORM models for carts, orders and the daily order number
sequence. Embedded documents (items, addresses, history) are stored
as JSON columns, which become JSONB on PostgreSQL.
"""

from datetime import date, datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, Date, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from storefront.infrastructure.database import Base

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Cart Models
# ============================================================================


class CartModel(Base):
    """Cart model for database persistence.

    One row per user. Items are stored as a JSON array; totals are
    derived and recomputed when the aggregate is loaded.
    """

    __tablename__ = "carts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSONDocument, nullable=False, default=list)
    coupon_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    coupon_percent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    def __repr__(self) -> str:
        return f"<CartModel(id={self.id}, user_id={self.user_id})>"


# ============================================================================
# Order Models
# ============================================================================


class OrderModel(Base):
    """Order model for database persistence.

    Represents an order created at checkout and tracks its lifecycle
    from placement to delivery, cancellation, return or refund.
    """

    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    order_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)
    payment_status: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    # Snapshots
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSONDocument, nullable=False)
    shipping_address: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)
    billing_address: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)
    pricing: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)
    total: Mapped[int] = mapped_column(Integer, nullable=False)

    # Lifecycle
    payment: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)
    status_history: Mapped[list[dict[str, Any]]] = mapped_column(JSONDocument, nullable=False)
    shipping: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False, default=dict)
    cancellation: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)
    customer_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    internal_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    stock_restored_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    def __repr__(self) -> str:
        return f"<OrderModel(order_number={self.order_number}, status={self.status})>"


class OrderSequenceModel(Base):
    """Last order number issued on a calendar day."""

    __tablename__ = "order_sequences"

    day: Mapped[date] = mapped_column(Date, primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
