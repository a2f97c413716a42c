"""Value Objects for the domain layer.

Value objects are immutable objects that are defined by their attributes
rather than identity. They are interchangeable when their values are equal.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Self
from uuid import UUID, uuid4

from storefront.domain.base import ValueObject
from storefront.domain.exceptions import CurrencyMismatchError, NegativeMoneyError

DEFAULT_CURRENCY = "INR"


# ============================================================================
# Typed Identifiers
# ============================================================================


@dataclass(frozen=True)
class UUIDIdentifier(ValueObject):
    """Strongly-typed UUID identifier.

    Using typed IDs prevents accidentally mixing up different entity IDs.
    """

    value: UUID

    @classmethod
    def generate(cls) -> Self:
        return cls(value=uuid4())

    @classmethod
    def from_string(cls, value: str) -> Self:
        """Create identifier from string representation.

        Raises:
            ValueError: If the string is not a valid UUID.
        """
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class CartId(UUIDIdentifier):
    """Cart identifier."""


@dataclass(frozen=True)
class CartItemId(UUIDIdentifier):
    """Cart item identifier."""


@dataclass(frozen=True)
class OrderId(UUIDIdentifier):
    """Order identifier (storage id, distinct from the order number)."""


# ============================================================================
# Variant Key
# ============================================================================


@dataclass(frozen=True)
class VariantKey(ValueObject):
    """Identifies one purchasable variant: (product, size, color).

    Attributes:
        product_id: Catalog product identifier.
        size: Variant size (e.g., "M").
        color: Variant color (e.g., "Black").
    """

    product_id: str
    size: str
    color: str

    def __post_init__(self) -> None:
        if not self.product_id or not self.product_id.strip():
            raise ValueError("Product ID cannot be empty")

    def __str__(self) -> str:
        return f"{self.product_id}:{self.size}/{self.color}"


@dataclass(frozen=True)
class VariantSelection(ValueObject):
    """Value copy of a variant's selector, stored on cart and order items."""

    size: str
    color: str
    sku: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"size": self.size, "color": self.color, "sku": self.sku}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(size=data["size"], color=data["color"], sku=data.get("sku"))


# ============================================================================
# Money Value Object
# ============================================================================


@dataclass(frozen=True)
class Money(ValueObject):
    """Represents monetary value with currency.

    Money is stored in the smallest currency unit (paise for INR)
    to avoid floating-point precision issues.

    Attributes:
        amount_minor: Amount in smallest currency unit.
        currency: ISO 4217 currency code (e.g., 'INR').
    """

    amount_minor: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if self.amount_minor < 0:
            raise NegativeMoneyError(self.amount_minor)
        object.__setattr__(self, "currency", self.currency.upper())

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Self:
        return cls(amount_minor=0, currency=currency)

    @classmethod
    def from_decimal(cls, amount: Decimal, currency: str = DEFAULT_CURRENCY) -> Self:
        """Create money from decimal amount in major units (e.g., rupees)."""
        minor = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        return cls(amount_minor=minor, currency=currency)

    @classmethod
    def from_major(cls, amount: int | float | str, currency: str = DEFAULT_CURRENCY) -> Self:
        """Create money from a plain number in major units.

        Floats are converted through their string form to avoid binary
        rounding artefacts.
        """
        return cls.from_decimal(Decimal(str(amount)), currency)

    def to_decimal(self) -> Decimal:
        """Convert to decimal amount in major units."""
        return Decimal(self.amount_minor) / 100

    def to_float(self) -> float:
        return float(self.to_decimal())

    def _check_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency, other.currency)

    def __add__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(amount_minor=self.amount_minor + other.amount_minor, currency=self.currency)

    def __sub__(self, other: "Money") -> "Money":
        """Subtract money amounts.

        Raises:
            CurrencyMismatchError: If currencies don't match.
            NegativeMoneyError: If result would be negative.
        """
        self._check_currency(other)
        return Money(amount_minor=self.amount_minor - other.amount_minor, currency=self.currency)

    def __mul__(self, quantity: int) -> "Money":
        return Money(amount_minor=self.amount_minor * quantity, currency=self.currency)

    def __rmul__(self, quantity: int) -> "Money":
        return self.__mul__(quantity)

    def __ge__(self, other: "Money") -> bool:
        self._check_currency(other)
        return self.amount_minor >= other.amount_minor

    def __str__(self) -> str:
        symbol = {"INR": "₹", "USD": "$", "EUR": "€"}.get(self.currency, "")
        return f"{symbol}{self.to_decimal():.2f} {self.currency}"

    def is_zero(self) -> bool:
        return self.amount_minor == 0


# ============================================================================
# Address Value Object
# ============================================================================


@dataclass(frozen=True)
class Address(ValueObject):
    """Shipping or billing address.

    Attributes:
        name: Recipient name.
        phone: Contact phone number.
        street: Street address.
        city: City name.
        state: State/province/region.
        zip_code: Postal/PIN code.
        country: Country name.
        email: Contact email (optional).
    """

    name: str
    phone: str
    street: str
    city: str
    state: str
    zip_code: str
    country: str = "India"
    email: str | None = None

    def __post_init__(self) -> None:
        for attr in ("name", "street", "city", "zip_code"):
            value = getattr(self, attr)
            if not value or not value.strip():
                raise ValueError(f"Address {attr} cannot be empty")

    def format_single_line(self) -> str:
        return ", ".join(
            [self.name, self.street, self.city, self.state, self.zip_code, self.country]
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            name=data["name"],
            phone=data["phone"],
            email=data.get("email"),
            street=data["street"],
            city=data["city"],
            state=data["state"],
            zip_code=data["zip_code"],
            country=data.get("country") or "India",
        )


# ============================================================================
# Payment
# ============================================================================


class PaymentMethod(str, Enum):
    """Supported payment methods."""

    COD = "cod"
    CARD = "card"
    UPI = "upi"
    NETBANKING = "netbanking"
    WALLET = "wallet"

    def initial_payment_status(self) -> "PaymentStatus":
        """Cash on delivery waits for the courier; everything else is in flight."""
        if self is PaymentMethod.COD:
            return PaymentStatus.PENDING
        return PaymentStatus.PROCESSING


class PaymentStatus(str, Enum):
    """Payment status as recorded on an order (not processed here)."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# ============================================================================
# Order History and Cancellation
# ============================================================================


@dataclass(frozen=True)
class StatusHistoryEntry(ValueObject):
    """One entry of an order's append-only status log."""

    status: str
    timestamp: datetime
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "timestamp": self.timestamp.isoformat(),
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            status=data["status"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            note=data.get("note"),
        )


@dataclass(frozen=True)
class Cancellation(ValueObject):
    """Who cancelled an order, when, and why."""

    reason: str | None
    cancelled_at: datetime
    cancelled_by: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "reason": self.reason,
            "cancelled_at": self.cancelled_at.isoformat(),
            "cancelled_by": self.cancelled_by,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            reason=data.get("reason"),
            cancelled_at=datetime.fromisoformat(data["cancelled_at"]),
            cancelled_by=data["cancelled_by"],
        )


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _format_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class PaymentInfo(ValueObject):
    """Payment block recorded on an order.

    Attributes:
        method: How the shopper chose to pay.
        status: Recorded payment status.
        transaction_id: Gateway reference, when reported.
        paid_at: When the payment was marked completed.
    """

    method: PaymentMethod
    status: PaymentStatus
    transaction_id: str | None = None
    paid_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method.value,
            "status": self.status.value,
            "transaction_id": self.transaction_id,
            "paid_at": _format_datetime(self.paid_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            method=PaymentMethod(data["method"]),
            status=PaymentStatus(data["status"]),
            transaction_id=data.get("transaction_id"),
            paid_at=_parse_datetime(data.get("paid_at")),
        )


@dataclass(frozen=True)
class ShippingInfo(ValueObject):
    """Carrier metadata recorded on an order. No carrier is called."""

    carrier: str | None = None
    tracking_number: str | None = None
    estimated_delivery: datetime | None = None
    shipped_at: datetime | None = None
    delivered_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "carrier": self.carrier,
            "tracking_number": self.tracking_number,
            "estimated_delivery": _format_datetime(self.estimated_delivery),
            "shipped_at": _format_datetime(self.shipped_at),
            "delivered_at": _format_datetime(self.delivered_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Self:
        data = data or {}
        return cls(
            carrier=data.get("carrier"),
            tracking_number=data.get("tracking_number"),
            estimated_delivery=_parse_datetime(data.get("estimated_delivery")),
            shipped_at=_parse_datetime(data.get("shipped_at")),
            delivered_at=_parse_datetime(data.get("delivered_at")),
        )
