"""Pricing engine.

Pure computation of cart and order totals, plus coupon evaluation
through a pluggable discount policy. Nothing in this module touches
storage; every function is deterministic given its inputs.

All amounts are integer minor units (paise). Rounding follows
half-up semantics:

    subtotal = Σ unit_price × quantity
    tax      = round(subtotal × tax_rate, 2)
    shipping = 0 if subtotal ≥ free_shipping_threshold else flat_shipping_fee
    discount = round(subtotal × percent / 100)        (whole currency units)
    total    = max(0, subtotal + tax + shipping − discount)
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Protocol, Self

from storefront.domain.base import ValueObject
from storefront.domain.exceptions import InvalidCouponError
from storefront.domain.value_objects import DEFAULT_CURRENCY, Money


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ============================================================================
# Policy
# ============================================================================


@dataclass(frozen=True)
class PricingPolicy(ValueObject):
    """Tax and shipping parameters applied to every cart.

    Attributes:
        tax_rate: Flat tax rate applied to the subtotal.
        free_shipping_threshold: Subtotal at or above which shipping is free.
        flat_shipping_fee: Shipping charged below the threshold.
        currency: Currency of all amounts.
    """

    tax_rate: Decimal = Decimal("0.18")
    free_shipping_threshold: Money = field(default_factory=lambda: Money(99900))
    flat_shipping_fee: Money = field(default_factory=lambda: Money(9900))
    currency: str = DEFAULT_CURRENCY


class PricedLine(Protocol):
    """Minimal view of a line that pricing needs (cart and order items)."""

    unit_price: Money
    quantity: int


# ============================================================================
# Totals
# ============================================================================


@dataclass(frozen=True)
class CartTotals(ValueObject):
    """Derived totals of a cart, copied verbatim onto an order at checkout."""

    subtotal: Money
    discount: Money
    shipping: Money
    tax: Money
    total: Money
    coupon_code: str | None = None

    @classmethod
    def empty(cls, policy: PricingPolicy) -> Self:
        return compute_totals([], 0, policy)

    def to_dict(self) -> dict[str, Any]:
        return {
            "subtotal": self.subtotal.amount_minor,
            "discount": self.discount.amount_minor,
            "shipping": self.shipping.amount_minor,
            "tax": self.tax.amount_minor,
            "total": self.total.amount_minor,
            "coupon_code": self.coupon_code,
            "currency": self.total.currency,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        currency = data.get("currency", DEFAULT_CURRENCY)
        return cls(
            subtotal=Money(data["subtotal"], currency),
            discount=Money(data["discount"], currency),
            shipping=Money(data["shipping"], currency),
            tax=Money(data["tax"], currency),
            total=Money(data["total"], currency),
            coupon_code=data.get("coupon_code"),
        )


def compute_subtotal(lines: Iterable[PricedLine], currency: str = DEFAULT_CURRENCY) -> Money:
    """Sum of unit price times quantity over all lines."""
    total = Money.zero(currency)
    for line in lines:
        total = total + line.unit_price * line.quantity
    return total


def compute_tax(subtotal: Money, tax_rate: Decimal) -> Money:
    """Tax rounded half-up to the paisa."""
    return Money(_round_half_up(Decimal(subtotal.amount_minor) * tax_rate), subtotal.currency)


def compute_shipping(subtotal: Money, policy: PricingPolicy) -> Money:
    if subtotal >= policy.free_shipping_threshold:
        return Money.zero(subtotal.currency)
    return policy.flat_shipping_fee


def compute_discount(subtotal: Money, percent: int) -> Money:
    """Percentage discount of the subtotal, rounded half-up to whole rupees.

    Args:
        subtotal: Current cart subtotal.
        percent: Discount percentage (0 means no coupon).

    Returns:
        Discount amount, a multiple of 100 minor units.
    """
    if percent <= 0:
        return Money.zero(subtotal.currency)
    major = Decimal(subtotal.amount_minor) * Decimal(percent) / Decimal(100) / Decimal(100)
    return Money(_round_half_up(major) * 100, subtotal.currency)


def compute_totals(
    lines: Iterable[PricedLine],
    discount_percent: int,
    policy: PricingPolicy,
    coupon_code: str | None = None,
) -> CartTotals:
    """Compute the full set of totals for a list of lines.

    Args:
        lines: Lines with unit price and quantity.
        discount_percent: Percent of the applied coupon, 0 if none.
        policy: Tax and shipping parameters.
        coupon_code: Applied coupon code, carried through to the result.

    Returns:
        CartTotals with the total clamped at zero.
    """
    subtotal = compute_subtotal(lines, policy.currency)
    tax = compute_tax(subtotal, policy.tax_rate)
    shipping = compute_shipping(subtotal, policy)
    discount = compute_discount(subtotal, discount_percent)
    gross = subtotal.amount_minor + tax.amount_minor + shipping.amount_minor
    total = Money(max(0, gross - discount.amount_minor), policy.currency)
    return CartTotals(
        subtotal=subtotal,
        discount=discount,
        shipping=shipping,
        tax=tax,
        total=total,
        coupon_code=coupon_code,
    )


# ============================================================================
# Discount Policy
# ============================================================================


class DiscountPolicy(Protocol):
    """Resolves coupon codes to a discount percentage."""

    def resolve_coupon(self, code: str) -> int:
        """Return the discount percent for a code.

        Raises:
            InvalidCouponError: If the code is unknown.
        """
        ...


class StaticCouponPolicy:
    """Discount policy backed by a fixed code-to-percent table.

    Codes are matched case-insensitively.
    """

    def __init__(self, coupons: Mapping[str, int]) -> None:
        self._coupons = {code.upper(): int(percent) for code, percent in coupons.items()}

    def resolve_coupon(self, code: str) -> int:
        percent = self._coupons.get(normalize_coupon_code(code))
        if percent is None:
            raise InvalidCouponError(code)
        return percent


def normalize_coupon_code(code: str) -> str:
    return code.strip().upper()
