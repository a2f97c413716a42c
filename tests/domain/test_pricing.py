"""Tests for the pricing engine."""

from dataclasses import dataclass
from decimal import Decimal

import pytest

from storefront.domain.exceptions import InvalidCouponError
from storefront.domain.pricing import (
    CartTotals,
    PricingPolicy,
    StaticCouponPolicy,
    compute_discount,
    compute_shipping,
    compute_tax,
    compute_totals,
    normalize_coupon_code,
)
from storefront.domain.value_objects import Money


@dataclass
class Line:
    unit_price: Money
    quantity: int


@pytest.fixture
def policy() -> PricingPolicy:
    return PricingPolicy()


class TestComputeTotals:
    """Tests for compute_totals."""

    def test_free_shipping_at_threshold(self, policy: PricingPolicy) -> None:
        """500 x 2 reaches the free shipping threshold."""
        totals = compute_totals([Line(Money(50000), 2)], 0, policy)

        assert totals.subtotal == Money(100000)
        assert totals.tax == Money(18000)
        assert totals.shipping == Money.zero()
        assert totals.discount == Money.zero()
        assert totals.total == Money(118000)

    def test_flat_shipping_below_threshold(self, policy: PricingPolicy) -> None:
        """Subtotals below 999 pay the flat fee of 99."""
        totals = compute_totals([Line(Money(99800), 1)], 0, policy)

        assert totals.shipping == Money(9900)
        assert totals.total == Money(99800 + 17964 + 9900)

    def test_exactly_999_ships_free(self, policy: PricingPolicy) -> None:
        totals = compute_totals([Line(Money(99900), 1)], 0, policy)
        assert totals.shipping.is_zero()

    def test_total_identity_holds(self, policy: PricingPolicy) -> None:
        """total == subtotal + tax + shipping - discount."""
        lines = [Line(Money(24900), 3), Line(Money(12345), 1)]
        totals = compute_totals(lines, 15, policy, coupon_code="DESIGNER15")

        expected = (
            totals.subtotal.amount_minor
            + totals.tax.amount_minor
            + totals.shipping.amount_minor
            - totals.discount.amount_minor
        )
        assert totals.total.amount_minor == expected
        assert totals.coupon_code == "DESIGNER15"

    def test_empty_cart_still_charges_shipping(self, policy: PricingPolicy) -> None:
        """An empty subtotal is below the threshold, so the flat fee applies."""
        totals = CartTotals.empty(policy)

        assert totals.subtotal.is_zero()
        assert totals.tax.is_zero()
        assert totals.shipping == Money(9900)
        assert totals.total == Money(9900)

    def test_total_is_clamped_at_zero(self) -> None:
        """A discount larger than everything else yields zero, not a negative total."""
        policy = PricingPolicy(tax_rate=Decimal("0"), flat_shipping_fee=Money(0))
        totals = compute_totals([Line(Money(10000), 1)], 150, policy)

        assert totals.discount == Money(15000)
        assert totals.total == Money.zero()

    def test_custom_policy(self) -> None:
        policy = PricingPolicy(
            tax_rate=Decimal("0.05"),
            free_shipping_threshold=Money(50000),
            flat_shipping_fee=Money(4900),
        )
        totals = compute_totals([Line(Money(40000), 1)], 0, policy)

        assert totals.tax == Money(2000)
        assert totals.shipping == Money(4900)


class TestComponents:
    """Tests for the individual pricing rules."""

    def test_tax_rounds_half_up(self) -> None:
        """0.18 x 0.25 rupees = 4.5 paise, rounded up to 5."""
        assert compute_tax(Money(25), Decimal("0.18")) == Money(5)

    def test_tax_on_fractional_subtotal(self) -> None:
        assert compute_tax(Money(12345), Decimal("0.18")) == Money(2222)

    def test_shipping_rule(self, policy: PricingPolicy) -> None:
        assert compute_shipping(Money(99899), policy) == Money(9900)
        assert compute_shipping(Money(99900), policy).is_zero()

    def test_save20_on_1000(self) -> None:
        assert compute_discount(Money(100000), 20) == Money(20000)

    def test_discount_is_whole_rupees(self) -> None:
        """10% of 249.50 is 24.95, rounded to 25 rupees."""
        assert compute_discount(Money(24950), 10) == Money(2500)

    def test_zero_percent_is_no_discount(self) -> None:
        assert compute_discount(Money(100000), 0).is_zero()


class TestStaticCouponPolicy:
    """Tests for the coupon table policy."""

    @pytest.fixture
    def coupons(self) -> StaticCouponPolicy:
        return StaticCouponPolicy({"FIRST10": 10, "SAVE20": 20, "DESIGNER15": 15})

    def test_resolves_known_code(self, coupons: StaticCouponPolicy) -> None:
        assert coupons.resolve_coupon("SAVE20") == 20

    def test_codes_are_case_insensitive(self, coupons: StaticCouponPolicy) -> None:
        assert coupons.resolve_coupon("  first10 ") == 10

    def test_unknown_code_raises(self, coupons: StaticCouponPolicy) -> None:
        with pytest.raises(InvalidCouponError) as exc_info:
            coupons.resolve_coupon("BOGUS")
        assert exc_info.value.error_code == "INVALID_COUPON"

    def test_normalize_coupon_code(self) -> None:
        assert normalize_coupon_code(" save20 ") == "SAVE20"
