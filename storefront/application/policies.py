"""Pricing and discount policies built from application settings."""

import structlog

from storefront.domain.base import AggregateRoot
from storefront.domain.pricing import PricingPolicy, StaticCouponPolicy
from storefront.domain.value_objects import Money
from storefront.infrastructure.config import Settings, settings

logger = structlog.get_logger()


def pricing_policy_from_settings(config: Settings = settings) -> PricingPolicy:
    """Build the tax and shipping policy from configuration."""
    return PricingPolicy(
        tax_rate=config.tax_rate,
        free_shipping_threshold=Money.from_decimal(config.free_shipping_threshold, config.currency),
        flat_shipping_fee=Money.from_decimal(config.flat_shipping_fee, config.currency),
        currency=config.currency,
    )


def discount_policy_from_settings(config: Settings = settings) -> StaticCouponPolicy:
    """Build the coupon table policy from configuration."""
    return StaticCouponPolicy(config.coupons)


def publish_events(aggregate: AggregateRoot, request_id: str | None = None) -> None:
    """Write the aggregate's recorded events to the structured log.

    Call only after the surrounding transaction has committed.
    """
    for event in aggregate.collect_events():
        logger.info("Domain event", request_id=request_id, **event.to_dict())
