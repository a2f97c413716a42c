"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "postgresql+asyncpg://storefront:storefront_dev_password@db:5432/storefront"
    auto_create_tables: bool = False

    # Authentication (shared secret with the upstream gateway)
    storefront_api_key: str = "dev-api-key-change-in-production"

    # Logging
    log_level: str = "INFO"

    # Pricing
    currency: str = "INR"
    tax_rate: Decimal = Decimal("0.18")
    free_shipping_threshold: Decimal = Field(
        default=Decimal("999"),
        description="Subtotal (major units) at or above which shipping is free",
    )
    flat_shipping_fee: Decimal = Field(
        default=Decimal("99"),
        description="Shipping fee (major units) below the free shipping threshold",
    )
    coupons: dict[str, int] = Field(
        default_factory=lambda: {"FIRST10": 10, "SAVE20": 20, "DESIGNER15": 15},
        description="Coupon code to discount percent, as JSON",
    )

    # Cart
    max_item_quantity: int = 10

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
