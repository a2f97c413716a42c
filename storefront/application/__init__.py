"""Application layer module.

Contains application services (use cases) that orchestrate
domain logic and infrastructure.
"""

from storefront.application.cart_service import CartService, get_cart_service
from storefront.application.checkout_service import CheckoutService, get_checkout_service
from storefront.application.inventory_service import InventoryLedger
from storefront.application.order_service import (
    OrderService,
    ReconcileResult,
    ReorderResult,
    TrackingInfo,
    get_order_service,
)
from storefront.application.pagination import PaginatedResult, PaginationParams

__all__ = [
    "CartService",
    "get_cart_service",
    "CheckoutService",
    "get_checkout_service",
    "InventoryLedger",
    "OrderService",
    "ReconcileResult",
    "ReorderResult",
    "TrackingInfo",
    "get_order_service",
    "PaginatedResult",
    "PaginationParams",
]
