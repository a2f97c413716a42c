"""API layer module.

Contains FastAPI routers and request/response schemas.
"""

from storefront.api.admin import router as admin_router
from storefront.api.cart import router as cart_router
from storefront.api.health import router as health_router
from storefront.api.orders import router as orders_router

__all__ = [
    "admin_router",
    "cart_router",
    "health_router",
    "orders_router",
]
