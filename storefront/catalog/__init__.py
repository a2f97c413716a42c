"""Product catalog read model.

Products and their size/color variants, as read by pricing and checkout.
Stock counters are mutated only through the inventory ledger.
"""

from storefront.catalog.models import Product, ProductStatus, ProductVariant
from storefront.catalog.repository import CatalogRepository, VariantSnapshot

__all__ = [
    # Models
    "Product",
    "ProductStatus",
    "ProductVariant",
    # Repository
    "CatalogRepository",
    "VariantSnapshot",
]
