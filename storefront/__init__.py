"""Storefront checkout core: cart, pricing, inventory ledger and order lifecycle."""

__version__ = "0.1.0"
