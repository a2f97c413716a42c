"""Pagination parameters and results shared by list use cases."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from storefront.infrastructure.config import settings

T = TypeVar("T")


@dataclass
class PaginationParams:
    """Pagination parameters.

    Out-of-range values are clamped rather than rejected: page is at
    least 1 and limit lies between 1 and ``max_page_size``.

    Attributes:
        page: Page number (1-indexed).
        limit: Items per page.
    """

    page: int = 1
    limit: int = settings.default_page_size

    def __post_init__(self) -> None:
        self.page = max(1, self.page)
        self.limit = min(settings.max_page_size, max(1, self.limit))

    @property
    def offset(self) -> int:
        """Calculate offset from page number."""
        return (self.page - 1) * self.limit


@dataclass
class PaginatedResult(Generic[T]):
    """Paginated result container.

    Attributes:
        items: Items on the current page.
        total: Total count across all pages.
        page: Current page.
        limit: Items per page.
    """

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        """Calculate total pages."""
        return (self.total + self.limit - 1) // self.limit

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        """Check if there's a previous page."""
        return self.page > 1
