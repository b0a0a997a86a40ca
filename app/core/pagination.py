"""
Fixed-size page math shared by the list pages.
"""

import math
from dataclasses import dataclass

from app.core.exceptions import InvalidInputError

PAGE_SIZE = 4


@dataclass(frozen=True)
class PageRange:
    """Offset/limit window for a 1-based page."""

    offset: int
    limit: int


def build_range(page: int) -> PageRange:
    """Return the window for ``page``: offset ``(page - 1) * PAGE_SIZE``, limit ``PAGE_SIZE``."""
    if page < 1:
        raise InvalidInputError(f"Invalid page number {page}", "Page numbers start at 1")
    return PageRange(offset=(page - 1) * PAGE_SIZE, limit=PAGE_SIZE)


def total_pages(count: int) -> int:
    return math.ceil(count / PAGE_SIZE)
