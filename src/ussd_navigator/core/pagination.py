"""Pagination of long option lists into bounded pages."""

import math
from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

from .menu import Option

T = TypeVar("T")


@dataclass(frozen=True)
class PaginatedResult(Generic[T]):
    """One page of a paginated list plus navigation metadata."""

    items: tuple[T, ...] = field(default_factory=tuple)
    current_page: int = 1
    total_pages: int = 0
    total_items: int = 0
    page_size: int = 5

    def has_next(self) -> bool:
        """Check if there is a next page."""
        return self.current_page < self.total_pages

    def has_previous(self) -> bool:
        """Check if there is a previous page."""
        return self.current_page > 1


def paginate(items: Sequence[T], page: int, page_size: int) -> PaginatedResult[T]:
    """
    Slice items into the requested 1-based page.

    Out-of-range page numbers are clamped into [1, total_pages]
    (or to 1 when there are no items); they never fail.

    Args:
        items: The full list.
        page: Requested page number (1-based).
        page_size: Items per page.

    Returns:
        PaginatedResult for the clamped page.

    Raises:
        ValueError: If page_size is not positive.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    total_items = len(items)
    total_pages = math.ceil(total_items / page_size)
    current = max(1, min(page, total_pages))

    offset = (current - 1) * page_size
    return PaginatedResult(
        items=tuple(items[offset:offset + page_size]),
        current_page=current,
        total_pages=total_pages,
        total_items=total_items,
        page_size=page_size,
    )


def paginate_options(
    options: Sequence[Option],
    page: int,
    page_size: int,
    next_command: str = "#",
    previous_command: str = "*",
    next_label: str = "Next",
    previous_label: str = "Previous",
) -> list[Option]:
    """
    Get one page of options with synthetic navigation options appended.

    The next-page option is only added when a later page exists, and the
    previous-page option only when an earlier one does.
    """
    result = paginate(options, page, page_size)
    page_options = list(result.items)

    if result.has_next():
        page_options.append(Option(input=next_command, label=next_label))
    if result.has_previous():
        page_options.append(Option(input=previous_command, label=previous_label))

    return page_options
