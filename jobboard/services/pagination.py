"""
Fixed-size pagination shared by every list endpoint.

Order of checks matters:
1. page <= 0 is rejected before any query runs
2. the count query runs; zero rows is "no results", not a paging error
3. only then is page > total_pages known to be out of range
"""
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from jobboard.errors import NoResultsError, ValidationError

PAGE_SIZE = 20

INVALID_PAGE_MESSAGE = "Invalid page number"


@dataclass
class Pagination:
    current_page: int
    total_pages: int
    page_size: int
    total_items: int


@dataclass
class Page:
    items: list[Any] = field(default_factory=list)
    pagination: Optional[Pagination] = None


def validate_page_number(page: Optional[int]) -> int:
    if page is None:
        return 1
    if page < 1:
        raise ValidationError(INVALID_PAGE_MESSAGE)
    return page


def page_offset(page: int) -> int:
    return (page - 1) * PAGE_SIZE


def build_pagination(page: int, total_items: int, empty_message: str) -> Pagination:
    """Validate ``page`` against the counted total and build the block."""
    if total_items == 0:
        raise NoResultsError(empty_message)

    total_pages = math.ceil(total_items / PAGE_SIZE)
    if page > total_pages:
        raise ValidationError(INVALID_PAGE_MESSAGE)

    return Pagination(
        current_page=page,
        total_pages=total_pages,
        page_size=PAGE_SIZE,
        total_items=total_items,
    )
