"""Pagination helpers shared by flat and grouped list views."""
import math
from typing import List, Optional, Sequence, TypeVar

T = TypeVar('T')

# Pages on each side of the current page shown in the page strip.
STRIP_RADIUS = 2


def page_count(length: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError('page_size must be positive')
    return math.ceil(length / page_size)


def clamp_page(page: int, total_pages: int) -> int:
    """Clamp a 1-indexed page into [1, total_pages]; 1 when there are no pages."""
    if total_pages <= 0:
        return 1
    return max(1, min(page, total_pages))


def paginate(items: Sequence[T], page: int, page_size: int) -> List[T]:
    start = (page - 1) * page_size
    if start < 0:
        return []
    return list(items[start:start + page_size])


def next_page(page: int, total_pages: int) -> int:
    return clamp_page(page + 1, total_pages)


def previous_page(page: int, total_pages: int) -> int:
    return clamp_page(page - 1, total_pages)


def page_strip(current: int, total_pages: int) -> List[Optional[int]]:
    """Page numbers to render: first, last and current +/- 2.

    ``None`` marks an ellipsis placeholder, emitted for the page just
    outside the window on each side when it is not the first or last page.
    """
    strip: List[Optional[int]] = []
    for number in range(1, total_pages + 1):
        if number in (1, total_pages) or abs(number - current) <= STRIP_RADIUS:
            strip.append(number)
        elif abs(number - current) == STRIP_RADIUS + 1:
            strip.append(None)
    return strip
