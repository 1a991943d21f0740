"""
POS Core — Offset Pagination
============================
One page model shared by the catalog, the service and the ledger.

    start = (page - 1) * page_size
    end   = page * page_size          (clipped to the item count)

page and page_size below 1 are treated as 1. A page past the end is
empty but still reports the full total.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


def normalize(page: int, page_size: int, max_page_size: Optional[int] = None) -> Tuple[int, int]:
    page = max(int(page), 1)
    page_size = max(int(page_size), 1)
    if max_page_size is not None:
        page_size = min(page_size, max_page_size)
    return page, page_size


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Tuple[T, ...]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.page_size)

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [getattr(i, "to_dict", lambda: i)() for i in self.items],
            "pagination": {
                "page": self.page,
                "limit": self.page_size,
                "total": self.total,
                "total_pages": self.total_pages,
                "has_more": self.has_more,
            },
        }


def paginate(
    items: Sequence[T],
    page: int,
    page_size: int,
    max_page_size: Optional[int] = None,
) -> Page[T]:
    page, page_size = normalize(page, page_size, max_page_size)
    total = len(items)
    start = min((page - 1) * page_size, total)
    end = min(page * page_size, total)
    return Page(
        items=tuple(items[start:end]),
        total=total,
        page=page,
        page_size=page_size,
    )
