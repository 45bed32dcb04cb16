import math
from dataclasses import dataclass
from typing import Generic, List, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: List[T]
    page: int          # zero-based
    total_pages: int
    total_items: int

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    @property
    def label(self) -> str:
        return f"Page {self.page + 1} / {max(self.total_pages, 1)}"


def paginate(items: Sequence[T], page: int, page_size: int = 3) -> Page[T]:
    if page_size <= 0:
        raise ValueError("page_size must be positive")

    total = len(items)
    total_pages = math.ceil(total / page_size)

    # clamp into range
    page = max(0, min(page, max(total_pages - 1, 0)))

    start = page * page_size
    return Page(
        items=list(items[start:start + page_size]),
        page=page,
        total_pages=total_pages,
        total_items=total,
    )
