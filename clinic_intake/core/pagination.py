"""
Page windows over ordered record lists.

List endpoints read the whole ordered result from the repository and cut one
page out of it; the page/size query pair arrives through PageParams.
"""
from typing import Any, Dict, Generic, List, Sequence, TypeVar
from fastapi import Query

from .schemas import CamelModel

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

class PageParams:
    """
    Query parameters selecting one page of a list endpoint.

    Attributes:
        page: Page to return, starting at 1
        size: Records per page (at most MAX_PAGE_SIZE)
    """
    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page to return, starting at 1"),
        size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Records per page")
    ):
        self.page = page
        self.size = size

    def window(self, items: Sequence[T]) -> Dict[str, Any]:
        """Cut this page out of items and describe where it sits in the whole list."""
        start = (self.page - 1) * self.size
        total = len(items)
        pages = -(-total // self.size)
        return {
            "items": list(items[start:start + self.size]),
            "total": total,
            "page": self.page,
            "size": self.size,
            "pages": pages,
            "has_next": self.page < pages,
            "has_prev": self.page > 1,
        }


class PageResponse(CamelModel, Generic[T]):
    """
    One page of a list endpoint.

    Attributes:
        items: Records on this page
        total: Records across all pages
        pages: Page count (0 for an empty list)
        has_next / has_prev: Whether neighbouring pages exist
    """
    items: List[T]
    total: int
    page: int
    size: int
    pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def of(cls, items: Sequence[T], page_params: PageParams):
        return cls(**page_params.window(items))
