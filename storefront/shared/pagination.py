# storefront/shared/pagination.py

# Pure pagination arithmetic used by every list endpoint.

import math
from typing import Any, Dict, Optional

from pydantic import BaseModel

DEFAULT_LIMIT = 10
DEFAULT_PAGE = 1


class PaginationResult(BaseModel):
    documents_count: int
    skip: int
    limit: int
    pages: int
    available_pages: int
    page: int
    next_page: Optional[int] = None
    prev_page: Optional[int] = None

    def to_response_fields(self) -> Dict[str, Any]:
        """Fields merged next to `data` in list responses."""
        return {
            "documentsCount": self.documents_count,
            "skip": self.skip,
            "limit": self.limit,
            "pageCount": self.pages,
            "availablePages": self.available_pages,
            "currentPage": self.page,
            "nextPage": self.next_page,
            "prevPage": self.prev_page,
        }


def pagination(
    documents_count: int,
    limit: Optional[int] = None,
    page: Optional[int] = None,
) -> PaginationResult:
    """
    Calculates skip/limit and page metadata for a collection of `documents_count` items.

    A missing, zero or negative `limit` falls back to 10 and the same goes for
    `page` with 1, so the function is total over its inputs.

    Example:
        pagination(25, limit=10, page=3) -> skip=20, pages=3, next_page=None, prev_page=2
    """
    limit = limit if limit and limit > 0 else DEFAULT_LIMIT
    page = page if page and page > 0 else DEFAULT_PAGE

    skip = (page - 1) * limit

    pages = math.ceil(documents_count / limit)
    available_pages = math.ceil((documents_count - skip) / limit)

    next_page = page + 1 if page + 1 <= available_pages else None
    prev_page = page - 1 if page - 1 >= 1 else None

    return PaginationResult(
        documents_count=documents_count,
        skip=skip,
        limit=limit,
        pages=pages,
        available_pages=available_pages,
        page=page,
        next_page=next_page,
        prev_page=prev_page,
    )
