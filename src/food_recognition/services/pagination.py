"""Pagination metadata."""

import math


def build_pagination(total_items: int, page: int, per_page: int) -> dict[str, object]:
    """Return pagination metadata for a page of results."""
    total_pages = max(1, math.ceil(total_items / per_page))
    return {
        "totalItems": total_items,
        "currentPage": page,
        "perPage": per_page,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
        "nextPage": page + 1 if page < total_pages else None,
        "prevPage": page - 1 if page > 1 else None,
    }
