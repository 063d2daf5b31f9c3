import math
from typing import List, Sequence, Tuple, TypeVar

from smartcatalog.domain.models.search import PaginationMeta

T = TypeVar("T")


def build_meta(total: int, page: int, limit: int) -> PaginationMeta:
    total_pages = math.ceil(total / limit) if limit else 0
    return PaginationMeta(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


def paginate(items: Sequence[T], page: int, limit: int) -> Tuple[List[T], PaginationMeta]:
    """
    Slice [offset, offset + limit) with offset = (page - 1) * limit.
    Pages past the end give an empty slice with correct meta.
    `page` and `limit` must already be positive integers.
    """
    offset = (page - 1) * limit
    data = list(items[offset:offset + limit])
    return data, build_meta(len(items), page, limit)


def coerce_positive_int(value, default: int) -> int:
    """Best-effort int coercion for user-supplied page/limit values."""
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n >= 1 else default
