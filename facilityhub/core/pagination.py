import math
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

from fastapi import Query

from facilityhub.core.schemas import PaginationMeta

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class PageParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _to_int(value: Union[str, int, None], default: int) -> int:
    if value is None or value == "":
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed or default


def parse_pagination(page: Union[str, int, None] = None, limit: Union[str, int, None] = None) -> PageParams:
    """Clamp raw query values: page >= 1, 1 <= limit <= 100. Garbage falls back to defaults."""
    return PageParams(
        page=max(1, _to_int(page, DEFAULT_PAGE)),
        limit=min(MAX_LIMIT, max(1, _to_int(limit, DEFAULT_LIMIT))),
    )


def pagination_params(
    page: Optional[str] = Query(None, description="Page number, starting at 1"),
    limit: Optional[str] = Query(None, description="Items per page (max 100)"),
) -> PageParams:
    return parse_pagination(page, limit)


def build_meta(total: int, params: PageParams) -> PaginationMeta:
    total_pages = math.ceil(total / params.limit) if total else 0
    return PaginationMeta(
        page=params.page,
        limit=params.limit,
        total=total,
        total_pages=total_pages,
        has_next_page=params.page < total_pages,
        has_prev_page=params.page > 1,
    )


def paginate(query, params: PageParams) -> Tuple[List[Any], PaginationMeta]:
    """Run a SQLAlchemy query for one page and return (items, meta)."""
    total = query.order_by(None).count()
    items = query.offset(params.offset).limit(params.limit).all()
    return items, build_meta(total, params)


def paginate_list(items: List[Any], params: PageParams) -> Tuple[List[Any], PaginationMeta]:
    """Page over an already materialised list."""
    start = params.offset
    return items[start:start + params.limit], build_meta(len(items), params)
