# mpms/core/pagination.py
"""
Page/limit/sort для всех постраничных списков.

Разбор мягкий: отсутствующее или нечисловое значение заменяется значением по
умолчанию, выход за границы обрезается (page >= 1, 1 <= limit <= 100).
"""
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, TypeVar

from fastapi import Query

from mpms.core.enums import SortOrder

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
DEFAULT_SORT_BY = "createdAt"

T = TypeVar("T")

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _to_int(value: Optional[str], default: int) -> int:
    try:
        return int(str(value))
    except (TypeError, ValueError):
        return default


def to_snake(name: str) -> str:
    return _CAMEL_RE.sub("_", name).lower()


@dataclass(frozen=True)
class PageParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str = DEFAULT_SORT_BY
    sort_order: SortOrder = SortOrder.DESC

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def parse_pagination(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> PageParams:
    page_value = max(1, _to_int(page, DEFAULT_PAGE) or DEFAULT_PAGE)
    limit_value = min(MAX_LIMIT, max(1, _to_int(limit, DEFAULT_LIMIT) or DEFAULT_LIMIT))
    order = SortOrder.ASC if sort_order == SortOrder.ASC.value else SortOrder.DESC
    return PageParams(page=page_value, limit=limit_value, sort_by=sort_by or DEFAULT_SORT_BY, sort_order=order)


def pagination_params(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
) -> PageParams:
    """FastAPI-зависимость: ?page=&limit=&sortBy=&sortOrder="""
    return parse_pagination(page, limit, sort_by, sort_order)


def order_clause(model, params: PageParams, allowed: Optional[set] = None) -> tuple:
    """
    ORDER BY по `params.sort_by` (имя колонки в camelCase или snake_case).
    Неизвестная или запрещённая колонка заменяется на created_at.
    """
    column_name = to_snake(params.sort_by)
    if column_name not in model.__table__.columns or (allowed is not None and column_name not in allowed):
        column_name = "created_at"
    column = getattr(model, column_name)
    if params.sort_order is SortOrder.ASC:
        return column.asc(), model.id.asc()
    return column.desc(), model.id.desc()


@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    params: PageParams

    @property
    def meta(self) -> Dict[str, Any]:
        total_pages = math.ceil(self.total / self.params.limit) if self.total else 0
        return {
            "page": self.params.page,
            "limit": self.params.limit,
            "total": self.total,
            "total_pages": total_pages,
            "has_next_page": self.params.page < total_pages,
            "has_prev_page": self.params.page > 1,
        }


def paginate(query, model, params: PageParams, allowed_sort: Optional[set] = None) -> Page:
    total = query.order_by(None).count()
    items = (
        query.order_by(*order_clause(model, params, allowed_sort))
        .offset(params.offset)
        .limit(params.limit)
        .all()
    )
    return Page(items=items, total=total, params=params)
