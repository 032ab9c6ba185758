"""
Pagination utilities.

Request-scoped value objects derived from query parameters. Nothing here
outlives a request.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Mapping, Sequence

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100

SortOrder = Literal["asc", "desc"]


@dataclass(frozen=True)
class PaginationParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: str | None = None
    sort_order: SortOrder = "desc"

    @property
    def offset(self) -> int:
        return calculate_offset(self.page, self.limit)


def _as_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number or default


def parse_pagination_params(query: Mapping[str, Any]) -> PaginationParams:
    """Build clamped pagination params from loosely typed query values."""
    page = max(1, _as_int(query.get("page"), DEFAULT_PAGE))
    limit = min(MAX_LIMIT, max(1, _as_int(query.get("limit"), DEFAULT_LIMIT)))
    sort_order: SortOrder = "asc" if query.get("sort_order") == "asc" else "desc"
    return PaginationParams(
        page=page,
        limit=limit,
        sort_by=query.get("sort_by") or None,
        sort_order=sort_order,
    )


def calculate_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def calculate_total_pages(total: int, limit: int) -> int:
    return -(-total // limit) if limit > 0 else 0


def create_pagination_result(
    items: Sequence[Any],
    total: int,
    params: PaginationParams,
) -> dict[str, Any]:
    total_pages = calculate_total_pages(total, params.limit)
    return {
        "items": list(items),
        "pagination": {
            "page": params.page,
            "limit": params.limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": params.page < total_pages,
            "has_prev": params.page > 1,
        },
    }


def sort_items(
    items: Sequence[dict[str, Any]],
    sort_by: str,
    sort_order: SortOrder = "desc",
) -> list[dict[str, Any]]:
    """Sort dict records by one key; records missing the key go last."""
    present = [i for i in items if i.get(sort_by) is not None]
    missing = [i for i in items if i.get(sort_by) is None]
    present.sort(key=lambda i: i[sort_by], reverse=sort_order == "desc")
    return present + missing


def paginate_list(
    items: Sequence[dict[str, Any]],
    params: PaginationParams,
) -> dict[str, Any]:
    """Sort (when asked) and slice an in-memory collection."""
    ordered = sort_items(items, params.sort_by, params.sort_order) if params.sort_by else list(items)
    page = ordered[params.offset:params.offset + params.limit]
    return create_pagination_result(page, len(ordered), params)
