"""
Query planning for list requests.

The planner is lenient on purpose: an unknown status filter means "no filter",
an unknown sort field or direction means the default sort, and malformed page
numbers fall back to defaults. It never raises on user input.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Union

from pydantic.alias_generators import to_camel

from .models import SORTABLE_FIELDS, TodoStatus

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Accept both wire (camelCase) and record (snake_case) spellings.
_SORT_ALIASES: Dict[str, str] = {}
for _field in SORTABLE_FIELDS:
    _SORT_ALIASES[_field] = _field
    _SORT_ALIASES[to_camel(_field)] = _field


@dataclass(frozen=True)
class SortSpec:
    """Ordering key for a query. Ties are always broken by id in the same direction."""

    field: str = "created_at"
    descending: bool = True


@dataclass(frozen=True)
class QueryPlan:
    """
    Resolved filter, sort and page window for a list request.
    """

    status: Optional[TodoStatus] = None
    sort: SortSpec = SortSpec()
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _resolve_status(value: Optional[str]) -> Optional[TodoStatus]:
    if value is None:
        return None
    try:
        return TodoStatus(value.strip())
    except ValueError:
        return None


def _resolve_sort(sort_by: Optional[str], order: Optional[str]) -> SortSpec:
    field = _SORT_ALIASES.get((sort_by or "").strip(), "created_at")
    direction = (order or "").strip().lower()
    return SortSpec(field=field, descending=direction != "asc")


def _coerce_positive(value: Union[str, int, None], default: int) -> int:
    """Non-numeric input yields the default; numbers below 1 are clamped to 1."""
    if value is None:
        return default
    try:
        number = int(str(value).strip())
    except ValueError:
        return default
    return max(number, 1)


# PUBLIC_INTERFACE
def plan_query(
    status: Optional[str] = None,
    sort_by: Optional[str] = None,
    order: Optional[str] = None,
    page: Union[str, int, None] = None,
    limit: Union[str, int, None] = None,
    default_limit: int = DEFAULT_PAGE_SIZE,
    max_limit: int = MAX_PAGE_SIZE,
) -> QueryPlan:
    """
    Translate raw list parameters into a QueryPlan.

    Args:
        status: Status filter; values outside TodoStatus are ignored.
        sort_by: Field to sort by (camelCase or snake_case); defaults to createdAt.
        order: 'asc' or 'desc'; anything else means 'desc'.
        page: 1-based page number; defaults to 1.
        limit: Page size; defaults to `default_limit`, capped at `max_limit`.

    Returns:
        An immutable QueryPlan.
    """
    return QueryPlan(
        status=_resolve_status(status),
        sort=_resolve_sort(sort_by, order),
        page=_coerce_positive(page, 1),
        limit=min(_coerce_positive(limit, default_limit), max_limit),
    )
