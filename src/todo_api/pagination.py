"""
Offset/limit pagination on top of a Repository.

The store only knows how to resume after a given record, so reaching page N
means reading and discarding the `offset` records in front of it. That cost
grows linearly with the offset; it is the known scaling limit of page-number
pagination and is kept for compatibility of the page/limit contract.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List

from .models import TodoEntity
from .query import QueryPlan
from .repositories import Repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageInfo:
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1

    def as_dict(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
            "has_next_page": self.has_next_page,
            "has_prev_page": self.has_prev_page,
        }


@dataclass(frozen=True)
class Page:
    items: List[TodoEntity]
    info: PageInfo


# PUBLIC_INTERFACE
def paginate(repo: Repository, plan: QueryPlan) -> Page:
    """
    Fetch exactly the page described by `plan`, in plan order, with its
    pagination metadata.

    Raises:
        ValueError: if the plan carries a limit below 1.
    """
    if plan.limit < 1:
        raise ValueError("limit must be at least 1")

    total = repo.count(plan.status)
    info = PageInfo(page=plan.page, limit=plan.limit, total=total)
    offset = plan.offset

    if offset >= total:
        return Page(items=[], info=info)

    if offset == 0:
        items = repo.query(plan.status, plan.sort, plan.limit)
        return Page(items=items, info=info)

    logger.debug("Skipping %d records to reach page %d", offset, plan.page)
    skipped = repo.query(plan.status, plan.sort, offset)
    if not skipped:
        return Page(items=[], info=info)
    items = repo.query(plan.status, plan.sort, plan.limit, resume_after=skipped[-1])
    return Page(items=items, info=info)
