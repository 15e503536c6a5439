"""Todo service - composes validation, planning, pagination and aggregation over a Repository."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Tuple, Union

from .deadlines import annotate
from .errors import NotFoundError
from .pagination import PageInfo, paginate
from .query import QueryPlan
from .records import merge_update, new_record
from .repositories import Repository
from .schemas import TodoCreate, TodoUpdate
from .stats import TodoStats, aggregate
from .utils import utcnow

logger = logging.getLogger(__name__)


def _store_id(todo_id: Union[int, str]) -> int:
    """Ids are opaque on the wire; anything the store could not have issued resolves to nothing."""
    try:
        return int(str(todo_id).strip())
    except ValueError:
        raise NotFoundError(todo_id) from None


class TodoService:
    """
    Request-scoped operations on the todo collection.

    The repository and the clock are injected so tests can substitute an
    in-memory store and a fixed time.
    """

    def __init__(self, repository: Repository, clock: Callable[[], datetime] = utcnow) -> None:
        self.repository = repository
        self.clock = clock

    def create(self, data: Union[TodoCreate, Mapping[str, Any]]) -> Dict[str, Any]:
        """Validate and store a new todo; return it annotated."""
        now = self.clock()
        record = new_record(data, now)
        todo_id = self.repository.insert(record)
        logger.info("Created todo id=%s status=%s", todo_id, record["status"].value)
        return annotate({"id": todo_id, **record}, now)

    def get(self, todo_id: Union[int, str]) -> Dict[str, Any]:
        """Fetch one todo. Raises NotFoundError if absent."""
        item = self.repository.get(_store_id(todo_id))
        if item is None:
            raise NotFoundError(todo_id)
        return annotate(item, self.clock())

    def list(self, plan: QueryPlan) -> Tuple[List[Dict[str, Any]], PageInfo]:
        """Return one page of todos, each annotated with its deadline status."""
        page = paginate(self.repository, plan)
        now = self.clock()
        logger.debug(
            "Listed %d of %d todos (status=%s sort=%s page=%d)",
            len(page.items),
            page.info.total,
            plan.status.value if plan.status else "*",
            plan.sort.field,
            plan.page,
        )
        return [annotate(item, now) for item in page.items], page.info

    def update(self, todo_id: Union[int, str], changes: Union[TodoUpdate, Mapping[str, Any]]) -> Dict[str, Any]:
        """Merge `changes` onto an existing todo. Raises NotFoundError or ValidationError."""
        todo_id = _store_id(todo_id)
        existing = self.repository.get(todo_id)
        if existing is None:
            raise NotFoundError(todo_id)
        now = self.clock()
        merged = merge_update(existing, changes, now)
        updated = self.repository.update(todo_id, merged)
        logger.info("Updated todo id=%s", todo_id)
        return annotate(updated, now)

    def delete(self, todo_id: Union[int, str]) -> None:
        """Delete a todo. Raises NotFoundError if absent."""
        todo_id = _store_id(todo_id)
        self.repository.delete(todo_id)
        logger.info("Deleted todo id=%s", todo_id)

    def stats(self) -> TodoStats:
        """Aggregate statistics over the whole collection."""
        return aggregate(self.repository.scan_all(), self.clock())

