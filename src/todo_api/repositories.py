from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .errors import NotFoundError
from .models import TodoEntity, TodoStatus
from .query import SortSpec
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


def sort_key(record: Mapping[str, Any], field: str) -> Tuple[Any, ...]:
    """
    Total ordering key for a record: missing values first, then the value,
    then the id as tie breaker.
    """
    value = record.get(field)
    return (value is not None, value, record["id"])


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract record store contract for todo storage backends.

    Ordering used by `query` is total: (sort field, id), with records lacking
    the sort field placed first in ascending order.
    """

    @abstractmethod
    def insert(self, record: Mapping[str, Any]) -> int:
        """Persist a new record (without id) and return the id assigned to it."""

    @abstractmethod
    def get(self, todo_id: int) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def update(self, todo_id: int, record: Mapping[str, Any]) -> TodoEntity:
        """
        Replace the stored fields of an existing record and return it.
        Raises NotFoundError if the id does not resolve.
        """

    @abstractmethod
    def delete(self, todo_id: int) -> None:
        """Delete a record by id. Raises NotFoundError if the id does not resolve."""

    @abstractmethod
    def query(
        self,
        status: Optional[TodoStatus],
        sort: SortSpec,
        limit: int,
        resume_after: Optional[Mapping[str, Any]] = None,
    ) -> List[TodoEntity]:
        """
        Return up to `limit` records matching `status` (None matches all) in
        `sort` order, starting strictly after `resume_after` when given.
        """

    @abstractmethod
    def count(self, status: Optional[TodoStatus] = None) -> int:
        """Return the number of records matching `status` (None matches all)."""

    @abstractmethod
    def scan_all(self) -> Iterator[TodoEntity]:
        """Yield every stored record once, in no particular order."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[int, TodoEntity] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def insert(self, record: Mapping[str, Any]) -> int:
        with self._lock:
            todo_id = self._allocate_id()
            entity: TodoEntity = {
                "id": todo_id,
                "title": record["title"],
                "description": record.get("description"),
                "status": TodoStatus(record["status"]),
                "deadline": record.get("deadline"),
                "created_at": record["created_at"],
                "updated_at": record["updated_at"],
            }
            self._items[todo_id] = entity
        return todo_id

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            item = self._items.get(todo_id)
            return None if item is None else item.copy()  # type: ignore[return-value]

    def update(self, todo_id: int, record: Mapping[str, Any]) -> TodoEntity:
        with self._lock:
            existing = self._items.get(todo_id)
            if existing is None:
                raise NotFoundError(todo_id)

            updated = existing.copy()
            for field in ("title", "description", "status", "deadline", "updated_at"):
                if field in record:
                    updated[field] = record[field]  # type: ignore[literal-required]
            self._items[todo_id] = updated  # type: ignore[assignment]
            return updated.copy()  # type: ignore[return-value]

    def delete(self, todo_id: int) -> None:
        with self._lock:
            if self._items.pop(todo_id, None) is None:
                raise NotFoundError(todo_id)

    def query(
        self,
        status: Optional[TodoStatus],
        sort: SortSpec,
        limit: int,
        resume_after: Optional[Mapping[str, Any]] = None,
    ) -> List[TodoEntity]:
        with self._lock:
            items = [t for t in self._items.values() if status is None or t["status"] == status]

        items.sort(key=lambda t: sort_key(t, sort.field), reverse=sort.descending)

        if resume_after is not None:
            marker = sort_key(resume_after, sort.field)
            if sort.descending:
                items = [t for t in items if sort_key(t, sort.field) < marker]
            else:
                items = [t for t in items if sort_key(t, sort.field) > marker]

        # Return copies to avoid external mutation
        return [t.copy() for t in items[: max(limit, 0)]]  # type: ignore[misc]

    def count(self, status: Optional[TodoStatus] = None) -> int:
        with self._lock:
            if status is None:
                return len(self._items)
            return sum(1 for t in self._items.values() if t["status"] == status)

    def scan_all(self) -> Iterator[TodoEntity]:
        with self._lock:
            snapshot = [t.copy() for t in self._items.values()]
        return iter(snapshot)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
def get_repository(settings: Optional[Settings] = None) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository (standard library sqlite3)
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        logger.info("Using SQLite persistence at %s", settings.sqlite_db_path)
        return SQLiteRepository(settings.sqlite_db_path)
    logger.info("Using in-memory persistence")
    return InMemoryRepository()
