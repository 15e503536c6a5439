from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TodoStatus(str, Enum):
    """Lifecycle status of a todo item."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


# PUBLIC_INTERFACE
class DeadlineStatus(str, Enum):
    """Urgency derived from a deadline at read time. Never persisted."""

    NONE = "none"
    OVERDUE = "overdue"
    DUE_TODAY = "due-today"
    DUE_SOON = "due-soon"


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain model representing a Todo item as held by the
    storage backends.

    Fields:
    - id: Unique integer identifier assigned by the store
    - title: Short title (1..200 chars, trimmed on input via schemas)
    - description: Optional detailed description
    - status: One of TodoStatus
    - deadline: Optional timezone-aware (UTC) deadline
    - created_at: UTC creation timestamp, immutable
    - updated_at: UTC last update timestamp
    """

    id: int
    title: str
    description: Optional[str]
    status: TodoStatus
    deadline: Optional[datetime]
    created_at: datetime
    updated_at: datetime


# Sortable record fields; the first entry is the default sort.
SORTABLE_FIELDS = ("created_at", "updated_at", "deadline", "title", "status")
