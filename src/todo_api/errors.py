from __future__ import annotations

from typing import Iterable, List


class TodoError(Exception):
    """Base class for errors raised by the todo core."""


# PUBLIC_INTERFACE
class ValidationError(TodoError):
    """
    Input failed shape validation. Carries every violated constraint, not just
    the first one found.
    """

    def __init__(self, violations: Iterable[str]) -> None:
        self.violations: List[str] = list(violations)
        super().__init__("Validation failed: " + "; ".join(self.violations))


# PUBLIC_INTERFACE
class NotFoundError(TodoError):
    """A referenced todo does not exist."""

    def __init__(self, todo_id: object) -> None:
        self.todo_id = todo_id
        super().__init__(f"Todo {todo_id} not found")


# PUBLIC_INTERFACE
class StoreError(TodoError):
    """The underlying record store failed."""
