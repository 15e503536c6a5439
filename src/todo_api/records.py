"""
Validation and normalization of todo records on the write path.

Pydantic does the field checks; this module turns its error report into a
ValidationError carrying every violation, and stamps server-owned fields.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Type, TypeVar, Union

import pydantic

from .errors import ValidationError
from .models import TodoEntity
from .schemas import TodoCreate, TodoUpdate, format_errors

_M = TypeVar("_M", bound=pydantic.BaseModel)


def _validate(model: Type[_M], fields: Mapping[str, Any]) -> _M:
    try:
        return model.model_validate(dict(fields))
    except pydantic.ValidationError as exc:
        raise ValidationError(format_errors(exc.errors())) from exc


# PUBLIC_INTERFACE
def validate_new(fields: Union[TodoCreate, Mapping[str, Any]]) -> TodoCreate:
    """Validate candidate fields for a new todo, raising ValidationError listing all problems."""
    if isinstance(fields, TodoCreate):
        return fields
    return _validate(TodoCreate, fields)


# PUBLIC_INTERFACE
def validate_changes(fields: Union[TodoUpdate, Mapping[str, Any]]) -> TodoUpdate:
    """Validate a partial update. Only fields present in the input count as changes."""
    if isinstance(fields, TodoUpdate):
        return fields
    return _validate(TodoUpdate, fields)


# PUBLIC_INTERFACE
def new_record(data: Union[TodoCreate, Mapping[str, Any]], now: datetime) -> Dict[str, Any]:
    """
    Build a normalized record (without id) ready for insertion.
    created_at and updated_at are both stamped with `now`.
    """
    valid = validate_new(data)
    return {
        "title": valid.title,
        "description": valid.description,
        "status": valid.status,
        "deadline": valid.deadline,
        "created_at": now,
        "updated_at": now,
    }


# PUBLIC_INTERFACE
def merge_update(
    existing: TodoEntity,
    changes: Union[TodoUpdate, Mapping[str, Any]],
    now: datetime,
) -> TodoEntity:
    """
    Overlay the explicitly provided fields of `changes` onto `existing` and
    re-validate the merged shape. id and created_at are preserved,
    updated_at is refreshed.
    """
    update = validate_changes(changes)
    merged: Dict[str, Any] = {
        "title": existing["title"],
        "description": existing["description"],
        "status": existing["status"],
        "deadline": existing["deadline"],
    }
    merged.update(update.model_dump(exclude_unset=True))
    valid = _validate(TodoCreate, merged)

    # Clocks can step backwards; updated_at never precedes created_at.
    stamp = max(now, existing["created_at"])
    return {
        "id": existing["id"],
        "title": valid.title,
        "description": valid.description,
        "status": valid.status,
        "deadline": valid.deadline,
        "created_at": existing["created_at"],
        "updated_at": stamp,
    }
