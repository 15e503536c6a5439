from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import DeadlineStatus, TodoStatus
from .utils import TimestampInput, parse_timestamp

# Wire format is camelCase; snake_case field names are accepted on input too.
_WIRE = dict(alias_generator=to_camel, populate_by_name=True)


def _clean_title(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    s = v.strip()
    if not (1 <= len(s) <= 200):
        raise ValueError("title must be between 1 and 200 characters after trimming")
    return s


# PUBLIC_INTERFACE
def format_errors(errors: Iterable[Mapping[str, Any]]) -> List[str]:
    """
    Flatten pydantic error dicts into 'field: message' strings. The leading
    'body' location FastAPI adds for request payloads is dropped.
    """
    messages = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        where = ".".join(loc)
        msg = str(err.get("msg", "invalid value"))
        messages.append(f"{where}: {msg}" if where else msg)
    return messages


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.
    """

    model_config = ConfigDict(
        **_WIRE,
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "status": "pending",
                "deadline": "2025-02-01",
            }
        },
    )

    title: str = Field(..., description="Short title for the todo item", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: TodoStatus = Field(default=TodoStatus.PENDING, description="pending, in-progress or completed")
    deadline: Optional[datetime] = Field(
        default=None,
        description="Deadline of the todo item. Accepts ISO8601 date or datetime; dates are set to 00:00 UTC",
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        return _clean_title(v)  # type: ignore[return-value]

    @field_validator("deadline", mode="before")
    @classmethod
    def parse_deadline(cls, v: Optional[TimestampInput]) -> Optional[datetime]:
        return parse_timestamp(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for updating an existing Todo item.
    All fields are optional; only provided fields are merged onto the record.
    """

    model_config = ConfigDict(
        **_WIRE,
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "status": "in-progress",
                "deadline": "2025-02-02T09:30:00Z",
            }
        },
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item", max_length=200)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: Optional[TodoStatus] = Field(default=None, description="pending, in-progress or completed")
    deadline: Optional[datetime] = Field(
        default=None,
        description="Deadline of the todo item; send null to clear it",
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return _clean_title(v)

    @field_validator("deadline", mode="before")
    @classmethod
    def parse_deadline(cls, v: Optional[TimestampInput]) -> Optional[datetime]:
        return parse_timestamp(v)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item, including its derived
    deadline status.
    """

    model_config = ConfigDict(
        **_WIRE,
        json_schema_extra={
            "example": {
                "id": 123,
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "status": "pending",
                "deadline": "2025-02-01T00:00:00Z",
                "createdAt": "2025-01-25T10:15:30.123456Z",
                "updatedAt": "2025-01-26T09:00:00.000001Z",
                "deadlineStatus": "overdue",
            }
        },
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: TodoStatus = Field(..., description="Current status")
    deadline: Optional[datetime] = Field(default=None, description="Deadline as an ISO8601 datetime")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    deadline_status: DeadlineStatus = Field(
        default=DeadlineStatus.NONE, description="Urgency derived from the deadline at read time"
    )


class PaginationOut(BaseModel):
    model_config = ConfigDict(**_WIRE)

    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class StatsOut(BaseModel):
    model_config = ConfigDict(**_WIRE)

    total: int
    pending: int
    in_progress: int
    completed: int
    overdue: int
    completion_rate: int = Field(..., description="Percentage of completed todos, rounded")


class TodoResponse(BaseModel):
    success: bool = True
    data: TodoOut


class TodoMutationResponse(BaseModel):
    success: bool = True
    message: str
    data: TodoOut


class TodoListResponse(BaseModel):
    """
    Envelope for paginated list responses.
    """

    success: bool = True
    data: List[TodoOut] = Field(..., description="Todos on the requested page")
    pagination: PaginationOut


class StatsResponse(BaseModel):
    success: bool = True
    data: StatsOut


class MessageResponse(BaseModel):
    success: bool = True
    message: str
