from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from ..query import plan_query
from ..schemas import (
    MessageResponse,
    PaginationOut,
    StatsOut,
    StatsResponse,
    TodoCreate,
    TodoListResponse,
    TodoMutationResponse,
    TodoOut,
    TodoResponse,
    TodoUpdate,
)
from ..service import TodoService

router = APIRouter(
    prefix="/api/todos",
    tags=["todos"],
)


def get_service(request: Request) -> TodoService:
    """
    Build a TodoService over the repository and clock injected into the app.
    """
    return TodoService(request.app.state.repository, request.app.state.clock)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the created resource.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Validation error"},
    },
)
def create_todo(payload: TodoCreate, service: TodoService = Depends(get_service)) -> TodoMutationResponse:
    """
    Create a new Todo.
    """
    created = service.create(payload)
    return TodoMutationResponse(message="Todo created successfully", data=TodoOut(**created))


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TodoListResponse,
    summary="List Todos",
    description=(
        "List todos with optional filters and pagination.\n\n"
        "Query parameters:\n"
        "- status: pending, in-progress or completed (other values are ignored)\n"
        "- sortBy: createdAt (default), updatedAt, deadline, title or status\n"
        "- order: asc or desc (default desc; other values mean desc)\n"
        "- page: 1-based page number (default 1)\n"
        "- limit: page size (default 20, capped)\n\n"
        "Each todo carries a derived deadlineStatus."
    ),
    responses={200: {"description": "List retrieved successfully"}},
)
def list_todos(
    request: Request,
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="Field to sort by"),
    order: Optional[str] = Query(None, description="Sort direction: 'asc' or 'desc'"),
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Maximum number of items per page"),
    service: TodoService = Depends(get_service),
) -> TodoListResponse:
    """
    List todos with pagination and filters. Malformed parameters degrade to
    defaults instead of failing the request.
    """
    settings = request.app.state.settings
    plan = plan_query(
        status=status_filter,
        sort_by=sort_by,
        order=order,
        page=page,
        limit=limit,
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )
    items, info = service.list(plan)
    return TodoListResponse(
        data=[TodoOut(**it) for it in items],
        pagination=PaginationOut(**info.as_dict()),
    )


# PUBLIC_INTERFACE
@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Todo Statistics",
    description="Counts per status, overdue count and completion rate over the whole collection.",
)
def get_stats(service: TodoService = Depends(get_service)) -> StatsResponse:
    return StatsResponse(data=StatsOut(**service.stats().as_dict()))


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoResponse,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(todo_id: str, service: TodoService = Depends(get_service)) -> TodoResponse:
    """
    Retrieve a single Todo item by its ID.
    """
    return TodoResponse(data=TodoOut(**service.get(todo_id)))


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoMutationResponse,
    summary="Update Todo",
    description="Partially update a Todo item. Omitted fields keep their current values.",
    responses={
        200: {"description": "Todo updated"},
        400: {"description": "Validation error"},
        404: {"description": "Todo not found"},
    },
)
def update_todo(
    todo_id: str, payload: TodoUpdate, service: TodoService = Depends(get_service)
) -> TodoMutationResponse:
    """
    Merge the provided fields onto the stored Todo and refresh its updatedAt.
    """
    updated = service.update(todo_id, payload)
    return TodoMutationResponse(message="Todo updated successfully", data=TodoOut(**updated))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=MessageResponse,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        200: {"description": "Todo deleted"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(todo_id: str, service: TodoService = Depends(get_service)) -> MessageResponse:
    """
    Delete a Todo. 404 if it does not exist.
    """
    service.delete(todo_id)
    return MessageResponse(message="Todo deleted successfully")
