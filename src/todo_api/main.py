from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import NotFoundError, StoreError, ValidationError
from .logging_utils import configure_logging, reset_request_id, set_request_id
from .repositories import Repository, get_repository
from .routers import todos as todos_router
from .schemas import format_errors
from .settings import Settings, get_settings
from .utils import utcnow

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "CRUD operations for Todo items with filtering, sorting, pagination and statistics.",
    },
]


def _error(status_code: int, error: str, details: Any = None) -> JSONResponse:
    content: Dict[str, Any] = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def _install_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Malformed request bodies are reported like core validation failures:

            {
                "success": false,
                "error": "Validation failed: ...",
                "details": ["title: Field required", ...]
            }
        """
        violations = format_errors(exc.errors())
        return _error(400, "Validation failed: " + "; ".join(violations), violations)

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _error(400, str(exc), exc.violations)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error(404, "Todo not found")

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
        return _error(500, "Internal server error", None if settings.is_production else str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return _error(404, "Endpoint not found")
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        # Runs outside request_id_middleware, after the ContextVar was reset.
        logger.exception(
            "Unhandled error on %s %s (request_id=%s)",
            request.method,
            request.url.path,
            getattr(request.state, "request_id", "-"),
        )
        return _error(500, "Internal server error", None if settings.is_production else str(exc))


# PUBLIC_INTERFACE
def create_app(
    repository: Optional[Repository] = None,
    settings: Optional[Settings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        repository: Record store to serve from; defaults to the one configured in settings.
        settings: Application settings; defaults to values read from the environment.
        clock: Source of the current time; defaults to UTC wall-clock time.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Todo Backend",
        description="Backend API service for managing todos with deadlines, statistics and pluggable storage.",
        version="1.0.0",
        openapi_tags=openapi_tags,
    )
    app.state.settings = settings
    app.state.repository = repository if repository is not None else get_repository(settings)
    app.state.clock = clock or utcnow

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=not allow_all,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)
        response.headers["X-Request-ID"] = request_id
        return response

    _install_exception_handlers(app, settings)

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            Service status, storage backend and a map of the todo endpoints.
        """
        return {
            "message": "Todo API is running",
            "version": app.version,
            "backend": settings.persistence_backend,
            "endpoints": {
                "create": "POST /api/todos",
                "getAll": "GET /api/todos",
                "getStats": "GET /api/todos/stats",
                "getOne": "GET /api/todos/:id",
                "update": "PUT /api/todos/:id",
                "delete": "DELETE /api/todos/:id",
            },
        }

    app.include_router(todos_router.router)
    logger.info("Todo API ready (env=%s backend=%s)", settings.environment, settings.persistence_backend)
    return app


app = create_app()
