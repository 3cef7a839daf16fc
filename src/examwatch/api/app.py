"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from examwatch import __version__
from examwatch.api.dependencies import close_student_store, init_student_store
from examwatch.api.models import APIResponse
from examwatch.api.routes import activities, students
from examwatch.student_store import StudentNotFoundError, StudentStoreError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    db_path = app.state.db_path if hasattr(app.state, "db_path") else "examwatch.db"
    init_student_store(db_path)
    logger.info("Student store opened at %s", db_path)

    yield

    close_student_store()


def create_app(
    db_path: str = "examwatch.db",
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_path: SQLite database file opened on startup.
        cors_origins: Origins allowed by CORS. Defaults to all.
    """
    app = FastAPI(
        title="examwatch API",
        description="REST API for exam proctoring: students, activity events and risk status",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.db_path = db_path

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins is not None else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(StudentNotFoundError)
    async def student_not_found_handler(
        _request: Request, _exc: StudentNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=APIResponse[None](data=None, error="Student not found").model_dump(),
        )

    @app.exception_handler(StudentStoreError)
    async def student_store_error_handler(
        request: Request, exc: StudentStoreError
    ) -> JSONResponse:
        logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=APIResponse[None](data=None, error="Internal server error").model_dump(),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception(
            "Database error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=APIResponse[None](data=None, error="Internal server error").model_dump(),
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=APIResponse[None](data=None, error="Internal server error").model_dump(),
        )

    @app.get(f"{API_PREFIX}/health", tags=["health"])
    def health() -> dict[str, str]:
        """Liveness check."""
        return {"status": "ok"}

    # Include routers
    app.include_router(students.router, prefix=API_PREFIX)
    app.include_router(activities.router, prefix=API_PREFIX)

    return app


# Default app instance
app = create_app()
