"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from employee_payroll import __version__
from employee_payroll.api.routes import (
    branches_router,
    employees_router,
    health_router,
    payroll_cycles_router,
    time_entries_router,
)
from employee_payroll.config import Settings, configure_logging, get_settings
from employee_payroll.database import Database
from employee_payroll.errors import (
    AlreadyCalculatedError,
    ConcurrentModificationError,
    InvalidStateError,
    NotFoundError,
    PayrollError,
    PermissionDeniedError,
    PersistenceFailureError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[type[PayrollError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateError: status.HTTP_409_CONFLICT,
    AlreadyCalculatedError: status.HTTP_409_CONFLICT,
    ConcurrentModificationError: status.HTTP_409_CONFLICT,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    PersistenceFailureError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_code_for(exc: PayrollError) -> int:
    """HTTP status for a domain error, walking its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings: Settings = app.state.settings
    database: Database = app.state.database

    # Startup
    configure_logging(settings)
    if settings.create_schema:
        await database.create_all()
    logger.info("Employee payroll API starting (timezone %s)", settings.payroll_timezone)
    yield
    # Shutdown
    await database.dispose()


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    database = database or Database.from_settings(settings)

    app = FastAPI(
        title="Employee Payroll API",
        description="Payroll cycle calculation and time tracking",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.database = database

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollError)
    async def payroll_exception_handler(request: Request, exc: PayrollError) -> JSONResponse:
        """Translate domain errors into JSON responses."""
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": exc.code, **exc.details},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(payroll_cycles_router, prefix="/api/v1")
    app.include_router(time_entries_router, prefix="/api/v1")
    app.include_router(branches_router, prefix="/api/v1")
    app.include_router(employees_router, prefix="/api/v1")

    return app

