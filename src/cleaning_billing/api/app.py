"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cleaning_billing.api.routes import (
    customers_router,
    health_router,
    hours_worked_router,
    invoices_router,
    reports_router,
    users_router,
)
from cleaning_billing.config import get_settings
from cleaning_billing.database import create_schema, dispose_db, init_db
from cleaning_billing.errors import (
    BillingError,
    Conflict,
    NotFound,
    PartialBatchFailure,
    PermissionDenied,
    StoreUnavailable,
    ValidationFailure,
)
from cleaning_billing.events import ChangeFeed
from cleaning_billing.services import InvalidTransitionError
from cleaning_billing.store import RecordStore, SqlAlchemyRecordStore

logger = logging.getLogger(__name__)

ERROR_STATUS: list[tuple[type[BillingError], int]] = [
    (ValidationFailure, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (Conflict, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (StoreUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
    (PartialBatchFailure, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_for(exc: BillingError) -> int:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_settings()
    configure_logging(settings.log_level)

    # A store injected by create_app (tests) skips the database setup
    if getattr(app.state, "store", None) is None:
        engine, session_factory = init_db()
        if settings.create_schema:
            await create_schema(engine)
        app.state.store = SqlAlchemyRecordStore(session_factory, ChangeFeed())
        logger.info("Billing API started")
        yield
        await dispose_db()
        app.state.store = None
    else:
        yield


def create_app(store: RecordStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Cleaning Billing API",
        description="Hours worked, invoices and field reports for cleaning staff",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BillingError)
    async def billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
        """Translate domain errors into their HTTP status."""
        content: dict = {"detail": exc.message, "code": exc.code}
        if isinstance(exc, ValidationFailure):
            content["fields"] = exc.fields
        if isinstance(exc, PartialBatchFailure):
            content["applied_ids"] = [str(i) for i in exc.applied_ids]
            content["failed_ids"] = [str(i) for i in exc.failed_ids]
        return JSONResponse(status_code=status_for(exc), content=content)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    app.include_router(health_router)
    app.include_router(hours_worked_router, prefix="/api/v1")
    app.include_router(invoices_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(customers_router, prefix="/api/v1")
    app.include_router(reports_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
