"""FastAPI application for the Cohort trainee registration service.

Provides the JSON API for verification, registration, sponsors and the
registration wizard, plus the server-rendered pages.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from http import HTTPStatus
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from cohort.core.config import Settings
from cohort.core.envelopes import ApiResponse
from cohort.db.engine import DatabaseManager
from cohort.governance.audit import AuditLogger
from cohort.registration.service import RegistrationService
from cohort.registration.store import RegistryStore
from cohort.repositories.postgres.registry import PostgresRegistryRepository
from cohort.repositories.protocols import RegistryRepository
from cohort.verification.delivery import CodeDelivery
from cohort.verification.service import VerificationService
from cohort.web.components import templates
from cohort.web.pages import page_router
from cohort.web.registration_router import router as registration_router
from cohort.web.sponsor_router import router as sponsor_router
from cohort.web.verification_router import router as verification_router
from cohort.web.wizard_router import router as wizard_router
from cohort.wizard.engine import WizardEngine
from cohort.wizard.locations import LocationDirectory
from cohort.wizard.store import WizardStore
from cohort.wizard.validation import ValidationEngine

logger = logging.getLogger(__name__)

_STATIC_DIR = Path(__file__).parent / "static"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    environment: str
    storage: str
    version: str = "0.1.0"


def _error_title(status_code: int) -> str:
    if status_code == 404:
        return "Page not found"
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Something went wrong"


# --- Application factory ---


def create_app(
    settings: Settings | None = None,
    repository: RegistryRepository | None = None,
    audit_logger: AuditLogger | None = None,
    delivery: CodeDelivery | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Uses the factory pattern so tests can create isolated app instances
    with their own storage and audit log.

    Args:
        settings: Application settings. Defaults to Settings().
        repository: Optional pre-built registry repository. Without one,
            the SQL repository is used when a database URL is configured,
            otherwise the in-memory store.
        audit_logger: Optional pre-built AuditLogger.
        delivery: Optional verification code delivery channel.

    Returns:
        A configured FastAPI instance.
    """
    if settings is None:
        settings = Settings()

    logging.getLogger("cohort").setLevel(settings.log_level.upper())

    db: DatabaseManager | None = None
    if repository is None:
        if settings.db.database_url:
            db = DatabaseManager.from_config(settings.db)
            repository = PostgresRegistryRepository(db)
        else:
            repository = RegistryStore()

    if audit_logger is None:
        audit_logger = AuditLogger(config=settings.audit)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if db is not None and settings.db.create_tables:
            await db.create_tables()
            logger.info("Database tables ready")
        try:
            yield
        finally:
            if db is not None:
                await db.close()

    app = FastAPI(
        title="Cohort",
        description="Trainee registration, verification and hostel allocation",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Dependencies
    validation_engine = ValidationEngine(
        locations=LocationDirectory(settings.wizard.locations_path)
    )
    wizard_engine = WizardEngine(
        store=WizardStore(),
        validation_engine=validation_engine,
        audit_logger=audit_logger,
        wizards_dir=settings.wizard.wizards_dir,
    )
    verification_service = VerificationService(
        repository,
        settings=settings,
        delivery=delivery,
        audit_logger=audit_logger,
    )
    registration_service = RegistrationService(
        repository,
        verification_service,
        settings=settings,
        audit_logger=audit_logger,
    )

    # Store on app state for access in route handlers
    app.state.settings = settings
    app.state.repository = repository
    app.state.audit_logger = audit_logger
    app.state.validation_engine = validation_engine
    app.state.wizard_engine = wizard_engine
    app.state.verification_service = verification_service
    app.state.registration_service = registration_service

    app.include_router(verification_router)
    app.include_router(registration_router)
    app.include_router(sponsor_router)
    app.include_router(wizard_router)
    app.include_router(page_router())

    if _STATIC_DIR.exists():
        app.mount("/static", StaticFiles(directory=str(_STATIC_DIR)), name="static")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> Response:
        """API errors become envelopes; page errors render the not-found page."""
        detail = exc.detail if isinstance(exc.detail, str) else None
        if request.url.path.startswith("/api"):
            body = ApiResponse[None](message=detail or "Request failed", success=False)
            return JSONResponse(
                status_code=exc.status_code,
                content=body.model_dump(mode="json", by_alias=True),
                headers=getattr(exc, "headers", None),
            )
        page_detail = None if exc.status_code == 404 and detail == "Not Found" else detail
        return templates.TemplateResponse(
            request,
            "not_found.html",
            {"title": _error_title(exc.status_code), "detail": page_detail},
            status_code=exc.status_code,
        )

    @app.get("/api/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            service="cohort-registration",
            environment=settings.environment,
            storage=type(repository).__name__,
        )

    return app
