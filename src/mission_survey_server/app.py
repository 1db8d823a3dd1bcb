"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that builds the gateway, draft storage, built-in
    catalog and session registry once
  - CORS middleware
  - Global exception handlers (SDK ValueError → 404/409/400)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness checks

The ``cli()`` function is the ``mission-survey-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from mission_survey.interfaces import KeyValueStorage, SurveyGateway
from mission_survey.memory import InMemorySurveyGateway
from mission_survey.questions import BuiltinCatalog
from mission_survey.storage import JsonFileStorage, MemoryStorage

from mission_survey_server.config import GATEWAY_SQL, ServerSettings, load_settings
from mission_survey_server.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from mission_survey_server.registry import SessionRegistry
from mission_survey_server.routes import register_routes

logger = logging.getLogger(__name__)


def build_gateway(settings: ServerSettings, engine: AsyncEngine | None = None) -> SurveyGateway:
    """Remote store selected by ``SURVEY_GATEWAY``.

    The sql gateway opens its sessions on ``engine``, which the caller
    built and disposes.
    """
    if settings.gateway == GATEWAY_SQL:
        if engine is None:
            raise ValueError("The sql gateway requires a database engine")
        from mission_survey_db.engine import build_session_factory
        from mission_survey_db.gateway import SqlSurveyGateway

        return SqlSurveyGateway(build_session_factory(engine), admin_email=settings.admin_email)
    admins = [settings.admin_email] if settings.admin_email else []
    return InMemorySurveyGateway(admin_emails=admins)


def build_draft_storage(settings: ServerSettings) -> KeyValueStorage:
    if settings.draft_path:
        return JsonFileStorage(settings.draft_path)
    return MemoryStorage()


# ------------------------------------------------------------------
# Lifespan - runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build shared resources at startup, tear down on shutdown.

    Startup:
      1. Load the built-in questions and teams
      2. Build the database engine (sql gateway, no injected gateway)
      3. Build (or take the injected) gateway and draft storage
      4. Create the session registry and warm its reference catalog

    Shutdown:
      1. Dispose the engine built in step 2
    """
    settings: ServerSettings = app.state.settings

    builtin = BuiltinCatalog.load(settings.data_dir)

    engine: AsyncEngine | None = None
    gateway = app.state.gateway_override
    if gateway is None:
        if settings.gateway == GATEWAY_SQL:
            from mission_survey_db.engine import build_engine

            engine = build_engine()
        gateway = build_gateway(settings, engine)
    app.state.engine = engine
    storage = app.state.storage_override or build_draft_storage(settings)

    registry = SessionRegistry(
        gateway, builtin, storage,
        idle_timeout=settings.session_idle_minutes * 60,
    )
    await registry.warm_up()
    app.state.registry = registry
    logger.info(
        "Survey server ready: gateway=%s, drafts=%s",
        type(gateway).__name__, settings.draft_path or "memory",
    )

    yield

    if engine is not None:
        await engine.dispose()
        app.state.engine = None
        logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(
    settings: ServerSettings | None = None,
    *,
    gateway: SurveyGateway | None = None,
    draft_storage: KeyValueStorage | None = None,
) -> FastAPI:
    """Build and return the configured FastAPI application.

    ``gateway`` and ``draft_storage`` replace the ones the settings select.
    """
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Mission Survey API Server",
        description="REST API for the short-term mission survey",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.gateway_override = gateway
    app.state.storage_override = draft_storage
    app.state.engine = None

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    @app.get("/health")
    async def health() -> dict:
        """Readiness check - pings the DB connectivity when the server owns an engine."""
        engine: AsyncEngine | None = app.state.engine
        if engine is None:
            return {"status": "ok", "gateway": settings.gateway}
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok", "gateway": settings.gateway}
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": str(exc)}

    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn mission_survey_server.app:app)
# ------------------------------------------------------------------
app = create_app()


def cli() -> None:
    """Console-script entry point: ``mission-survey-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "mission_survey_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
