"""
FastAPI application entry point for the energy monitoring API.

create_app() builds the application: JSON error handlers, CORS, request
logging and all routers. The lifespan opens the Database connection pool,
runs first-boot seeding, and disposes of the pool at shutdown.

Run with: uvicorn energymon.api.main:app

CHANGELOG:
- 2026-10-15: Initial creation
"""

import logging
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from energymon import __version__
from energymon.api.data import router as data_router
from energymon.api.export import router as export_router
from energymon.api.health import router as health_router
from energymon.api.metrics import router as metrics_router
from energymon.api.token import router as token_router
from energymon.api.users import router as users_router
from energymon.config import Settings, get_settings
from energymon.db.session import Database
from energymon.errors import register_error_handlers
from energymon.logging_config import configure_logging
from energymon.services.seed import seed_database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: connection pool and seeding.

    Startup:
        - Installs the JSON log handler.
        - Opens the Database and stores it on app.state.db.
        - Seeds the admin user and sample data when SEED_ON_STARTUP is set.

    Shutdown:
        - Disposes of the connection pool.
    """
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)
    db = Database(settings.database_url)
    db.open()
    app.state.db = db

    if settings.seed_on_startup:
        async for session in db.session():
            await seed_database(session, settings)

    logger.info("Energy monitoring API %s ready", settings.app_version)
    try:
        yield
    finally:
        logger.info("Energy monitoring API shutting down")
        await db.close()


async def log_requests(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Log method, path, status and duration of every request."""
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "%s %s %d %.1fms",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Configuration; loaded from the environment when omitted.

    Returns:
        FastAPI: The configured application.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Microgrid Energy Monitoring API",
        description="Time-series energy consumption storage, statistics and export.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_error_handlers(app)

    origins = settings.cors_origin_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=["Content-Disposition"],
    )
    app.middleware("http")(log_requests)

    app.include_router(health_router)
    app.include_router(token_router)
    app.include_router(users_router)
    app.include_router(data_router)
    app.include_router(metrics_router)
    app.include_router(export_router)
    return app


app = create_app()
