"""FastAPI application entry point."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fii_tracker import __version__
from fii_tracker.api.routers import market_data_router, portfolio_router, transactions_router
from fii_tracker.app_context import get_app_context
from fii_tracker.config.logging_config import setup_logging
from fii_tracker.config.settings import get_settings
from fii_tracker.core.exceptions import AppError, NotFoundError
from fii_tracker.repositories.sqlalchemy.database import init_db
from fii_tracker.services.scheduler import Environment

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging()
    init_db()

    settings = get_settings()
    context = get_app_context()
    mount_refresh = None
    if context.portfolio.should_refresh_on_mount():
        mount_refresh = asyncio.create_task(context.portfolio.refresh(silent=True))
        logger.info("Market data is stale, refreshing on startup")

    stop = asyncio.Event()
    task = None
    if settings.refresh_interval_seconds > 0:
        scheduler = context.scheduler
        task = asyncio.create_task(
            scheduler.run(Environment, settings.refresh_interval_seconds, stop)
        )
        logger.info("Market data scheduler started (every %ss)", settings.refresh_interval_seconds)
    yield
    # Shutdown
    stop.set()
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
    if mount_refresh is not None:
        # Let the startup refresh finish so its result is saved.
        await mount_refresh


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Local-first portfolio tracker for Brazilian real-estate funds (FIIs)",
    version=__version__,
    lifespan=lifespan,
)

# Include routers
app.include_router(transactions_router)
app.include_router(portfolio_router)
app.include_router(market_data_router)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"error": exc.code, "message": exc.message},
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=400,
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": __version__,
        "docs": "/docs",
    }
