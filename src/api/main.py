"""Main FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from infrastructure.database.dependencies import close_database_connections
from infrastructure.logging import configure_logging
from infrastructure.settings import get_settings
from infrastructure.version import __version__
from notifications.dependencies import (
    close_notification_clients,
    get_outbox_processor,
)
from notifications.presentation import router as outbox_router


@asynccontextmanager
async def storefront_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Logging configuration
    - Outbox processor start/stop (skipped when the outbox is disabled)
    - HTTP client and database engine cleanup on shutdown
    """
    configure_logging(get_settings().log_level)

    processor = get_outbox_processor()
    await processor.start()
    try:
        yield
    finally:
        await processor.stop()
        await close_notification_clients()
        await close_database_connections()


app = FastAPI(
    title="Storefront Notifications",
    description="Transactional outbox and multi-channel notification delivery",
    version=__version__,
    lifespan=storefront_lifespan,
)

app.include_router(outbox_router)


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "ok", "version": __version__}
