"""FastAPI application hosting the archive workers, with lifespan and health endpoint."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from linkradar_archive.archive.jobs import get_archive_queue
from linkradar_archive.config import get_settings
from linkradar_archive.logging_config import configure_logging

SERVICE_NAME = "linkradar-archive"
VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: configure logging, load config and run archive workers."""
    settings = get_settings()
    configure_logging(settings.log_level)
    app.state.settings = settings

    queue = get_archive_queue()
    queue.start(settings.worker_count)
    try:
        yield
    finally:
        await queue.stop()


app = FastAPI(
    title="LinkRadar Content Archive",
    lifespan=lifespan,
)


@app.get("/health")
async def health():
    """Health check endpoint for the container platform and local development."""
    settings = get_settings()
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": VERSION,
        "archival_enabled": settings.enabled,
        "queued_jobs": get_archive_queue().pending,
    }
