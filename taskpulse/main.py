"""taskpulse - personal task tracking with productivity insights."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from taskpulse.core.config import settings
from taskpulse.core.errors import PersistenceError
from taskpulse.core.logging import configure_logfire, instrument_fastapi, log_with_context
from taskpulse.interface.api import register_error_handlers, router as tasks_router
from taskpulse.services.session import TaskSession


logger = logging.getLogger(__name__)


def report_persistence_error(error: PersistenceError) -> None:
    """Surface writes that were applied locally but not saved."""
    log_with_context(logger, "warning", "unsaved_changes", operation=error.operation, task_ids=list(error.task_ids))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    # Configure logging first so startup logs are captured
    configure_logfire()

    session = TaskSession.from_settings(settings, on_persistence_error=report_persistence_error)
    try:
        await session.store.load()
    except PersistenceError as e:
        # already reported through the hook; serve whatever was loaded
        logger.error("startup_load_failed", extra={"error": e.message})
    app.state.session = session
    logger.info("Task session ready", extra={"owner_id": session.store.owner_id, "tasks": len(session.store)})

    yield
    # Shutdown
    await session.close()


app = FastAPI(
    title="taskpulse",
    description="Personal task tracking with productivity insights",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(tasks_router)
register_error_handlers(app)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)
