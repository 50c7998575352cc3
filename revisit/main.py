# main.py
import logging
from contextlib import asynccontextmanager
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from revisit import __version__, database
from revisit import limiter as limiter_module
from revisit.config import get_settings
from revisit.errors import PersistenceError, ReminderError
from revisit.logging import RequestLoggingMiddleware, init_logging
from revisit.routes import router

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
init_logging()
logger = logging.getLogger("revisit.main")


# ---------------------------------------------------------------------------
# App lifespan (startup/shutdown)
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown tasks."""
    settings = get_settings()

    logger.info("Startup: initializing database...")
    try:
        await database.init_db_async()
        logger.info("Connected to database: %s", database.get_database_dsn())
    except Exception as e:
        logger.critical("Database initialization failed: %s", e)
        raise  # fail fast: no point serving without storage

    if settings.cron_secret_generated:
        logger.warning("CRON_SECRET not set; generated one for this process: %s", settings.cron_secret)

    if settings.reminder_scheduler_enabled:
        from revisit.scheduler import start_reminder_scheduler

        await start_reminder_scheduler()
    else:
        logger.info("Reminder scheduler disabled (REMINDER_SCHEDULER_ENABLED not set)")

    yield

    if settings.reminder_scheduler_enabled:
        from revisit.scheduler import stop_reminder_scheduler

        try:
            await stop_reminder_scheduler()
        except Exception as e:
            logger.error("Error stopping reminder scheduler: %s", e)

    logger.info("Shutdown: closing database connection pool...")
    try:
        await database.shutdown_db_async()
        logger.info("Cleanup complete.")
    except Exception as e:
        logger.error("Error during shutdown cleanup: %s", e)


# ---------------------------------------------------------------------------
# FastAPI Application
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Revisit - Problem Review Reminders",
    version=__version__,
    lifespan=lifespan,
)
app.state.limiter = limiter_module.limiter

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
@app.exception_handler(ReminderError)
async def reminder_error_handler(request: Request, exc: ReminderError):
    if not isinstance(exc, PersistenceError):
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info("%s %s invalid body: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


app.add_exception_handler(RateLimitExceeded, cast(Any, limiter_module.rate_limit_exceeded_handler))

app.include_router(router)
