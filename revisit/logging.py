import importlib.util
import logging
import time
from logging.config import dictConfig
from typing import Any, Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from revisit.config import Settings, get_settings

LINE_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

# Third-party loggers kept at WARNING so reminder activity stays readable.
QUIET_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "apscheduler", "sqlalchemy.engine", "aiosqlite")

# Polled by uptime checks; logged at DEBUG only.
QUIET_PATHS = frozenset({"/api/health"})


def _formatter() -> Dict[str, Any]:
    if importlib.util.find_spec("colorlog") is None:
        return {"format": LINE_FORMAT}
    return {
        "()": "colorlog.ColoredFormatter",
        "format": "%(log_color)s" + LINE_FORMAT,
        "log_colors": LEVEL_COLORS,
    }


def build_logging_config(settings: Settings | None = None) -> Dict[str, Any]:
    settings = settings or get_settings()
    app_level = settings.log_level.upper()

    loggers: Dict[str, Any] = {name: {"level": "WARNING"} for name in QUIET_LOGGERS}
    loggers["revisit"] = {"level": app_level, "handlers": ["console"], "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"console": _formatter()},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "console",
                "level": settings.console_log_level.upper(),
            },
        },
        "loggers": loggers,
        "root": {"level": "WARNING", "handlers": ["console"]},
    }


def init_logging() -> None:
    dictConfig(build_logging_config())


def client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One line per request: method, path, status, elapsed time and caller."""

    logger = logging.getLogger("revisit.request")

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self.logger.exception("%s %s failed from %s", request.method, request.url.path, client_address(request))
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        if response.status_code >= 500:
            level = logging.WARNING
        elif request.url.path in QUIET_PATHS:
            level = logging.DEBUG
        else:
            level = logging.INFO
        self.logger.log(
            level,
            "%s %s -> %d in %.1fms from %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            client_address(request),
        )
        return response
