import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from revisit.config import get_settings

logger = logging.getLogger("revisit.limiter")

RATE_LIMIT_MESSAGE = "Too many requests, please try again later"


def create_limiter() -> Limiter:
    try:
        settings = get_settings()
        return Limiter(
            key_func=get_remote_address,
            storage_uri=settings.rate_limit_storage_uri,
            enabled=settings.rate_limit_enabled,
        )
    except Exception:
        logger.exception("Failed to create slowapi Limiter")
        raise


limiter = create_limiter()


def _configured_limit() -> str:
    # Read per request so RATE_LIMIT changes on the cached settings apply.
    return get_settings().rate_limit


def get_rate_limit_decorator(limit: str | None = None) -> Any:
    """
    One budget shared by every decorated /api route, keyed by client address.
    Decorated endpoints must take `request: Request`.
    """
    return limiter.shared_limit(limit or _configured_limit, scope="api", error_message=RATE_LIMIT_MESSAGE)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded for %s on %s (%s)", get_remote_address(request), request.url.path, exc.detail)
    return JSONResponse(status_code=429, content={"error": RATE_LIMIT_MESSAGE})
