import logging
from typing import Any, Dict, cast

from dotenv import load_dotenv
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from revisit.config import get_settings

load_dotenv()
logger = logging.getLogger("revisit.db")

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

_settings = get_settings()
_CURRENT_DB_URL: str | None = None


def _detect_driver(url: str) -> str:
    try:
        return make_url(url).drivername
    except Exception:
        return url.split(":", 1)[0]


def _async_url(url: str) -> str:
    """Map sync driver URLs to their async equivalents."""
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    if url.startswith("postgresql://") or url.startswith("postgres://"):
        return "postgresql+asyncpg://" + url.split("://", 1)[1]
    return url


# ---------------------------------------------------------------------------
# Engine Setup
# ---------------------------------------------------------------------------

def _make_engine() -> AsyncEngine:
    url = _async_url(str(_settings.database_url or "").strip())
    if not url:
        raise RuntimeError("DATABASE_URL is required")

    driver = _detect_driver(url)
    engine_kwargs: Dict[str, Any] = {
        "echo": False,
        "future": True,
    }
    if driver.startswith("postgresql+"):
        engine_kwargs["pool_pre_ping"] = True
        engine_kwargs["pool_size"] = 10
        engine_kwargs["max_overflow"] = 5
    else:
        # SQLite: no pooling, so connections never outlive the event loop that opened them
        engine_kwargs["poolclass"] = NullPool

    global _CURRENT_DB_URL
    _CURRENT_DB_URL = url

    return create_async_engine(url, **engine_kwargs)


try:
    async_engine: AsyncEngine = _make_engine()
except Exception as e:
    logger.critical("Failed to initialize async engine: %s", e)
    raise RuntimeError("Database engine initialization failed") from e

AsyncSessionLocal = async_sessionmaker(bind=async_engine, expire_on_commit=False)


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------

def get_database_dsn(hide_password: bool = True) -> str:
    """Return the configured DB DSN string with the password masked."""
    url_str = _CURRENT_DB_URL or ""
    try:
        url = make_url(cast(str, url_str))
        return url.render_as_string(hide_password=hide_password)
    except Exception:
        return url_str


async def init_db_async():
    """Create tables on startup (migrations remain the source of truth in production)."""
    from revisit.models import Base

    try:
        async with async_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database initialized successfully.")
    except Exception as e:
        logger.critical("Database initialization failed: %s", e)
        raise RuntimeError("Failed to initialize database") from e


async def shutdown_db_async():
    """Dispose the async engine cleanly."""
    try:
        await async_engine.dispose()
        logger.info("Database connection pool closed.")
    except Exception as e:
        logger.error("Error shutting down database engine: %s", e)
        raise
