"""
Database engine and session management.

One async engine per process; every repository call checks a session out of
AsyncSessionLocal and returns it when the call finishes.
"""
import asyncio

import structlog
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from kakao_login.config import settings
from kakao_login.models.base import Base

logger = structlog.get_logger()

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def create_all(bind: AsyncEngine = engine) -> None:
    """Create every table registered on Base."""
    # Import models so they register with Base.metadata
    from kakao_login.models import kakao_user, login_session  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_connection(
    bind: AsyncEngine = engine,
    timeout: float = settings.DATABASE_CONNECT_TIMEOUT_SECONDS,
) -> bool:
    """
    Return True when the database answers SELECT 1 within timeout seconds.

    Errors are not raised; callers use the boolean to decide whether to run
    with persistence or session-only.
    """
    async def _ping() -> None:
        async with bind.connect() as conn:
            await conn.execute(text("SELECT 1"))

    try:
        await asyncio.wait_for(_ping(), timeout=timeout)
    except Exception as exc:  # timeouts and driver-specific connection errors
        logger.warning("database_unreachable", error=str(exc), **describe_database(str(bind.url)))
        return False
    return True


def describe_database(url: str = settings.DATABASE_URL) -> dict:
    """Connection target without credentials, for status endpoints."""
    parsed = make_url(url)
    return {
        "database": parsed.database,
        "host": parsed.host,
        "port": parsed.port,
        "driver": parsed.drivername,
    }
