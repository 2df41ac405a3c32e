from __future__ import annotations

from collections.abc import AsyncGenerator
import os
import sys
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from src.config import settings


def _under_pytest() -> bool:
    # PYTEST_CURRENT_TEST is unset during collection.
    return bool(os.getenv("PYTEST_CURRENT_TEST")) or "pytest" in sys.modules


def engine_options(url: str) -> dict[str, Any]:
    """Engine keyword arguments for ``url``.

    Each anyio test and each Celery task run gets its own event loop, and
    driver connections cannot move between loops, so tests never pool.
    aiosqlite files gain nothing from a pool either.
    """

    options: dict[str, Any] = {"echo": settings.database_echo}
    if _under_pytest() or make_url(url).get_backend_name() == "sqlite":
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_pre_ping=True,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
    return options


engine = create_async_engine(settings.database_url, **engine_options(settings.database_url))
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session
