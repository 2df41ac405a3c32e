from __future__ import annotations

import asyncio
import logging

from src.database import SessionLocal, engine
from src.services.countries import build_catalog
from src.tasks.countries import REFRESH_COUNTRIES_TASK
from src.worker.celery_app import celery_app


logger = logging.getLogger("applicants.worker")


async def _refresh_countries() -> int:
    catalog = build_catalog()
    try:
        async with SessionLocal() as session:
            return await catalog.refresh(session)
    finally:
        # Pooled connections belong to this run's event loop.
        await engine.dispose()


@celery_app.task(name=REFRESH_COUNTRIES_TASK)
def refresh_countries() -> int:
    """Pull the REST Countries list into the ``countries`` table."""

    count = asyncio.run(_refresh_countries())
    logger.info("refresh_countries done count=%s", count)
    return count
