from __future__ import annotations

import logging
import os

logger = logging.getLogger("applicants.tasks")

REFRESH_COUNTRIES_TASK = "applicants.refresh_countries"


def emit_refresh_countries_task() -> bool:
    """Ask the worker to refresh the country catalog. Returns whether a task was sent.

    No-op unless enabled:
      CELERY_ENABLED=1
      CELERY_BROKER_URL=...   (falls back to REDIS_URL)

    Failing to enqueue is logged, never raised.
    """

    if os.getenv("CELERY_ENABLED") != "1":
        return False

    broker_url = os.getenv("CELERY_BROKER_URL") or os.getenv("REDIS_URL")
    if not broker_url:
        logger.warning("CELERY_ENABLED=1 but CELERY_BROKER_URL is not set; skipping")
        return False

    backend = os.getenv("CELERY_RESULT_BACKEND")

    try:
        from celery import Celery

        celery_app = Celery("applicants", broker=broker_url, backend=backend)
        celery_app.send_task(REFRESH_COUNTRIES_TASK)
    except Exception:
        logger.exception("Failed to emit Celery task %s", REFRESH_COUNTRIES_TASK)
        return False
    return True
