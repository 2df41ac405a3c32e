from __future__ import annotations

from celery import Celery

from src.config import settings
from src.tasks.countries import REFRESH_COUNTRIES_TASK


def make_celery() -> Celery:
    """Worker app for background applicant jobs (currently the country catalog refresh)."""

    celery = Celery(
        "applicants",
        broker=settings.celery_broker_url or settings.redis_url,
        backend=settings.celery_result_backend or settings.redis_url,
        include=["src.worker.tasks"],
    )

    celery.conf.update(
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
        timezone="UTC",
        enable_utc=True,
        task_time_limit=settings.celery_task_time_limit_seconds,
        # The refresh is idempotent, so a lost worker may safely rerun it.
        task_acks_late=True,
    )

    if settings.country_refresh_interval_seconds > 0:
        celery.conf.beat_schedule = {
            "refresh-countries": {
                "task": REFRESH_COUNTRIES_TASK,
                "schedule": float(settings.country_refresh_interval_seconds),
            }
        }

    return celery


celery_app = make_celery()
