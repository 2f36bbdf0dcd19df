"""
Celery application configuration.

Schedules the monthly metering run and the daily overdue-invoice sweep.
"""

from typing import Any

import structlog
from celery import Celery
from celery.schedules import crontab
from kombu import Queue

from fireguard.platform.settings import settings

celery_app = Celery(
    "fireguard_billing",
    broker=settings.celery.broker_url,
    backend=settings.celery.result_backend,
    include=["fireguard.platform.billing.tasks"],
)

celery_app.conf.update(
    # Task routing
    task_routes={
        "billing.*": {"queue": "billing"},
    },
    task_default_queue="default",
    task_queues=(
        Queue("default", routing_key="default"),
        Queue("billing", routing_key="billing"),
    ),
    # Task execution settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.celery.timezone,
    enable_utc=True,
    result_expires=3600,
    task_track_started=True,
    task_time_limit=settings.celery.task_time_limit,
    task_soft_time_limit=settings.celery.task_soft_time_limit,
    # Worker settings
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    worker_max_tasks_per_child=1000,
    # Periodic tasks
    beat_schedule={
        "billing-monthly-usage": {
            "task": "billing.usage.run_monthly",
            "schedule": crontab(
                minute=0,
                hour=settings.celery.monthly_usage_hour,
                day_of_month=settings.celery.monthly_usage_day,
            ),
        },
        "billing-check-overdue": {
            "task": "billing.invoices.check_overdue",
            "schedule": crontab(minute=0, hour=settings.celery.overdue_check_hour),
        },
    },
)


@celery_app.on_after_configure.connect  # type: ignore[misc]
def setup_worker_logging(sender: Any, **kwargs: Any) -> None:
    """Configure structlog for worker processes."""
    from fireguard.platform.logging import setup_logging

    setup_logging()
    structlog.get_logger(__name__).info("celery.configured", queues=["default", "billing"])


__all__ = ["celery_app"]
