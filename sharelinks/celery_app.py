from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging

from sharelinks.config import settings
from sharelinks.logging import configure_logging


def cron_schedule(expression: str) -> crontab:
    """Build a crontab from a five-field cron expression."""
    fields = expression.split()
    if len(fields) != 5:
        raise ValueError(f"Invalid cron expression: {expression!r}")
    minute, hour, day_of_month, month_of_year, day_of_week = fields
    return crontab(
        minute=minute,
        hour=hour,
        day_of_month=day_of_month,
        month_of_year=month_of_year,
        day_of_week=day_of_week,
    )


celery_app = Celery(
    "sharelinks",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["sharelinks.tasks.links", "sharelinks.tasks.notifications"],
)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "synchronize-links": {
            "task": "sharelinks.tasks.links.synchronize_links",
            "schedule": cron_schedule(settings.sync_cron_schedule),
        },
        "notify-expiring-links": {
            "task": "sharelinks.tasks.links.notify_expiring_links",
            "schedule": cron_schedule(settings.expiration_cron_schedule),
        },
    },
)


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    configure_logging(settings)
