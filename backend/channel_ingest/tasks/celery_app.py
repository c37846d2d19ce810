"""Celery application configuration."""

from celery import Celery

from channel_ingest.config import get_settings

settings = get_settings()

celery_app = Celery(
    "channel_ingest",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "channel_ingest.tasks.scrape_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.celery_timezone,
    task_track_started=True,
    task_always_eager=settings.celery_task_always_eager,
    worker_concurrency=settings.worker_concurrency,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Keep finished and failed job results around for inspection
    result_expires=None,
    result_extended=True,
)
