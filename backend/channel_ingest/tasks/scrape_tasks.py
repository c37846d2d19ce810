"""Scrape orchestration tasks."""

import logging

from celery.signals import worker_process_init, worker_process_shutdown

from channel_ingest.bootstrap import get_container, run_async
from channel_ingest.config import get_settings
from channel_ingest.errors import AccessGatedError, IngestError, InvalidRunTransition, UnknownSourceError
from channel_ingest.models.enums import Source, Trigger
from channel_ingest.schemas.jobs import ScrapeJobMessage
from channel_ingest.tasks.celery_app import celery_app
from channel_ingest.tasks.queue import RetryPolicy

logger = logging.getLogger(__name__)

# Retrying these would only reproduce the same failure
NON_RETRYABLE_ERRORS = (AccessGatedError, InvalidRunTransition, UnknownSourceError)


@worker_process_init.connect
def resolve_tools(**kwargs):
    """Resolve the yt-dlp binary when the worker process starts."""
    try:
        get_container().tool.resolve()
    except IngestError as e:
        logger.error(f"yt-dlp unavailable at startup, will retry on first use: {e}")


@worker_process_shutdown.connect
def close_browser(**kwargs):
    get_container().shutdown()


@celery_app.task(bind=True, name="channel_ingest.tasks.scrape_tasks.scrape_channel")
def scrape_channel(self, run_id: str, source: str, channel_handle: str, types: list[str] | None = None):
    """Execute one scrape run. Failures are retried as a whole job with exponential backoff."""
    message = ScrapeJobMessage(run_id=run_id, source=source, channel_handle=channel_handle, types=types)
    policy = RetryPolicy.from_settings()
    attempt = self.request.retries + 1

    try:
        items_processed = run_async(get_container().job_runner.run(message, attempt=attempt))
    except NON_RETRYABLE_ERRORS as e:
        logger.error(f"[run {run_id}] Not retrying {type(e).__name__}: {e}")
        raise
    except Exception as e:
        if not policy.should_retry(attempt):
            logger.error(f"[run {run_id}] Giving up after {attempt} attempts: {e}")
            raise
        countdown = policy.delay(attempt)
        logger.warning(f"[run {run_id}] Attempt {attempt}/{policy.max_attempts} failed, retrying in {countdown:.0f}s")
        raise self.retry(exc=e, countdown=countdown, max_retries=policy.max_attempts - 1)

    return {"run_id": str(message.run_id), "items_processed": items_processed}


def parse_scheduled_channel(entry: str) -> tuple[Source, str]:
    """'YOUTUBE:@handle' -> (Source.YOUTUBE, '@handle'). Handles may contain ':'."""
    source, sep, handle = entry.partition(":")
    if not sep or not handle.strip():
        raise ValueError(f"Scheduled channel must look like SOURCE:handle, got {entry!r}")
    return Source(source.strip().upper()), handle.strip()


@celery_app.task(name="channel_ingest.tasks.scrape_tasks.dispatch_scheduled_scrapes")
def dispatch_scheduled_scrapes():
    """Trigger a SCHEDULED run for every configured channel."""
    orchestrator = get_container().orchestrator
    dispatched = []

    for entry in get_settings().scheduled_channels:
        try:
            source, handle = parse_scheduled_channel(entry)
            run_id = orchestrator.trigger(source, handle, trigger=Trigger.SCHEDULED)
            dispatched.append(str(run_id))
        except Exception as e:
            logger.error(f"Failed to dispatch scheduled scrape for {entry!r}: {e}")

    logger.info(f"Dispatched {len(dispatched)} scheduled scrapes")
    return {"dispatched": len(dispatched), "run_ids": dispatched}
