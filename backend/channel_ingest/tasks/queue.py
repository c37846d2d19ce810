"""Scrape queue: retry policy plus a thin enqueue facade over the Celery task.

The broker is the pluggable backend: ``memory://`` or eager mode in tests,
Redis in production.
"""

import logging
from dataclasses import dataclass

from channel_ingest.config import Settings, get_settings
from channel_ingest.schemas.jobs import ScrapeJobMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Whole-job retries with exponential backoff: delay = base * 2^(attempt-1)."""

    max_attempts: int = 3
    base_delay: float = 5.0

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RetryPolicy":
        settings = settings or get_settings()
        return cls(max_attempts=settings.scrape_max_attempts, base_delay=settings.scrape_backoff_base_seconds)

    def delay(self, attempt: int) -> float:
        """Seconds to wait after failed ``attempt`` (1-based) before the next one."""
        return self.base_delay * 2 ** (attempt - 1)

    def should_retry(self, attempt: int) -> bool:
        return attempt < self.max_attempts


class ScrapeQueue:

    def __init__(self, task=None):
        self._task = task

    @property
    def task(self):
        if self._task is None:
            from channel_ingest.tasks.scrape_tasks import scrape_channel
            self._task = scrape_channel
        return self._task

    def enqueue(self, message: ScrapeJobMessage) -> str:
        """Send the job to the broker and return its task id."""
        result = self.task.apply_async(kwargs=message.to_payload())
        logger.debug(f"Enqueued scrape job {result.id} for run {message.run_id}")
        return result.id
