"""Executes one dequeued scrape job against the run state machine."""

import logging

from channel_ingest.schemas.jobs import ScrapeJobMessage
from channel_ingest.services.pipeline import IngestionPipeline
from channel_ingest.services.run_tracker import RunTracker

logger = logging.getLogger(__name__)


class ScrapeJobRunner:

    def __init__(self, tracker: RunTracker, pipeline: IngestionPipeline):
        self.tracker = tracker
        self.pipeline = pipeline

    async def run(self, message: ScrapeJobMessage, attempt: int = 1) -> int:
        """RUNNING -> pipeline -> SUCCESS, or FAILED and re-raise for the queue to retry.

        A retried attempt re-runs the whole pipeline from the start.
        """
        self.tracker.mark_running(message.run_id, attempt=attempt)
        logger.info(
            f"[run {message.run_id}] Attempt {attempt}: "
            f"{message.source.value}/{message.channel_handle} types={message.types}"
        )

        try:
            items_processed = await self.pipeline.run(message.source, message.channel_handle, message.types)
        except Exception as e:
            logger.error(f"[run {message.run_id}] Failed on attempt {attempt}: {e}")
            self.tracker.mark_failed(message.run_id, str(e) or type(e).__name__)
            raise

        self.tracker.mark_success(message.run_id, items_processed)
        logger.info(f"[run {message.run_id}] Succeeded with {items_processed} items")
        return items_processed
