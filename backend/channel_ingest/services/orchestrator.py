"""Trigger path: create the run record, then hand the job to the queue."""

import logging
import uuid

from channel_ingest.models.enums import ContentType, Source, Trigger
from channel_ingest.schemas.jobs import ScrapeJobMessage
from channel_ingest.services.run_tracker import RunTracker

logger = logging.getLogger(__name__)


class ScrapeOrchestrator:

    def __init__(self, tracker: RunTracker, queue):
        self.tracker = tracker
        self.queue = queue

    def trigger(
        self,
        source: Source,
        channel_handle: str,
        types: list[ContentType] | None = None,
        trigger: Trigger = Trigger.MANUAL,
    ) -> uuid.UUID:
        """Create a PENDING run and enqueue it. Returns the run id.

        If enqueueing fails the error propagates and the run stays PENDING;
        it never reaches RUNNING without a worker picking it up.
        """
        source = Source(source)
        types = [ContentType(t) for t in types] if types else None

        run_id = self.tracker.create(source, channel_handle, trigger)
        message = ScrapeJobMessage(run_id=run_id, source=source, channel_handle=channel_handle, types=types)

        try:
            job_id = self.queue.enqueue(message)
        except Exception as e:
            logger.error(f"[run {run_id}] Enqueue failed: {e}")
            raise

        logger.info(f"[run {run_id}] Enqueued as job {job_id}")
        return run_id
