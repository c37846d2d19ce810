"""Scrape run tracker: owns the ScrapeRun state machine.

PENDING -> RUNNING -> SUCCESS | FAILED. Terminal states always carry
``finished_at``; ``items_processed`` is written on terminal states only and
``error_message`` on FAILED only. The single exception to the graph is a
retried delivery of the same job, which re-opens a FAILED run as RUNNING.
"""

import logging
import uuid

from sqlalchemy.orm import Session, sessionmaker

from channel_ingest.errors import InvalidRunTransition
from channel_ingest.models.base import utcnow
from channel_ingest.models.enums import ScrapeStatus, Source, Trigger, can_transition
from channel_ingest.models.scrape_run import ScrapeRun
from channel_ingest.schemas.scrape_run import ScrapeRunRead

logger = logging.getLogger(__name__)

ERROR_MESSAGE_LIMIT = 2000


class RunTracker:

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def create(self, source: Source, channel_handle: str, trigger: Trigger = Trigger.MANUAL) -> uuid.UUID:
        """Persist a new run in PENDING and return its id."""
        db = self._session_factory()
        try:
            run = ScrapeRun(
                id=uuid.uuid4(),
                source=source,
                channel_handle=channel_handle,
                status=ScrapeStatus.PENDING,
                trigger=trigger,
                attempts=0,
                created_at=utcnow(),
            )
            db.add(run)
            db.commit()
            logger.info(f"[run {run.id}] Created {source.value}/{channel_handle} ({trigger.value})")
            return run.id
        finally:
            db.close()

    def get(self, run_id: uuid.UUID) -> ScrapeRunRead | None:
        db = self._session_factory()
        try:
            run = db.get(ScrapeRun, _as_uuid(run_id))
            return ScrapeRunRead.model_validate(run) if run else None
        finally:
            db.close()

    def mark_running(self, run_id: uuid.UUID, attempt: int = 1) -> ScrapeRunRead:
        """Move a dequeued run to RUNNING and stamp ``started_at``.

        ``attempt`` > 1 means the queue re-delivered the job after a failure;
        only then may a FAILED run be re-opened.
        """
        def apply(db: Session, run: ScrapeRun) -> None:
            if attempt > 1 and run.status == ScrapeStatus.FAILED:
                logger.info(f"[run {run.id}] Re-opening failed run for attempt {attempt}")
                run.finished_at = None
                run.error_message = None
                run.items_processed = None
            else:
                self._check(run, ScrapeStatus.RUNNING)
            run.status = ScrapeStatus.RUNNING
            run.started_at = utcnow()
            run.attempts = attempt

        return self._update(run_id, apply)

    def mark_success(self, run_id: uuid.UUID, items_processed: int) -> ScrapeRunRead:
        def apply(db: Session, run: ScrapeRun) -> None:
            self._check(run, ScrapeStatus.SUCCESS)
            run.status = ScrapeStatus.SUCCESS
            run.finished_at = utcnow()
            run.items_processed = items_processed

        return self._update(run_id, apply)

    def mark_failed(self, run_id: uuid.UUID, error_message: str) -> ScrapeRunRead:
        def apply(db: Session, run: ScrapeRun) -> None:
            self._check(run, ScrapeStatus.FAILED)
            run.status = ScrapeStatus.FAILED
            run.finished_at = utcnow()
            run.error_message = (error_message or "Unknown error")[:ERROR_MESSAGE_LIMIT]

        return self._update(run_id, apply)

    @staticmethod
    def _check(run: ScrapeRun, target: ScrapeStatus) -> None:
        if not can_transition(ScrapeStatus(run.status), target):
            raise InvalidRunTransition(run.id, run.status, target)

    def _update(self, run_id, apply) -> ScrapeRunRead:
        db = self._session_factory()
        try:
            run = (
                db.query(ScrapeRun)
                .filter(ScrapeRun.id == _as_uuid(run_id))
                .with_for_update()
                .first()
            )
            if not run:
                raise LookupError(f"Scrape run {run_id} not found")
            previous = run.status
            apply(db, run)
            db.commit()
            if run.status.is_terminal:
                logger.info(
                    f"[run {run.id}] Finished {run.status.value} after attempt {run.attempts} "
                    f"({run.items_processed} items)"
                )
            else:
                logger.debug(f"[run {run.id}] {previous.value} -> {run.status.value}")
            return ScrapeRunRead.model_validate(run)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


def _as_uuid(value) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
