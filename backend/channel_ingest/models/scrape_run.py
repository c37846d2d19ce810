"""Scrape run model, one audit row per ingestion run."""

from sqlalchemy import Column, DateTime, Enum, Index, Integer, String, Text

from channel_ingest.models.base import Base, UUIDMixin, utcnow
from channel_ingest.models.enums import ScrapeStatus, Source, Trigger


class ScrapeRun(UUIDMixin, Base):
    __tablename__ = "scrape_runs"

    source = Column(Enum(Source, name="source"), nullable=False, index=True)
    channel_handle = Column(String(500), nullable=False, index=True)

    status = Column(Enum(ScrapeStatus, name="scrape_status"), nullable=False, default=ScrapeStatus.PENDING)
    trigger = Column(Enum(Trigger, name="scrape_trigger"), nullable=False, default=Trigger.MANUAL)

    started_at = Column(DateTime(timezone=True))
    finished_at = Column(DateTime(timezone=True))
    items_processed = Column(Integer)  # set on terminal states only
    error_message = Column(Text)  # set on FAILED only
    attempts = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_run_status_created", "status", "created_at"),
        Index("idx_run_source_channel", "source", "channel_handle"),
    )

    def __repr__(self):
        return f"<ScrapeRun(id={self.id}, source={self.source}, channel='{self.channel_handle}', status={self.status})>"
