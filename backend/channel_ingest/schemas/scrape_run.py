"""Pydantic schemas for ScrapeRun model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from channel_ingest.models.enums import ScrapeStatus, Source, Trigger


class ScrapeRunBase(BaseModel):
    """Base fields for scrape run."""

    source: Source
    channel_handle: str
    status: ScrapeStatus = ScrapeStatus.PENDING
    trigger: Trigger = Trigger.MANUAL


class ScrapeRunRead(ScrapeRunBase):
    """Full scrape run output."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    started_at: datetime | None = None
    finished_at: datetime | None = None
    items_processed: int | None = None
    error_message: str | None = None
    attempts: int = 0
    created_at: datetime


class TriggerScrapeResponse(BaseModel):
    """Returned to whoever triggered a run."""

    scrape_run_id: UUID
    status: ScrapeStatus = ScrapeStatus.PENDING
    message: str = "Scrape job enqueued"
