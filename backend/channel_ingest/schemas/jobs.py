"""Job message passed through the scrape queue."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel

from channel_ingest.models.enums import ContentType, Source


class ScrapeJobMessage(BaseModel):
    run_id: UUID
    source: Source
    channel_handle: str
    types: list[ContentType] | None = None

    def to_payload(self) -> dict:
        """JSON-safe kwargs for the Celery task."""
        return self.model_dump(mode="json")
