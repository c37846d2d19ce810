"""Normalized content items produced by source scrapers.

Every item carries its natural key, the remote thumbnail URL to mirror
(``thumbnail_source``) and the scraper's unprocessed extraction (``raw_meta``).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from channel_ingest.models.enums import Source


class ContentItem(BaseModel):
    source: Source
    channel_handle: str
    thumbnail_source: str | None = None
    raw_meta: dict[str, Any] = Field(default_factory=dict)

    @property
    def natural_key(self) -> tuple:
        return (getattr(self, "remote_id", self.channel_handle), self.source)


class VideoItem(ContentItem):
    remote_id: str
    title: str = "Untitled"
    description: str | None = None
    remote_url: str
    duration: int | None = None
    published_at: date | None = None


class PhotoItem(ContentItem):
    remote_id: str
    remote_url: str
    caption: str | None = None
    album_id: str | None = None
    published_at: date | None = None


class EventItem(ContentItem):
    remote_id: str
    title: str = "Untitled Event"
    description: str | None = None
    location: str | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    remote_url: str


class ContactItem(ContentItem):
    page_name: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    address: str | None = None
