"""Pydantic schemas package."""

from channel_ingest.schemas.content import (
    ContactItem,
    ContentItem,
    EventItem,
    PhotoItem,
    VideoItem,
)
from channel_ingest.schemas.jobs import ScrapeJobMessage
from channel_ingest.schemas.scrape_run import (
    ScrapeRunBase,
    ScrapeRunRead,
    TriggerScrapeResponse,
)

__all__ = [
    # Content
    "ContentItem",
    "VideoItem",
    "PhotoItem",
    "EventItem",
    "ContactItem",
    # Jobs
    "ScrapeJobMessage",
    # ScrapeRun
    "ScrapeRunBase",
    "ScrapeRunRead",
    "TriggerScrapeResponse",
]
