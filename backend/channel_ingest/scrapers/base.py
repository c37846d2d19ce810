"""Base scraper abstract class."""

import logging
from abc import ABC, abstractmethod
from contextlib import aclosing
from typing import Any, AsyncIterator

from channel_ingest.config import Settings, get_settings
from channel_ingest.errors import PersistenceConflictError
from channel_ingest.models.enums import ContentType, Source
from channel_ingest.schemas.content import ContentItem

logger = logging.getLogger(__name__)


class BaseScraper(ABC):
    """Abstract base class for all source scrapers.

    Subclasses must implement:
        extract(channel_handle, types) -> async iterator of raw dicts
        normalize(raw, channel_handle) -> ContentItem

    ``extract`` raises only for run-level problems (tool failure, login wall).
    Everything that happens to a single item after extraction is isolated:
    a failing item is logged, skipped and left out of the processed count.
    """

    source: Source

    def __init__(self, writer, tool=None, browser=None, settings: Settings | None = None):
        self.writer = writer
        self.tool = tool
        self.browser = browser
        self.settings = settings or get_settings()

    @property
    def platform(self) -> str:
        return self.source.value.lower()

    @abstractmethod
    def extract(self, channel_handle: str, types: list[ContentType] | None = None) -> AsyncIterator[dict[str, Any]]:
        """Yield raw item dicts for the channel."""
        ...

    @abstractmethod
    def normalize(self, raw: dict[str, Any], channel_handle: str) -> ContentItem:
        ...

    async def scrape(self, channel_handle: str, types: list[ContentType] | None = None) -> int:
        """Run the full cycle: extract, normalize, mirror thumbnail, upsert.

        Returns the number of items that completed without error.
        """
        attempted = 0
        processed = 0

        async with aclosing(self.extract(channel_handle, types)) as raw_items:
            async for raw in raw_items:
                attempted += 1
                try:
                    item = self.normalize(raw, channel_handle)
                    await self.writer.write(item)
                    processed += 1
                except PersistenceConflictError:
                    raise
                except Exception as e:
                    logger.warning(f"[{self.platform}/{channel_handle}] Failed to process item {self.describe(raw)}: {e}")

        logger.info(f"[{self.platform}/{channel_handle}] Processed {processed}/{attempted} items")
        return processed

    @staticmethod
    def describe(raw: dict[str, Any]) -> str:
        return str(raw.get("id") or raw.get("url") or "?")
