"""Ingestion pipeline: pick the scraper for a source, run it, count what landed."""

import asyncio
import logging
import uuid

from channel_ingest.config import Settings, get_settings
from channel_ingest.models.enums import ContentType, Source
from channel_ingest.schemas.content import ContentItem
from channel_ingest.scrapers.base import BaseScraper
from channel_ingest.scrapers.registry import get_scraper_class
from channel_ingest.services.persistence import ContentRepository

logger = logging.getLogger(__name__)


class ItemWriter:
    """Mirror an item's thumbnail, then upsert the item.

    Thumbnail problems never fail the item: the row is written with a null
    thumbnail_url instead.
    """

    def __init__(self, repository: ContentRepository, blob_store):
        self.repository = repository
        self.blob_store = blob_store

    async def mirror_thumbnail(self, item: ContentItem) -> str | None:
        if not item.thumbnail_source:
            return None
        try:
            return await asyncio.to_thread(self.blob_store.fetch_and_store, item.thumbnail_source)
        except Exception as e:
            logger.warning(f"Thumbnail mirror failed for {item.natural_key}: {e}")
            return None

    async def write(self, item: ContentItem) -> uuid.UUID:
        thumbnail_url = await self.mirror_thumbnail(item)
        return self.repository.upsert(item, thumbnail_url)


class IngestionPipeline:

    def __init__(self, repository: ContentRepository, blob_store, tool=None, browser=None, settings: Settings | None = None):
        # Importing the package registers every scraper
        import channel_ingest.scrapers  # noqa: F401

        self.writer = ItemWriter(repository, blob_store)
        self.tool = tool
        self.browser = browser
        self.settings = settings or get_settings()

    def build_scraper(self, source: Source) -> BaseScraper:
        scraper_class = get_scraper_class(source)
        return scraper_class(writer=self.writer, tool=self.tool, browser=self.browser, settings=self.settings)

    async def run(self, source: Source, channel_handle: str, types: list[ContentType] | None = None) -> int:
        """Scrape one channel and return the number of items persisted."""
        scraper = self.build_scraper(source)
        logger.info(f"[{scraper.platform}/{channel_handle}] Starting ingestion")
        return await scraper.scrape(channel_handle, types)
