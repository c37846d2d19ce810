"""Scraper package, import all scrapers to trigger @register_scraper decorators."""

from channel_ingest.scrapers.youtube import YouTubeScraper  # noqa: F401
from channel_ingest.scrapers.facebook import FacebookScraper  # noqa: F401
