"""Scraper registry, maps sources to scraper classes."""

import logging
from typing import Type

from channel_ingest.errors import UnknownSourceError
from channel_ingest.models.enums import Source
from channel_ingest.scrapers.base import BaseScraper

logger = logging.getLogger(__name__)

# Source -> scraper class mapping
_REGISTRY: dict[Source, Type[BaseScraper]] = {}


def register_scraper(source: Source):
    """Decorator to register a scraper class for a source."""
    def decorator(cls: Type[BaseScraper]):
        cls.source = source
        _REGISTRY[source] = cls
        logger.debug(f"Registered scraper for source: {source.value}")
        return cls
    return decorator


def get_scraper_class(source: Source) -> Type[BaseScraper]:
    """Look up the scraper class for a given source."""
    try:
        return _REGISTRY[Source(source)]
    except (KeyError, ValueError) as e:
        raise UnknownSourceError(f"No scraper registered for source: {source}") from e


def list_sources() -> list[Source]:
    """List all registered sources."""
    return list(_REGISTRY.keys())
