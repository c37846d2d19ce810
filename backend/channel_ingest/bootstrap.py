"""Composition root: builds every component once per process and wires them together."""

import asyncio
import atexit
import logging
from functools import cached_property, lru_cache

from channel_ingest.config import Settings, get_settings
from channel_ingest.models.base import get_session_factory
from channel_ingest.scrapers.browser import SharedBrowser
from channel_ingest.services.blob_store import BlobStore
from channel_ingest.services.job_runner import ScrapeJobRunner
from channel_ingest.services.orchestrator import ScrapeOrchestrator
from channel_ingest.services.persistence import ContentRepository
from channel_ingest.services.pipeline import IngestionPipeline
from channel_ingest.services.run_tracker import RunTracker
from channel_ingest.services.ytdlp import YtDlpTool
from channel_ingest.tasks.queue import ScrapeQueue

logger = logging.getLogger(__name__)

# One event loop per worker process; the shared browser is bound to it.
_loop: asyncio.AbstractEventLoop | None = None


def run_async(coro):
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(coro)


class Container:

    def __init__(self, settings: Settings | None = None, session_factory=None):
        self.settings = settings or get_settings()
        self._session_factory = session_factory

    @cached_property
    def session_factory(self):
        return self._session_factory or get_session_factory()

    @cached_property
    def blob_store(self) -> BlobStore:
        return BlobStore.from_settings(self.settings)

    @cached_property
    def tool(self) -> YtDlpTool:
        return YtDlpTool.from_settings(self.settings)

    @cached_property
    def browser(self) -> SharedBrowser:
        return SharedBrowser(headless=self.settings.browser_headless, timeout=self.settings.navigation_timeout_ms)

    @cached_property
    def repository(self) -> ContentRepository:
        return ContentRepository(self.session_factory)

    @cached_property
    def tracker(self) -> RunTracker:
        return RunTracker(self.session_factory)

    @cached_property
    def pipeline(self) -> IngestionPipeline:
        return IngestionPipeline(
            repository=self.repository,
            blob_store=self.blob_store,
            tool=self.tool,
            browser=self.browser,
            settings=self.settings,
        )

    @cached_property
    def job_runner(self) -> ScrapeJobRunner:
        return ScrapeJobRunner(self.tracker, self.pipeline)

    @cached_property
    def queue(self) -> ScrapeQueue:
        return ScrapeQueue()

    @cached_property
    def orchestrator(self) -> ScrapeOrchestrator:
        return ScrapeOrchestrator(self.tracker, self.queue)

    def shutdown(self) -> None:
        # Only touch the browser if this process ever created it
        browser = self.__dict__.get("browser")
        if browser is not None and browser.is_running:
            run_async(browser.close())


@lru_cache
def get_container() -> Container:
    container = Container()
    atexit.register(container.shutdown)
    return container
