import asyncio
import hashlib

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from channel_ingest.config import Settings
from channel_ingest.models.base import init_db
from channel_ingest.services.persistence import ContentRepository
from channel_ingest.services.run_tracker import RunTracker


class FakeBlobStore:
    """Stands in for BlobStore: same URL for the same source, no network."""

    def __init__(self, failing: set[str] | None = None):
        self.failing = failing or set()
        self.fetched = []

    def fetch_and_store(self, source_url):
        self.fetched.append(source_url)
        if not source_url or source_url in self.failing:
            return None
        digest = hashlib.sha256(source_url.encode()).hexdigest()
        return f"http://blobs.test/channel-media/thumbnails/{digest}.jpg"


class FakeTool:
    def __init__(self, stdout: str = "", error: Exception | None = None):
        self.stdout = stdout
        self.error = error
        self.calls = []

    async def exec(self, args):
        self.calls.append(args)
        if self.error:
            raise self.error
        return self.stdout


class RecordingWriter:
    def __init__(self, fail_on: set[str] | None = None):
        self.fail_on = fail_on or set()
        self.items = []

    async def write(self, item):
        key = getattr(item, "remote_id", item.channel_handle)
        if key in self.fail_on:
            raise RuntimeError(f"write failed for {key}")
        self.items.append(item)


class FakePage:
    """Serves canned HTML per URL. URLs in ``failing`` raise on goto."""

    def __init__(self, pages: dict[str, str], failing: set[str] | None = None):
        self.pages = pages
        self.failing = failing or set()
        self.url = "about:blank"
        self.visited = []
        self.scrolls = 0

    async def goto(self, url, timeout=None, wait_until=None):
        self.visited.append(url)
        if url in self.failing:
            raise TimeoutError(f"Timeout navigating to {url}")
        self.url = url

    async def content(self):
        return self.pages.get(self.url, "<html><body></body></html>")

    async def evaluate(self, script):
        self.scrolls += 1

    async def wait_for_timeout(self, ms):
        return None


class FakeContext:
    def __init__(self, page: FakePage):
        self.page = page
        self.closed = False
        self.default_timeout = None

    def set_default_timeout(self, timeout):
        self.default_timeout = timeout

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, page: FakePage):
        self.page = page
        self.contexts = []
        self.closed = False

    async def new_context(self, **options):
        context = FakeContext(self.page)
        self.contexts.append(context)
        return context

    async def close(self):
        self.closed = True


class FakePlaywright:
    def __init__(self):
        self.stopped = False

    async def stop(self):
        self.stopped = True


def fake_launcher(chromium: FakeChromium, launches: list | None = None):
    async def launch(headless):
        await asyncio.sleep(0)
        if launches is not None:
            launches.append(headless)
        return FakePlaywright(), chromium

    return launch


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        navigation_retries=0,
        navigation_retry_delay_ms=0,
        scheduled_channels=[],
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def repository(session_factory):
    return ContentRepository(session_factory)


@pytest.fixture
def tracker(session_factory):
    return RunTracker(session_factory)


@pytest.fixture
def blob_store():
    return FakeBlobStore()
