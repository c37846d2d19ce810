"""ORM models. Import every model so Base.metadata knows all tables."""

from channel_ingest.models.scrape_run import ScrapeRun  # noqa: F401
from channel_ingest.models.video import Video  # noqa: F401
from channel_ingest.models.photo import Photo  # noqa: F401
from channel_ingest.models.event import Event  # noqa: F401
from channel_ingest.models.contact import Contact  # noqa: F401
