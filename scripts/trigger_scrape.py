"""Trigger a scrape run for one channel and enqueue it.

Usage:
    python -m scripts.trigger_scrape --source YOUTUBE --channel @somechannel
    # Only some content types:
    python -m scripts.trigger_scrape --source FACEBOOK --channel somepage --types photos events
    # Create tables first (fresh database):
    python -m scripts.trigger_scrape --source YOUTUBE --channel @somechannel --init-db
"""

import argparse
import logging

from channel_ingest.bootstrap import get_container
from channel_ingest.models.base import init_db
from channel_ingest.models.enums import ContentType, Source
from channel_ingest.schemas.scrape_run import TriggerScrapeResponse

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def trigger(source: str, channel: str, types: list[str] | None = None, create_tables: bool = False):
    if create_tables:
        init_db()
        logger.info("Database tables ensured")

    orchestrator = get_container().orchestrator
    run_id = orchestrator.trigger(
        Source(source.upper()),
        channel,
        types=[ContentType(t) for t in types] if types else None,
    )
    print(TriggerScrapeResponse(scrape_run_id=run_id).model_dump_json())
    return run_id


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create and enqueue a scrape run")
    parser.add_argument("--source", required=True, choices=[s.value for s in Source], type=str.upper)
    parser.add_argument("--channel", required=True, help="Channel handle, page name, numeric id or full URL")
    parser.add_argument("--types", nargs="+", choices=[t.value for t in ContentType], help="Content types to scrape (default: all)")
    parser.add_argument("--init-db", action="store_true", help="Create tables before triggering")
    args = parser.parse_args()
    trigger(args.source, args.channel, types=args.types, create_tables=args.init_db)
