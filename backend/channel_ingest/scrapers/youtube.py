"""YouTube scraper.

Channel metadata comes from yt-dlp in full ``--dump-json`` mode, one JSON
object per line. ``--flat-playlist`` is faster but drops thumbnail, duration,
description and upload_date, so it is not used.
"""

import json
import logging
import re
from datetime import date, datetime
from typing import Any

from channel_ingest.errors import ParseError
from channel_ingest.models.enums import ContentType, Source
from channel_ingest.schemas.content import VideoItem
from channel_ingest.scrapers.base import BaseScraper
from channel_ingest.scrapers.registry import register_scraper

logger = logging.getLogger(__name__)

YOUTUBE_BASE = "https://www.youtube.com"
UPLOAD_DATE_RE = re.compile(r"^\d{8}$")


def resolve_channel_url(channel_handle: str) -> str:
    """'@name', 'name' -> channel videos URL. Full URLs pass through."""
    handle = channel_handle.strip()
    if handle.startswith("http"):
        return handle
    return f"{YOUTUBE_BASE}/@{handle.lstrip('@')}/videos"


def parse_upload_date(value: str | None) -> date | None:
    """Decode yt-dlp's YYYYMMDD upload_date as a plain calendar date."""
    if not value or not UPLOAD_DATE_RE.match(str(value)):
        return None
    try:
        return datetime.strptime(str(value), "%Y%m%d").date()
    except ValueError:
        return None


def parse_line(line: str) -> dict[str, Any]:
    try:
        entry = json.loads(line)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON line: {e}") from e
    if not isinstance(entry, dict):
        raise ParseError(f"Expected a JSON object, got {type(entry).__name__}")
    return entry


def parse_entries(stdout: str) -> list[dict[str, Any]]:
    """Parse newline-delimited JSON. Malformed lines are logged and skipped."""
    entries = []
    for line in stdout.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entries.append(parse_line(line))
        except ParseError as e:
            logger.warning(f"Skipping yt-dlp output line {line[:100]!r}: {e}")
    return entries


@register_scraper(Source.YOUTUBE)
class YouTubeScraper(BaseScraper):

    def build_args(self, channel_url: str) -> list[str]:
        return [
            "--dump-json",
            "--playlist-end", str(self.settings.yt_dlp_playlist_end),
            "--no-warnings",
            channel_url,
        ]

    async def extract(self, channel_handle, types=None):
        if types and ContentType.VIDEOS not in types:
            logger.info(f"[youtube/{channel_handle}] Only videos are available on YouTube, nothing requested")
            return

        channel_url = resolve_channel_url(channel_handle)
        logger.info(f"[youtube/{channel_handle}] Fetching {channel_url}")

        stdout = await self.tool.exec(self.build_args(channel_url))
        entries = parse_entries(stdout)
        logger.info(f"[youtube/{channel_handle}] Fetched {len(entries)} entries from yt-dlp")

        for entry in entries:
            yield entry

    def normalize(self, raw, channel_handle):
        duration = raw.get("duration")
        return VideoItem(
            source=Source.YOUTUBE,
            channel_handle=channel_handle,
            remote_id=str(raw["id"]),
            title=raw.get("title") or "Untitled",
            description=raw.get("description"),
            remote_url=raw.get("webpage_url") or f"{YOUTUBE_BASE}/watch?v={raw['id']}",
            duration=int(duration) if duration is not None else None,
            published_at=parse_upload_date(raw.get("upload_date")),
            thumbnail_source=raw.get("thumbnail"),
            raw_meta=raw,
        )
