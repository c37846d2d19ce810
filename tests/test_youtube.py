import asyncio
import json
from datetime import date

import pytest

from conftest import FakeBlobStore, FakeTool, RecordingWriter
from channel_ingest.errors import ParseError, ToolInvocationError
from channel_ingest.models.enums import ContentType, ScrapeStatus, Source
from channel_ingest.models.video import Video
from channel_ingest.schemas.jobs import ScrapeJobMessage
from channel_ingest.scrapers.youtube import (
    YouTubeScraper,
    parse_entries,
    parse_line,
    parse_upload_date,
    resolve_channel_url,
)
from channel_ingest.services.job_runner import ScrapeJobRunner
from channel_ingest.services.pipeline import IngestionPipeline


def _entry(video_id, **fields):
    entry = {
        "id": video_id,
        "title": f"Video {video_id}",
        "description": "desc",
        "webpage_url": f"https://www.youtube.com/watch?v={video_id}",
        "thumbnail": f"https://i.ytimg.com/vi/{video_id}/hq.jpg",
        "duration": 125.0,
        "upload_date": "20240315",
    }
    entry.update(fields)
    return json.dumps(entry)


STDOUT = "\n".join([
    _entry("aaa"),
    _entry("bbb", thumbnail=None),
    "{not json",
    _entry("ccc", upload_date=None),
])


def test_resolve_channel_url():
    assert resolve_channel_url("@somechannel") == "https://www.youtube.com/@somechannel/videos"
    assert resolve_channel_url("somechannel") == "https://www.youtube.com/@somechannel/videos"
    assert resolve_channel_url("https://www.youtube.com/c/Other") == "https://www.youtube.com/c/Other"


def test_parse_upload_date():
    assert parse_upload_date("20240315") == date(2024, 3, 15)
    assert parse_upload_date("2024-03-15") is None
    assert parse_upload_date("20241350") is None
    assert parse_upload_date(None) is None


def test_parse_line_rejects_non_objects():
    with pytest.raises(ParseError):
        parse_line("[1, 2]")
    with pytest.raises(ParseError):
        parse_line("{broken")


def test_parse_entries_skips_malformed_lines():
    entries = parse_entries(STDOUT + "\n\n")

    assert [e["id"] for e in entries] == ["aaa", "bbb", "ccc"]


def test_extract_invokes_tool_with_full_metadata_args(settings):
    tool = FakeTool(stdout=_entry("aaa"))
    scraper = YouTubeScraper(writer=RecordingWriter(), tool=tool, settings=settings)

    count = asyncio.run(scraper.scrape("@somechannel"))

    assert count == 1
    args = tool.calls[0]
    assert "--dump-json" in args
    assert "--flat-playlist" not in args
    assert args[args.index("--playlist-end") + 1] == "50"
    assert args[-1] == "https://www.youtube.com/@somechannel/videos"


def test_non_video_types_skip_the_tool(settings):
    tool = FakeTool(stdout=_entry("aaa"))
    scraper = YouTubeScraper(writer=RecordingWriter(), tool=tool, settings=settings)

    count = asyncio.run(scraper.scrape("@somechannel", [ContentType.PHOTOS]))

    assert count == 0
    assert tool.calls == []


def test_normalize_maps_fields(settings):
    scraper = YouTubeScraper(writer=RecordingWriter(), tool=FakeTool(), settings=settings)

    item = scraper.normalize(json.loads(_entry("aaa")), "@somechannel")

    assert item.remote_id == "aaa"
    assert item.source == Source.YOUTUBE
    assert item.duration == 125
    assert item.published_at == date(2024, 3, 15)
    assert item.thumbnail_source == "https://i.ytimg.com/vi/aaa/hq.jpg"
    assert item.raw_meta["title"] == "Video aaa"


def _runner(tracker, repository, settings, tool, blob_store=None):
    pipeline = IngestionPipeline(repository, blob_store or FakeBlobStore(), tool=tool, settings=settings)
    return ScrapeJobRunner(tracker, pipeline)


def test_run_ingests_valid_lines(tracker, repository, session_factory, settings):
    run_id = tracker.create(Source.YOUTUBE, "@somechannel")
    runner = _runner(tracker, repository, settings, FakeTool(stdout=STDOUT))
    message = ScrapeJobMessage(run_id=run_id, source=Source.YOUTUBE, channel_handle="@somechannel")

    assert asyncio.run(runner.run(message)) == 3

    run = tracker.get(run_id)
    assert run.status == ScrapeStatus.SUCCESS
    assert run.items_processed == 3

    with session_factory() as db:
        videos = {v.remote_id: v for v in db.query(Video).all()}
    assert set(videos) == {"aaa", "bbb", "ccc"}
    assert videos["aaa"].thumbnail_url.startswith("http://blobs.test/")
    assert videos["bbb"].thumbnail_url is None
    assert videos["ccc"].published_at is None


def test_rerun_does_not_duplicate(tracker, repository, session_factory, settings):
    runner = _runner(tracker, repository, settings, FakeTool(stdout=STDOUT))

    for _ in range(2):
        run_id = tracker.create(Source.YOUTUBE, "@somechannel")
        message = ScrapeJobMessage(run_id=run_id, source=Source.YOUTUBE, channel_handle="@somechannel")
        asyncio.run(runner.run(message))

    with session_factory() as db:
        assert db.query(Video).count() == 3


def test_thumbnail_failure_still_writes_row(tracker, repository, session_factory, settings):
    blob_store = FakeBlobStore(failing={"https://i.ytimg.com/vi/aaa/hq.jpg"})
    run_id = tracker.create(Source.YOUTUBE, "@somechannel")
    runner = _runner(tracker, repository, settings, FakeTool(stdout=_entry("aaa")), blob_store)

    asyncio.run(runner.run(ScrapeJobMessage(run_id=run_id, source=Source.YOUTUBE, channel_handle="@somechannel")))

    with session_factory() as db:
        assert db.query(Video).one().thumbnail_url is None
    assert tracker.get(run_id).items_processed == 1


def test_tool_failure_fails_the_run(tracker, repository, session_factory, settings):
    tool = FakeTool(error=ToolInvocationError("yt-dlp exited with code 1: ERROR: channel not found"))
    run_id = tracker.create(Source.YOUTUBE, "@missing")
    runner = _runner(tracker, repository, settings, tool)

    with pytest.raises(ToolInvocationError):
        asyncio.run(runner.run(ScrapeJobMessage(run_id=run_id, source=Source.YOUTUBE, channel_handle="@missing")))

    run = tracker.get(run_id)
    assert run.status == ScrapeStatus.FAILED
    assert "channel not found" in run.error_message
    assert run.finished_at is not None
    with session_factory() as db:
        assert db.query(Video).count() == 0
