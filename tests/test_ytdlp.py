import asyncio
import contextlib
import stat

import httpx
import pytest

from channel_ingest.errors import ToolInvocationError, ToolResolutionError
from channel_ingest.services import ytdlp
from channel_ingest.services.ytdlp import YtDlpTool


def _script(path, body):
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


def test_resolve_prefers_configured_file(tmp_path):
    binary = _script(tmp_path / "yt-dlp", "echo 2024.08.06")
    tool = YtDlpTool(configured_path=str(binary), cache_dir=tmp_path / "cache")

    assert tool.resolve() == str(binary)
    assert tool.version() == "2024.08.06"


def test_resolve_falls_back_to_path(tmp_path, monkeypatch):
    monkeypatch.setattr(ytdlp.shutil, "which", lambda name: "/usr/local/bin/yt-dlp")
    monkeypatch.setattr(YtDlpTool, "version", lambda self: None)
    tool = YtDlpTool(configured_path=str(tmp_path / "missing"), cache_dir=tmp_path / "cache")

    assert tool.resolve() == "/usr/local/bin/yt-dlp"


def test_default_name_ignores_file_in_working_directory(tmp_path, monkeypatch):
    _script(tmp_path / "yt-dlp", "echo stray")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(ytdlp.shutil, "which", lambda name: "/usr/local/bin/yt-dlp")
    monkeypatch.setattr(YtDlpTool, "version", lambda self: None)
    tool = YtDlpTool(configured_path="yt-dlp", cache_dir=tmp_path / "cache")

    assert tool.resolve() == "/usr/local/bin/yt-dlp"


def test_resolve_uses_cached_download(tmp_path, monkeypatch):
    monkeypatch.setattr(ytdlp.shutil, "which", lambda name: None)
    monkeypatch.setattr(YtDlpTool, "version", lambda self: None)
    cache = tmp_path / "cache"
    cache.mkdir()
    _script(cache / "yt-dlp", "echo cached")
    tool = YtDlpTool(configured_path=None, cache_dir=cache)

    assert tool.resolve() == str(cache / "yt-dlp")


def test_resolve_downloads_when_nothing_found(tmp_path, monkeypatch):
    monkeypatch.setattr(ytdlp.shutil, "which", lambda name: None)
    monkeypatch.setattr(YtDlpTool, "version", lambda self: None)
    tool = YtDlpTool(configured_path=None, cache_dir=tmp_path / "cache")
    downloaded = []

    def fake_download(self, destination=None):
        downloaded.append(self.cached_path)
        return self.cached_path

    monkeypatch.setattr(YtDlpTool, "download", fake_download)

    assert tool.resolve() == str(tmp_path / "cache" / "yt-dlp")
    assert downloaded == [tmp_path / "cache" / "yt-dlp"]


def test_download_failure_cleans_up(tmp_path, monkeypatch):
    @contextlib.contextmanager
    def failing_stream(*args, **kwargs):
        raise httpx.ConnectError("no route to host")
        yield

    monkeypatch.setattr(ytdlp.httpx, "stream", failing_stream)
    tool = YtDlpTool(configured_path=None, cache_dir=tmp_path / "cache")

    with pytest.raises(ToolResolutionError):
        tool.download()

    assert list((tmp_path / "cache").iterdir()) == []


def test_exec_returns_stdout(tmp_path):
    binary = _script(tmp_path / "yt-dlp", "echo '{\"id\": \"aaa\"}'")
    tool = YtDlpTool(configured_path=str(binary))
    tool._binary = str(binary)

    assert asyncio.run(tool.exec(["--dump-json"])).strip() == '{"id": "aaa"}'


def test_exec_nonzero_exit(tmp_path):
    binary = _script(tmp_path / "yt-dlp", "echo 'ERROR: unavailable' >&2\nexit 1")
    tool = YtDlpTool(configured_path=str(binary))
    tool._binary = str(binary)

    with pytest.raises(ToolInvocationError, match="unavailable"):
        asyncio.run(tool.exec(["--dump-json"]))


def test_exec_launch_failure(tmp_path):
    tool = YtDlpTool(configured_path=None)
    tool._binary = str(tmp_path / "does-not-exist")

    with pytest.raises(ToolInvocationError):
        asyncio.run(tool.exec(["--version"]))
