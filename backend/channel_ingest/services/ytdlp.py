"""yt-dlp binary resolution and invocation.

Resolution order, first match wins:
    1. explicitly configured path (anything but the bare binary name), if the file exists
    2. ``yt-dlp`` on PATH
    3. previously downloaded copy in the cache directory
    4. fresh download of the official release into the cache directory
"""

import asyncio
import logging
import os
import shutil
import stat
import subprocess
from pathlib import Path

import httpx

from channel_ingest.config import Settings, get_settings
from channel_ingest.errors import ToolInvocationError, ToolResolutionError

logger = logging.getLogger(__name__)

BINARY_NAME = "yt-dlp"


class YtDlpTool:

    def __init__(
        self,
        configured_path: str | None = BINARY_NAME,
        cache_dir: str | Path = "bin",
        download_url: str = "https://github.com/yt-dlp/yt-dlp/releases/latest/download/yt-dlp",
        binary_name: str = BINARY_NAME,
    ):
        self.configured_path = configured_path
        self.cache_dir = Path(cache_dir)
        self.download_url = download_url
        self.binary_name = binary_name
        self._binary: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "YtDlpTool":
        settings = settings or get_settings()
        return cls(
            configured_path=settings.yt_dlp_path,
            cache_dir=settings.yt_dlp_cache_dir,
            download_url=settings.yt_dlp_download_url,
        )

    @property
    def cached_path(self) -> Path:
        return self.cache_dir / self.binary_name

    def _has_configured_path(self) -> bool:
        # The bare default name means "look it up on PATH", not "./yt-dlp"
        return bool(self.configured_path) and self.configured_path != self.binary_name

    def resolve(self) -> str:
        """Locate (or fetch) the binary once and remember it."""
        if self._binary:
            return self._binary

        if self._has_configured_path() and Path(self.configured_path).is_file():
            logger.info(f"Using configured yt-dlp binary: {self.configured_path}")
            self._binary = str(self.configured_path)
        elif on_path := shutil.which(self.binary_name):
            logger.info(f"Found yt-dlp on PATH: {on_path}")
            self._binary = on_path
        elif self.cached_path.is_file():
            logger.info(f"Using cached yt-dlp binary: {self.cached_path}")
            self._binary = str(self.cached_path)
        else:
            logger.info(f"yt-dlp not found, downloading to {self.cached_path}")
            self._binary = str(self.download())

        version = self.version()
        if version:
            logger.info(f"yt-dlp ready (version {version})")
        return self._binary

    def download(self, destination: Path | None = None) -> Path:
        destination = Path(destination or self.cached_path)
        destination.parent.mkdir(parents=True, exist_ok=True)
        partial = destination.with_name(destination.name + ".part")
        try:
            with httpx.stream("GET", self.download_url, follow_redirects=True, timeout=120) as response:
                response.raise_for_status()
                with open(partial, "wb") as fh:
                    for chunk in response.iter_bytes():
                        fh.write(chunk)
        except (httpx.HTTPError, OSError) as e:
            partial.unlink(missing_ok=True)
            raise ToolResolutionError(f"Could not download yt-dlp from {self.download_url}: {e}") from e

        partial.replace(destination)
        mode = destination.stat().st_mode
        destination.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        logger.info(f"Downloaded yt-dlp to {destination}")
        return destination

    def version(self) -> str | None:
        if not self._binary:
            return None
        try:
            result = subprocess.run(
                [self._binary, "--version"],
                capture_output=True,
                text=True,
                timeout=30,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Could not read yt-dlp version: {e}")
            return None
        return result.stdout.strip() or None

    async def exec(self, args: list[str]) -> str:
        """Run yt-dlp with ``args`` and return its full stdout as text."""
        binary = self.resolve()
        logger.debug(f"Executing {binary} {' '.join(args)}")
        try:
            process = await asyncio.create_subprocess_exec(
                binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=os.environ.copy(),
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            raise ToolInvocationError(f"Failed to launch {binary}: {e}") from e

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()[-500:]
            raise ToolInvocationError(f"yt-dlp exited with code {process.returncode}: {detail}")

        return stdout.decode("utf-8", errors="replace")
