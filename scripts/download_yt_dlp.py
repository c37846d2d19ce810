"""Pre-download the yt-dlp binary into the cache directory.

Used at image build time so workers never download on first use.

Usage:
    python -m scripts.download_yt_dlp
    python -m scripts.download_yt_dlp --dest /opt/bin/yt-dlp --force
"""

import argparse
import logging
from pathlib import Path

from channel_ingest.errors import ToolResolutionError
from channel_ingest.services.ytdlp import YtDlpTool

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def download(dest: str | None = None, force: bool = False) -> Path | None:
    tool = YtDlpTool.from_settings()
    destination = Path(dest) if dest else tool.cached_path

    if destination.is_file() and not force:
        logger.info(f"yt-dlp already present at {destination}, use --force to replace it")
        return destination

    try:
        path = tool.download(destination)
    except ToolResolutionError as e:
        logger.error(str(e))
        raise SystemExit(1)

    tool.configured_path = str(path)
    tool.resolve()
    return path


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Download the yt-dlp release binary")
    parser.add_argument("--dest", help="Target file (default: <yt_dlp_cache_dir>/yt-dlp)")
    parser.add_argument("--force", action="store_true", help="Re-download even if the file exists")
    args = parser.parse_args()
    download(dest=args.dest, force=args.force)
