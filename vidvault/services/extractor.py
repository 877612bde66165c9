"""
Boundary to the external media extractor.

Everything above this module deals with plain dicts and paths; only
YtDlpExtractor knows how yt-dlp is invoked.
"""
import asyncio
import json
import logging
import os
from typing import Any, Dict, Optional, Protocol

from vidvault.config.settings import DownloadConfig, YtDlpConfig
from vidvault.core.errors import DownloadFailure, ExtractionFailure, ToolUnavailable
from vidvault.services.ytdlp import SubprocessExecutor, YTDLPCommandBuilder
from vidvault.utils.filename import remove_artifacts
from vidvault.utils.locale import safe_url_for_log

logger = logging.getLogger(__name__)

STDERR_LOG_CHARS = 500
VERSION_TIMEOUT = 10.0


class MediaExtractor(Protocol):
    """Capability surface consumed by the resolver and the executor"""

    async def fetch_metadata(self, url: str) -> Dict[str, Any]:
        """Return the raw metadata record; raises ExtractionFailure."""
        ...

    async def fetch_media(self, url: str, selector: str, destination: str) -> None:
        """Materialize the media at destination; raises DownloadFailure."""
        ...

    async def version(self) -> Optional[str]:
        """Return the tool version, or None when the tool is not installed."""
        ...


def _stderr_summary(stderr: bytes) -> str:
    return stderr.decode(errors="ignore").strip()[-STDERR_LOG_CHARS:]


class YtDlpExtractor:
    """MediaExtractor backed by the yt-dlp command-line tool"""

    def __init__(self, ytdlp_config: YtDlpConfig, download_config: DownloadConfig):
        self.commands = YTDLPCommandBuilder(ytdlp_config)
        self.info_timeout = float(download_config.info_timeout_seconds)
        self.download_timeout = float(download_config.timeout_seconds)

    async def version(self) -> Optional[str]:
        try:
            result = await SubprocessExecutor.run(
                self.commands.build_version_command(),
                timeout=VERSION_TIMEOUT
            )
        except (FileNotFoundError, PermissionError):
            return None
        except asyncio.TimeoutError:
            logger.warning("yt-dlp --version timed out")
            return None

        if result.returncode != 0:
            return None
        return result.stdout.decode(errors="ignore").strip() or "unknown"

    async def fetch_metadata(self, url: str) -> Dict[str, Any]:
        safe_url = safe_url_for_log(url)
        cmd = self.commands.build_info_command(url)

        try:
            result = await SubprocessExecutor.run(cmd, timeout=self.info_timeout)
        except (FileNotFoundError, PermissionError):
            raise ToolUnavailable("yt-dlp executable not found")
        except asyncio.TimeoutError:
            logger.warning(f"Metadata fetch timed out after {self.info_timeout}s: {safe_url}")
            raise ExtractionFailure("metadata fetch timed out", timed_out=True)

        if result.returncode != 0:
            logger.warning(
                f"yt-dlp exited with {result.returncode} for {safe_url}: "
                f"{_stderr_summary(result.stderr)}"
            )
            raise ExtractionFailure(f"yt-dlp exited with {result.returncode}")

        try:
            info = json.loads(result.stdout.decode())
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise ExtractionFailure("unparsable yt-dlp output")

        if not isinstance(info, dict):
            raise ExtractionFailure("unexpected yt-dlp output")
        return info

    async def fetch_media(self, url: str, selector: str, destination: str) -> None:
        """
        Download into destination's directory using destination's stem as a
        template, then move the produced file onto destination.
        Any partial output is removed before an error propagates.
        """
        safe_url = safe_url_for_log(url)
        directory, name = os.path.split(destination)
        stem, ext = os.path.splitext(name)
        template = os.path.join(directory, f"{stem}.%(ext)s")
        cmd = self.commands.build_download_command(url, selector, template, ext.lstrip(".") or "mp4")

        os.makedirs(directory, exist_ok=True)
        logger.info(f"Downloading {safe_url} with selector {selector}")

        try:
            result = await SubprocessExecutor.run(cmd, timeout=self.download_timeout)
        except (FileNotFoundError, PermissionError):
            raise ToolUnavailable("yt-dlp executable not found")
        except asyncio.TimeoutError:
            remove_artifacts(directory, stem)
            logger.warning(f"Download timed out after {self.download_timeout}s: {safe_url}")
            raise DownloadFailure("download timed out", timed_out=True)
        except BaseException:
            remove_artifacts(directory, stem)
            raise

        if result.returncode != 0:
            remove_artifacts(directory, stem)
            logger.warning(
                f"yt-dlp exited with {result.returncode} for {safe_url}: "
                f"{_stderr_summary(result.stderr)}"
            )
            raise DownloadFailure(f"yt-dlp exited with {result.returncode}")

        produced = self._locate_output(directory, stem, destination)
        if produced is None:
            remove_artifacts(directory, stem)
            raise DownloadFailure("yt-dlp produced no output file")

        if produced != destination:
            # Container differs from the requested one (no merge happened)
            os.replace(produced, destination)
        remove_artifacts(directory, stem, keep=destination)

    @staticmethod
    def _locate_output(directory: str, stem: str, destination: str) -> Optional[str]:
        if os.path.isfile(destination):
            return destination

        # stem.<ext> only; stem.f137.mp4 style names are unmerged fragments
        candidates = []
        for name in os.listdir(directory):
            if not name.startswith(stem + "."):
                continue
            suffix = name[len(stem) + 1:]
            if "." in suffix or suffix in ("part", "ytdl", "temp"):
                continue
            path = os.path.join(directory, name)
            if os.path.isfile(path):
                candidates.append(path)

        if not candidates:
            return None
        return max(candidates, key=os.path.getsize)
