"""Startup check for the yt-dlp binary.

WHY: Without yt-dlp neither acquisition path can work, and an outdated
yt-dlp is the most common reason captions silently stop downloading
(YouTube changes break old releases within weeks). Checking once at
startup turns both into a clear log line instead of a stream of NotFound
answers.

HOW: Runs "yt-dlp --version" through the tool adapter. When that fails,
the binary is reported missing (fatal unless YT_DLP_REQUIRED=0). Otherwise
the latest release tag is fetched from the GitHub API and compared
date-wise; an older install only produces a warning.

RULES:
- Versions are YYYY.MM.DD (zero padding optional)
- Network failures during the latest-version lookup are ignored
- YT_DLP_SKIP_VERSION_CHECK=1 skips the GitHub lookup entirely
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx

from transcriptor import __version__
from transcriptor.errors import ToolNotFoundError
from transcriptor.extraction.ytdlp import YtDlpTool

logger = logging.getLogger(__name__)

GITHUB_LATEST_URL = "https://api.github.com/repos/yt-dlp/yt-dlp/releases/latest"
_GITHUB_TIMEOUT_S = 10.0
_VERSION_TIMEOUT_S = 5.0

_VERSION_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)")

VersionTuple = Tuple[int, int, int]


@dataclass(frozen=True)
class ToolStatus:
    """Result of the startup check."""

    installed: Optional[str]
    latest: Optional[str] = None

    @property
    def missing(self) -> bool:
        return self.installed is None

    @property
    def outdated(self) -> bool:
        if self.installed is None or self.latest is None:
            return False
        installed = parse_version(self.installed)
        latest = parse_version(self.latest)
        if installed is None or latest is None:
            return False
        return compare_versions(installed, latest) < 0


def parse_version(raw: str) -> Optional[VersionTuple]:
    """Parse "2026.2.4" or "2026.02.04" into (2026, 2, 4); None if unparsable."""
    match = _VERSION_RE.match(raw.strip())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def compare_versions(a: VersionTuple, b: VersionTuple) -> int:
    """-1 if a is older than b, 0 if equal, 1 if newer."""
    if a == b:
        return 0
    return -1 if a < b else 1


async def fetch_latest_version(
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[str]:
    """Latest yt-dlp release tag from GitHub, or None on any failure."""
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": "transcriptor/{}".format(__version__),
    }
    try:
        async with httpx.AsyncClient(
            timeout=_GITHUB_TIMEOUT_S, headers=headers, transport=transport
        ) as client:
            resp = await client.get(GITHUB_LATEST_URL)
            if resp.status_code != 200:
                logger.debug("GitHub latest release lookup returned %s", resp.status_code)
                return None
            tag = resp.json().get("tag_name")
    except (httpx.HTTPError, ValueError):
        logger.debug("GitHub latest release lookup failed", exc_info=True)
        return None
    return tag if isinstance(tag, str) else None


async def check_yt_dlp(
    tool: YtDlpTool,
    required: bool = True,
    skip_version_check: bool = False,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ToolStatus:
    """Verify yt-dlp is installed and warn when it is older than upstream.

    Raises:
        ToolNotFoundError: yt-dlp could not be run and required is True.
    """
    output = await tool.version(timeout=_VERSION_TIMEOUT_S)
    match = _VERSION_RE.search(output.splitlines()[0]) if output else None
    if match is None:
        message = "yt-dlp not found or failed to run ({})".format(tool.binary)
        logger.error(message)
        if required:
            raise ToolNotFoundError(message)
        return ToolStatus(installed=None)

    installed = match.group(0)
    logger.info("yt-dlp version %s", installed)
    if skip_version_check:
        return ToolStatus(installed=installed)

    status = ToolStatus(installed=installed, latest=await fetch_latest_version(transport))
    if status.outdated:
        logger.warning(
            "yt-dlp version %s is older than latest %s; consider upgrading",
            status.installed, status.latest,
        )
    return status
