"""Input sanitizing: YouTube URLs and bare ids to resource ids, language codes.

WHY: The resource id and the language code end up as yt-dlp arguments.
Accepting only a small, known-safe alphabet keeps anything shell-like or
option-like ("--exec ...") out of the argument vector, and lets users
paste whatever YouTube link they have at hand.

RULES:
- Accepted hosts: youtube.com, www., m., music. and youtu.be (http or https)
- Accepted URL shapes: watch?v=ID, youtu.be/ID, /embed/ID, /shorts/ID, /live/ID, /v/ID
- Ids: [A-Za-z0-9_-], 1-50 chars; languages: [A-Za-z0-9-], 1-10 chars
- Invalid input raises ValueError with a message naming the value
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,50}$")
_LANG_RE = re.compile(r"^[A-Za-z0-9-]{1,10}$")

_YOUTUBE_HOSTS = ("youtube.com", "youtu.be")
_PATH_PREFIXES = ("embed", "shorts", "live", "v")


def _is_youtube_host(hostname: str) -> bool:
    hostname = hostname.lower()
    return any(hostname == host or hostname.endswith("." + host) for host in _YOUTUBE_HOSTS)


def extract_video_id(url: str) -> Optional[str]:
    """Video id from a YouTube URL, or None if url is not one."""
    if not re.match(r"^https?://", url, re.IGNORECASE):
        return None
    parsed = urlparse(url)
    hostname = parsed.hostname or ""
    if not _is_youtube_host(hostname):
        return None

    parts = [p for p in parsed.path.split("/") if p]
    if hostname.lower().endswith("youtu.be"):
        candidate = parts[0] if parts else None
    elif parts and parts[0] == "watch":
        candidate = (parse_qs(parsed.query).get("v") or [None])[0]
    elif len(parts) >= 2 and parts[0] in _PATH_PREFIXES:
        candidate = parts[1]
    else:
        candidate = None

    if candidate and _ID_RE.match(candidate):
        return candidate
    return None


def sanitize_video_id(value: str) -> Optional[str]:
    value = value.strip()
    return value if _ID_RE.match(value) else None


def sanitize_lang(value: str) -> Optional[str]:
    """Trimmed language code, or None if it has characters outside [A-Za-z0-9-]."""
    value = value.strip()
    return value if _LANG_RE.match(value) else None


def resolve_resource_id(value: str) -> str:
    """Accept a YouTube URL or a bare id and return the id.

    Raises:
        ValueError: value is neither a recognised URL nor a safe id.
    """
    value = value.strip()
    if re.match(r"^https?://", value, re.IGNORECASE):
        video_id = extract_video_id(value)
        if video_id is None:
            raise ValueError("Not a valid YouTube video URL: {!r}".format(value))
        return video_id

    video_id = sanitize_video_id(value)
    if video_id is None:
        raise ValueError("Video id contains invalid characters: {!r}".format(value))
    return video_id
