"""LRC (lyrics) parser.

WHY: yt-dlp can convert captions to LRC on request; the format is a flat
list of "[mm:ss.xx] text" lines with no cue structure.

HOW: Only lines that start with a time tag are read; the text after the
tag is cleaned and yielded. Metadata tags ([ar:...], [ti:...]) and
untagged lines are ignored. Extra stacked time tags ("[00:01.00][00:05.00]
text") are stripped by the line cleaner as bracketed annotations.

RULES:
- Time tag: [m:ss], [mm:ss], [mm:ss.xx] or [mm:ss.xxx]
- Lines with a tag but no text yield nothing
"""

from __future__ import annotations

import logging
import re
from typing import Iterator

from transcriptor.core.cleaner import clean_line
from transcriptor.core.ir import SubtitleFormat
from transcriptor.parsers.base import BaseParser

logger = logging.getLogger(__name__)

_TIMED_LINE_RE = re.compile(r"^\[\d{1,2}:\d{2}(?:\.\d{2,3})?\]\s*(.+)$")


class LRCParser(BaseParser):
    """Parser for LRC lyric-style captions."""

    @property
    def format(self) -> SubtitleFormat:
        return SubtitleFormat.LRC

    def fragments(self, content: str) -> Iterator[str]:
        logger.debug("Parsing LRC content (%d chars)", len(content))
        for raw in content.splitlines():
            match = _TIMED_LINE_RE.match(raw.strip())
            if not match:
                continue
            text = clean_line(match.group(1))
            if text:
                yield text
