"""SubRip (SRT) parser.

WHY: SRT is yt-dlp's default output and the most common dialect; it is
also what the transcription service is asked to return.

HOW: Line scan. Blank lines, bare cue indexes, and "HH:MM:SS,mmm -->
HH:MM:SS,mmm" timing lines are skipped; everything else is cue text.
Each text line is cleaned, then scrubbed of stray standalone numbers, since
malformed files often leak cue indexes into the text ("12 Hello",
"Hello 12 world", "world 12").

RULES:
- Comma or dot accepted as the millisecond separator
- Standalone integers inside text are removed (leading, inner, trailing)
- Numbers attached to words or punctuation ("3rd", "7.5", "2020,") survive
"""

from __future__ import annotations

import logging
import re
from typing import Iterator

from transcriptor.core.cleaner import clean_line
from transcriptor.core.ir import SubtitleFormat
from transcriptor.parsers.base import BaseParser

logger = logging.getLogger(__name__)

_INDEX_RE = re.compile(r"^\d+$")
_TIMING_RE = re.compile(r"^\d{2}:\d{2}:\d{2}[,.]\d{3}\s*-->\s*\d{2}:\d{2}:\d{2}[,.]\d{3}")
_LEADING_NUMBER_RE = re.compile(r"^\d+\s+")
_INNER_NUMBER_RE = re.compile(r"\s+\d+(?=\s)")
_TRAILING_NUMBER_RE = re.compile(r"\s+\d+$")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_stray_indexes(text: str) -> str:
    """Remove standalone integers that look like leaked cue indexes."""
    text = _LEADING_NUMBER_RE.sub("", text)
    text = _INNER_NUMBER_RE.sub("", text)
    text = _TRAILING_NUMBER_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


class SRTParser(BaseParser):
    """Parser for SubRip captions."""

    @property
    def format(self) -> SubtitleFormat:
        return SubtitleFormat.SRT

    def fragments(self, content: str) -> Iterator[str]:
        logger.debug("Parsing SRT content (%d chars)", len(content))
        for raw in content.splitlines():
            line = raw.strip()
            if not line or _INDEX_RE.match(line) or _TIMING_RE.match(line):
                continue
            text = strip_stray_indexes(clean_line(line))
            if text:
                yield text
