"""WebVTT parser.

WHY: YouTube serves auto-generated captions natively as WebVTT, with a
metadata header ("Kind: captions", "Language: en"), karaoke timing tags
inside cue text, and optional NOTE / STYLE blocks.

HOW: A small line state machine:
  HEADER: from "WEBVTT" up to the first blank line; all skipped
  BODY:   blank lines, timing lines and cue identifiers skipped,
          everything else is cue text
  BLOCK:  inside a NOTE or STYLE block; skipped up to the next blank line

RULES:
- Timing lines accept an optional hours field and a dot (or comma) separator
- A line directly followed by a timing line is a cue identifier, not text
- A NOTE, STYLE or REGION block opens only after a blank line and only on
  the bare keyword or the keyword followed by whitespace; cue text such as
  "NOTEBOOK" or "REGIONAL news" stays text
- Standalone "::cue" style lines are skipped even outside a STYLE block
- Inline tags (<c>, <i>, <00:00:01.000>) are removed by the line cleaner
"""

from __future__ import annotations

import logging
import re
from typing import Iterator, List

from transcriptor.core.cleaner import clean_line
from transcriptor.core.ir import SubtitleFormat
from transcriptor.parsers.base import BaseParser

logger = logging.getLogger(__name__)

_TIMING_RE = re.compile(
    r"^(?:\d{2,}:)?\d{2}:\d{2}[.,]\d{3}\s*-->\s*(?:\d{2,}:)?\d{2}:\d{2}[.,]\d{3}"
)
_BLOCK_RE = re.compile(r"^(?:NOTE|STYLE|REGION)(?:[ \t]|$)")

_HEADER = "header"
_BODY = "body"
_BLOCK = "block"


def _is_timing(line: str) -> bool:
    return bool(_TIMING_RE.match(line))


class VTTParser(BaseParser):
    """Parser for WebVTT captions."""

    @property
    def format(self) -> SubtitleFormat:
        return SubtitleFormat.VTT

    def fragments(self, content: str) -> Iterator[str]:
        logger.debug("Parsing VTT content (%d chars)", len(content))
        lines: List[str] = [raw.strip() for raw in content.lstrip("\ufeff").splitlines()]
        state = _BODY
        if lines and lines[0].startswith("WEBVTT"):
            state = _HEADER

        for index, line in enumerate(lines):
            if state in (_HEADER, _BLOCK):
                # a timing line always opens a cue, even without a blank separator
                if not line or _is_timing(line):
                    state = _BODY
                continue

            if not line or _is_timing(line):
                continue
            if _BLOCK_RE.match(line) and (index == 0 or not lines[index - 1]):
                state = _BLOCK
                continue
            if line.startswith("::cue"):
                continue
            if index + 1 < len(lines) and _is_timing(lines[index + 1]):
                # cue identifier
                continue

            text = clean_line(line)
            if text:
                yield text
