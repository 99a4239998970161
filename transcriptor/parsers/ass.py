"""Advanced SubStation Alpha (ASS/SSA) parser.

WHY: Some providers ship styled captions as ASS. Only the Dialogue lines
of the [Events] section carry speech; everything else is styling.

HOW: Lines are ignored until the [Events] section header; another section
header ends it. The section's "Format:" line tells how many fields precede
Text (9 in the standard layout: Layer, Start, End, Style, Name, MarginL,
MarginR, MarginV, Effect). For each "Dialogue:" line, that many
comma-delimited fields are skipped and the remainder is the cue text, so
commas inside the text survive. Hard line breaks (\\N, \\n) and hard
spaces (\\h) become spaces before cleaning; override blocks ({\\i1}) are
removed by the line cleaner.

RULES:
- Only Dialogue lines inside [Events] contribute text
- Comment: lines and other sections are ignored
- A Dialogue line with too few fields yields nothing
"""

from __future__ import annotations

import logging
import re
from typing import Iterator

from transcriptor.core.cleaner import clean_line
from transcriptor.core.ir import SubtitleFormat
from transcriptor.parsers.base import BaseParser

logger = logging.getLogger(__name__)

_DEFAULT_FIELDS_BEFORE_TEXT = 9
_SECTION_RE = re.compile(r"^\[[^\]]+\]$")
_HARD_BREAK_RE = re.compile(r"\\[Nnh]")


def _fields_before_text(format_line: str) -> int:
    """Count the fields preceding Text in an [Events] "Format:" line."""
    names = [name.strip().lower() for name in format_line.split(":", 1)[1].split(",")]
    if "text" in names:
        return names.index("text")
    return _DEFAULT_FIELDS_BEFORE_TEXT


class ASSParser(BaseParser):
    """Parser for ASS/SSA captions."""

    @property
    def format(self) -> SubtitleFormat:
        return SubtitleFormat.ASS

    def fragments(self, content: str) -> Iterator[str]:
        logger.debug("Parsing ASS content (%d chars)", len(content))
        in_events = False
        skip_fields = _DEFAULT_FIELDS_BEFORE_TEXT

        for raw in content.splitlines():
            line = raw.strip()
            if _SECTION_RE.match(line):
                in_events = line == "[Events]"
                continue
            if not in_events:
                continue

            if line.startswith("Format:"):
                skip_fields = _fields_before_text(line)
                continue
            if not line.startswith("Dialogue:"):
                continue

            fields = line[len("Dialogue:"):].split(",", skip_fields)
            if len(fields) <= skip_fields:
                continue
            text = _HARD_BREAK_RE.sub(" ", fields[skip_fields])
            cleaned = clean_line(text)
            if cleaned:
                yield cleaned
