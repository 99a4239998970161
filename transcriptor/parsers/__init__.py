"""Caption dialect parser registry, one parser per SubtitleFormat.

WHY: The pipeline, CLI, and tests need a single lookup from a detected
dialect to the parser that understands it. A central dict makes adding a
dialect a one-line change here plus one new module.

HOW: PARSERS maps SubtitleFormat values to parser *classes* (not
instances). parse() looks up and runs the right one; parse_subtitles()
detects the dialect first.

RULES:
- Every SubtitleFormat member has exactly one registered parser
- parse() raises UnsupportedFormatError for anything not registered
- Parsers are stateless; a fresh instance per call is cheap
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Type

from transcriptor.core.detector import detect_format
from transcriptor.core.ir import SubtitleFormat
from transcriptor.errors import UnsupportedFormatError
from transcriptor.parsers.ass import ASSParser
from transcriptor.parsers.lrc import LRCParser
from transcriptor.parsers.srt import SRTParser
from transcriptor.parsers.vtt import VTTParser

if TYPE_CHECKING:
    from transcriptor.parsers.base import BaseParser

PARSERS: Dict[SubtitleFormat, Type[BaseParser]] = {
    SubtitleFormat.SRT: SRTParser,
    SubtitleFormat.VTT: VTTParser,
    SubtitleFormat.ASS: ASSParser,
    SubtitleFormat.LRC: LRCParser,
}


def parse(content: str, fmt: SubtitleFormat) -> str:
    """Convert raw caption text of a known dialect into clean prose.

    Args:
        content: Raw caption file content.
        fmt: Dialect of content, normally from detect_format().

    Returns:
        Cleaned fragments joined by single spaces ("" for garbage input).
    """
    parser_cls = PARSERS.get(fmt)
    if parser_cls is None:
        raise UnsupportedFormatError("Unsupported subtitle format: {!r}".format(fmt))
    return parser_cls().parse(content)


def parse_subtitles(content: str) -> str:
    """Detect the dialect of content and parse it."""
    return parse(content, detect_format(content))


__all__ = ["PARSERS", "parse", "parse_subtitles"]
