"""Caption dialect detection from raw content.

WHY: yt-dlp may hand back a different dialect than the one asked for
(conversion is best-effort), and the transcription service answers in
whatever format it supports. Parsing must follow the content, not the
request.

HOW: Ordered checks, first match wins:
  1. trimmed content starts with "WEBVTT"             → VTT
  2. a line is exactly an ASS section header          → ASS
  3. a line starts with an [mm:ss] / [mm:ss.xx] stamp → LRC
  4. anything else (including "")                     → SRT

RULES:
- Total: returns one of the four formats for every string
- VTT is checked first (most specific), ASS before LRC (both bracketed)
- A leading UTF-8 byte order mark is ignored
"""

from __future__ import annotations

import re

from transcriptor.core.ir import SubtitleFormat

_VTT_HEADER = "WEBVTT"
_ASS_SECTION_RE = re.compile(
    r"^[ \t]*\[(?:Script Info|V4\+ Styles|Events)\][ \t]*\r?$",
    re.MULTILINE,
)
_LRC_STAMP_RE = re.compile(r"^\[\d{1,2}:\d{2}(?:\.\d{2,3})?\]", re.MULTILINE)


def detect_format(content: str) -> SubtitleFormat:
    """Classify caption text into one of the supported dialects."""
    trimmed = content.lstrip("\ufeff").strip()
    if trimmed.startswith(_VTT_HEADER):
        return SubtitleFormat.VTT
    if _ASS_SECTION_RE.search(trimmed):
        return SubtitleFormat.ASS
    if _LRC_STAMP_RE.search(trimmed):
        return SubtitleFormat.LRC
    return SubtitleFormat.SRT
