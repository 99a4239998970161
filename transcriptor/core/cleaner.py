"""Single-line caption cleanup shared by every dialect parser.

WHY: Caption lines carry noise that is not speech: HTML-ish tags
(<i>, <c.colorE5E5E5>, karaoke <00:00:01.000> stamps), ">>" speaker
change markers, bracketed sound annotations ([music], [applause]), ASS
override blocks ({\\an8}) and WebVTT ::cue style rules. Every parser
needs the same scrub, so it lives in one place.

HOW: A fixed sequence of regex substitutions, then whitespace collapse.

RULES:
- Pure and total: any string in, a string out, never raises
- Output has no leading/trailing whitespace and no runs of spaces
- A line that cleans to "" contributes no fragment
"""

from __future__ import annotations

import re

_CUE_STYLE_RE = re.compile(r"::cue(?:\([^)]*\))?\s*\{[^}]*\}")
_TAG_RE = re.compile(r"<[^>]+>")
_ASS_OVERRIDE_RE = re.compile(r"\{\\[^}]*\}")
_LEADING_SPEAKER_RE = re.compile(r"^>>\s*")
_SPEAKER_RE = re.compile(r"\s*>>\s*")
_ANNOTATION_RE = re.compile(r"\[[^\]]+\]")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_line(line: str) -> str:
    """Strip markup and non-speech annotations from one caption line.

    Args:
        line: A single line of caption text (no newlines expected, but
              they are collapsed like any other whitespace).

    Returns:
        The cleaned line, possibly empty.
    """
    text = _CUE_STYLE_RE.sub("", line)
    text = _TAG_RE.sub("", text)
    text = _ASS_OVERRIDE_RE.sub("", text)
    text = _LEADING_SPEAKER_RE.sub("", text)
    text = _SPEAKER_RE.sub(" ", text)
    text = _ANNOTATION_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()
