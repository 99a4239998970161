"""Abstract base parser shared by every caption dialect.

WHY: Each dialect has its own grammar for timing and cues, but all of
them must converge on the same output: ordered, cleaned text fragments
joined by single spaces. This base class fixes that contract so the
pipeline and tests can work with any parser generically.

HOW: BaseParser is an ABC with two requirements: a ``format`` property
and a ``fragments()`` generator. ``parse()`` is implemented once here:
it joins whatever ``fragments()`` yields.

RULES:
- Subclasses MUST implement ``format`` and ``fragments()``
- ``fragments()`` yields already-cleaned, non-empty strings in cue order
- Parsers never raise on malformed input; garbage yields no fragments
- Lines are split with str.splitlines(), so CRLF input is handled

To add a new dialect:
1. Add the value to SubtitleFormat in core/ir.py
2. Create a module in parsers/ with a BaseParser subclass
3. Register it in PARSERS in parsers/__init__.py
4. Teach core/detector.py to recognise it
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator

from transcriptor.core.ir import SubtitleFormat


class BaseParser(ABC):
    """Abstract base for all caption dialect parsers."""

    @property
    @abstractmethod
    def format(self) -> SubtitleFormat:
        """The dialect this parser understands."""

    @abstractmethod
    def fragments(self, content: str) -> Iterator[str]:
        """Yield cleaned text fragments from raw caption content, in order."""

    def parse(self, content: str) -> str:
        """Return the fully cleaned transcript for content."""
        return " ".join(self.fragments(content))
