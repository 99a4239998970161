"""Data model shared by acquisition, parsing, and pagination.

WHY: The orchestrator, the parsers, the pagination layer and the CLI all
pass the same few values around: what was asked for, what came back, and
where it came from. One module of small, well-typed objects keeps those
contracts explicit and stable.

HOW: Three closed enums (SubtitleFormat, TrackKind, Provenance), a frozen
pydantic model for the caller-built CaptionRequest (it crosses the
transport boundary, so its fields are validated), and frozen dataclasses
for values produced internally (RawCaptionPayload, ParsedTranscript).

RULES:
- Every object here is immutable once built
- RawCaptionPayload.format is always the detected dialect, never the requested one
- ParsedTranscript.text has no timestamps, numbering, or markup
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SubtitleFormat(str, enum.Enum):
    """Closed set of caption dialects the parsers understand.

    Inherits from str so values serialize cleanly to JSON and double as
    file extensions.
    """

    SRT = "srt"
    VTT = "vtt"
    ASS = "ass"
    LRC = "lrc"

    @property
    def extension(self) -> str:
        return "." + self.value


class TrackKind(str, enum.Enum):
    """Which caption track to ask the provider for."""

    OFFICIAL = "official"
    AUTO = "auto"


class Provenance(str, enum.Enum):
    """Which acquisition path produced a payload."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


class CaptionRequest(BaseModel):
    """One caller request for a video's captions.

    WHY: The orchestrator needs the resource, the track kind, the language,
    and an optional dialect preference. Validating the shape here keeps
    shell-unsafe values out of the extraction tool's argument list.

    RULES:
    - resource_id: opaque video identifier, [A-Za-z0-9_-], at most 50 chars
    - track_kind defaults to auto-generated captions
    - language: [A-Za-z0-9-], 1-10 chars (e.g. "en", "en-US")
    - preferred_format only steers what the tool is asked to produce
    """

    model_config = ConfigDict(frozen=True)

    resource_id: str = Field(
        min_length=1,
        max_length=50,
        pattern=r"^[A-Za-z0-9_-]+$",
        description="Opaque identifier of the remote video.",
    )
    track_kind: TrackKind = Field(
        default=TrackKind.AUTO,
        description="Official (uploaded) or auto-generated captions.",
    )
    language: str = Field(
        default="en",
        min_length=1,
        max_length=10,
        pattern=r"^[A-Za-z0-9-]+$",
        description="Caption language code (e.g. 'en', 'ru', 'en-US').",
    )
    preferred_format: Optional[SubtitleFormat] = Field(
        default=None,
        description="Dialect to ask the extraction tool for. Defaults to the configured format.",
    )


@dataclass(frozen=True)
class RawCaptionPayload:
    """Caption text exactly as one acquisition path produced it.

    RULES:
    - content is non-empty (blank output counts as a failed path)
    - format is what FormatDetector says about content
    - provenance records which path won
    """

    content: str
    format: SubtitleFormat
    provenance: Provenance


@dataclass(frozen=True)
class ParsedTranscript:
    """Fully cleaned transcript text, fragments joined by single spaces."""

    text: str

    def __len__(self) -> int:
        return len(self.text)
