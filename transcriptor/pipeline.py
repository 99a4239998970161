"""Caller-facing composition: acquire, detect, parse, page.

WHY: Every caller (the CLI today, any transport layer later) does the
same four steps: get raw captions for a request, work out their dialect,
turn them into prose, and return one bounded window of the result. This
module is that sequence, so callers only choose arguments.

HOW: acquire_text() runs the orchestrator and, unless raw output was
asked for, parses the payload with the parser matching its detected
format. get_transcript() and get_raw_subtitles() clamp the window size
to the configured bounds and page the text. iter_windows() follows
next_cursor to the end for callers that want everything.

RULES:
- The window size is clamped to [min_limit, max_limit], never rejected
- The dialect comes from the payload, not from the request's preference
- NotFoundError and InvalidCursorError propagate unchanged
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from pydantic import BaseModel, Field

from transcriptor.acquisition.orchestrator import AcquisitionOrchestrator
from transcriptor.config import PaginationSettings
from transcriptor.core.ir import (
    CaptionRequest,
    ParsedTranscript,
    Provenance,
    RawCaptionPayload,
    SubtitleFormat,
    TrackKind,
)
from transcriptor.core.pagination import PaginationWindow, paginate_text
from transcriptor.parsers import parse

logger = logging.getLogger(__name__)


class TranscriptPage(BaseModel):
    """One window of a video's transcript plus where it came from."""

    resource_id: str = Field(description="Video identifier the text belongs to.")
    track_kind: TrackKind = Field(description="Caption track that was requested.")
    language: str = Field(description="Caption language that was requested.")
    format: SubtitleFormat = Field(description="Detected dialect of the raw captions.")
    provenance: Provenance = Field(description="Caption track (primary) or transcription (fallback).")
    window: PaginationWindow


@dataclass(frozen=True)
class AcquiredText:
    """Acquired payload plus its parsed transcript (None for raw output)."""

    payload: RawCaptionPayload
    transcript: Optional[ParsedTranscript] = None

    @property
    def text(self) -> str:
        """Text to page: the transcript, or the raw content when not parsed."""
        if self.transcript is None:
            return self.payload.content
        return self.transcript.text


async def acquire_text(
    orchestrator: AcquisitionOrchestrator,
    request: CaptionRequest,
    raw: bool = False,
) -> AcquiredText:
    """Acquire captions and return the payload with its plain text.

    Args:
        orchestrator: Configured acquisition orchestrator.
        request: What to fetch.
        raw: Return the caption file content untouched instead of prose.
    """
    payload = await orchestrator.acquire(request)
    if raw:
        return AcquiredText(payload=payload)

    transcript = ParsedTranscript(text=parse(payload.content, payload.format))
    logger.info(
        "Parsed %s captions for %s: %d -> %d chars",
        payload.format.value, request.resource_id, len(payload.content), len(transcript),
    )
    return AcquiredText(payload=payload, transcript=transcript)


def build_page(
    request: CaptionRequest,
    acquired: AcquiredText,
    pagination: PaginationSettings,
    response_limit: Optional[int] = None,
    cursor: Optional[str] = None,
) -> TranscriptPage:
    window = paginate_text(acquired.text, pagination.clamp(response_limit), cursor)
    return TranscriptPage(
        resource_id=request.resource_id,
        track_kind=request.track_kind,
        language=request.language,
        format=acquired.payload.format,
        provenance=acquired.payload.provenance,
        window=window,
    )


async def get_transcript(
    orchestrator: AcquisitionOrchestrator,
    request: CaptionRequest,
    pagination: PaginationSettings,
    response_limit: Optional[int] = None,
    cursor: Optional[str] = None,
) -> TranscriptPage:
    """Cleaned transcript window for request.

    Raises:
        NotFoundError: no captions and no transcription for the request.
        InvalidCursorError: cursor is malformed or past the end of the text.
    """
    acquired = await acquire_text(orchestrator, request)
    return build_page(request, acquired, pagination, response_limit, cursor)


async def get_raw_subtitles(
    orchestrator: AcquisitionOrchestrator,
    request: CaptionRequest,
    pagination: PaginationSettings,
    response_limit: Optional[int] = None,
    cursor: Optional[str] = None,
) -> TranscriptPage:
    """Raw caption file window for request (timestamps and markup kept)."""
    acquired = await acquire_text(orchestrator, request, raw=True)
    return build_page(request, acquired, pagination, response_limit, cursor)


def iter_windows(
    text: str,
    window_size: int,
    cursor: Optional[str] = None,
) -> Iterator[PaginationWindow]:
    """Yield successive windows of text, following next_cursor to the end."""
    while True:
        window = paginate_text(text, window_size, cursor)
        yield window
        if window.next_cursor is None:
            return
        cursor = window.next_cursor
