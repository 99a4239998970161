"""Exception taxonomy for acquisition, parsing, and pagination.

WHY: Callers need to tell "no captions exist" apart from "bad cursor"
apart from "the transcription service is down", without parsing messages.
Typed exceptions make each outcome explicit at the seam where it is raised.

HOW: One small hierarchy rooted at TranscriptorError. Acquisition-internal
failures (timeouts, missing tool, service errors) are caught by the
orchestrator and folded into a path failure; only NotFoundError leaves
acquire(). InvalidCursorError and UnsupportedFormatError are ValueErrors so
generic input-validation handlers catch them too.

RULES:
- NotFoundError is the only acquisition error surfaced to callers
- Cleanup failures are never raised (see core.artifacts)
- Messages are human-readable and name the offending value
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from transcriptor.acquisition.orchestrator import PathOutcome
    from transcriptor.core.ir import CaptionRequest


class TranscriptorError(Exception):
    """Base class for every error raised by this package."""


class AcquisitionError(TranscriptorError):
    """Base class for failures while obtaining raw caption text."""


class NotFoundError(AcquisitionError):
    """Neither the primary nor the fallback path produced usable text.

    WHY: The transport layer maps this to a 404-style answer. The attached
    outcomes explain, for logs, why each path failed.

    RULES:
    - request is the CaptionRequest that was attempted
    - outcomes holds one PathOutcome per attempted path, in order
    """

    def __init__(
        self,
        request: "CaptionRequest",
        outcomes: Optional[Sequence["PathOutcome"]] = None,
    ) -> None:
        self.request = request
        self.outcomes: List["PathOutcome"] = list(outcomes or [])
        super().__init__(
            'No {} subtitles available for "{}" in language "{}"'.format(
                request.track_kind.value, request.resource_id, request.language
            )
        )


class AcquisitionTimeoutError(AcquisitionError, TimeoutError):
    """An external call exceeded its time budget."""


class ToolNotFoundError(AcquisitionError):
    """The extraction tool binary is not installed or not on PATH."""


class TranscriptionServiceError(AcquisitionError):
    """The transcription service rejected the request or was unreachable.

    RULES:
    - status_code is None for transport-level failures (DNS, connection reset)
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        self.message = message
        if status_code is None:
            super().__init__("Transcription service error: {}".format(message))
        else:
            super().__init__(
                "Transcription service error {}: {}".format(status_code, message)
            )


class UnsupportedFormatError(TranscriptorError, ValueError):
    """A subtitle dialect outside the closed SubtitleFormat enum was requested."""


class InvalidCursorError(TranscriptorError, ValueError):
    """A pagination cursor is not a non-negative integer within the text."""
