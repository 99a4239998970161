"""Two-path caption acquisition: caption track first, transcription second.

WHY: A caller asks for one video's captions in one language and wants
text back. Most videos have a caption track yt-dlp can fetch in seconds;
some have none, and for those the audio can be transcribed by Whisper,
which is slow and costs quota. The orchestrator runs the cheap path,
falls back to the expensive one only when the cheap one produced nothing,
and makes sure no temp file outlives the request.

HOW: acquire() is a short sequential chain:
  1. primary:  allocate a "subtitles" artifact, run the extraction tool
               with its timeout, then search the filesystem for a caption
               file whatever the exit status was
  2. fallback: only if primary failed and a transcription service is
               enabled: allocate an "audio" artifact, download the audio,
               send it to the service once
  3. neither produced text → NotFoundError carrying both outcomes
Each path returns a PathOutcome: ok(payload) or failed(kind, detail).
Artifacts are held in ArtifactManager.scoped() blocks, so they are
released on success, on error, on timeout and on cancellation.

RULES:
- The fallback never starts before the primary path has finished
- The fallback is attempted at most once and is not retried
- A disabled or absent service means no audio download at all
- A non-empty caption file wins even when the tool exited non-zero
- Payload format is detected from content, never taken from the request
- Timeouts end the path that hit them, not the acquisition
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol

from transcriptor.config import Settings
from transcriptor.core.artifacts import ArtifactManager, TemporaryArtifact
from transcriptor.core.detector import detect_format
from transcriptor.core.ir import (
    CaptionRequest,
    Provenance,
    RawCaptionPayload,
    SubtitleFormat,
    TrackKind,
)
from transcriptor.errors import (
    AcquisitionTimeoutError,
    NotFoundError,
    ToolNotFoundError,
    TranscriptionServiceError,
)
from transcriptor.extraction.ytdlp import SUBTITLE_SUFFIXES, ToolRun

logger = logging.getLogger(__name__)

FALLBACK_OUTPUT_FORMAT = "srt"

# Extra time the orchestrator allows past a tool's own timeout, covering
# process teardown and the file visibility delay.
_TOOL_GRACE_S = 5.0


# ---------------------------------------------------------------------------
# Collaborator contracts
# ---------------------------------------------------------------------------


class ExtractionTool(Protocol):
    async def extract_captions(
        self,
        resource_id: str,
        track_kind: TrackKind,
        language: str,
        fmt: SubtitleFormat,
        artifact: TemporaryArtifact,
        timeout: float,
    ) -> ToolRun: ...

    async def extract_audio(
        self,
        resource_id: str,
        artifact: TemporaryArtifact,
        timeout: float,
    ) -> Optional[Path]: ...


class TranscriptionService(Protocol):
    @property
    def enabled(self) -> bool: ...

    async def transcribe(
        self,
        audio_path: Path,
        language: str,
        output_format: str = FALLBACK_OUTPUT_FORMAT,
        timeout: Optional[float] = None,
    ) -> Optional[str]: ...


# ---------------------------------------------------------------------------
# Path outcomes
# ---------------------------------------------------------------------------


class FailureKind(str, enum.Enum):
    """Why one acquisition path produced no payload."""

    TOOL_MISSING = "tool_missing"
    TOOL_ERROR = "tool_error"
    TIMEOUT = "timeout"
    NO_OUTPUT = "no_output"
    DISABLED = "disabled"
    SERVICE_ERROR = "service_error"
    EMPTY = "empty"


@dataclass(frozen=True)
class PathOutcome:
    """Result of one acquisition path: a payload, or a tagged failure."""

    provenance: Provenance
    payload: Optional[RawCaptionPayload] = None
    failure: Optional[FailureKind] = None
    detail: str = ""

    @classmethod
    def ok(cls, payload: RawCaptionPayload) -> PathOutcome:
        return cls(provenance=payload.provenance, payload=payload)

    @classmethod
    def failed(cls, provenance: Provenance, kind: FailureKind, detail: str = "") -> PathOutcome:
        return cls(provenance=provenance, failure=kind, detail=detail)

    @property
    def succeeded(self) -> bool:
        return self.payload is not None

    def __str__(self) -> str:
        if self.succeeded:
            return "{}: ok".format(self.provenance.value)
        if self.detail:
            return "{}: {} ({})".format(self.provenance.value, self.failure.value, self.detail)
        return "{}: {}".format(self.provenance.value, self.failure.value)


@dataclass(frozen=True)
class Timeouts:
    """Per-call budgets in seconds, one per external call."""

    subtitles: float
    audio: float
    transcription: float

    @classmethod
    def from_settings(cls, settings: Settings) -> Timeouts:
        return cls(
            subtitles=settings.yt_dlp.timeout_s,
            audio=settings.audio.timeout_s,
            transcription=settings.whisper.timeout_s,
        )


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class AcquisitionOrchestrator:
    """Obtains raw caption text for a CaptionRequest.

    Args:
        settings: Process settings (default format, timeouts, temp dir).
        tool: Extraction tool (YtDlpTool in production).
        service: Transcription service, or None when no fallback exists.
        artifacts: Temp artifact manager; one over settings.temp_dir by default.
    """

    def __init__(
        self,
        settings: Settings,
        tool: ExtractionTool,
        service: Optional[TranscriptionService] = None,
        artifacts: Optional[ArtifactManager] = None,
    ) -> None:
        self._settings = settings
        self._tool = tool
        self._service = service
        self._artifacts = artifacts or ArtifactManager(settings.temp_dir)

    @property
    def artifacts(self) -> ArtifactManager:
        return self._artifacts

    async def acquire(
        self,
        request: CaptionRequest,
        timeouts: Optional[Timeouts] = None,
    ) -> RawCaptionPayload:
        """Return the captions of request, from the track or from transcription.

        Raises:
            NotFoundError: neither path produced usable text.
        """
        budgets = timeouts or Timeouts.from_settings(self._settings)
        outcomes: List[PathOutcome] = []

        primary = await self._primary(request, budgets)
        outcomes.append(primary)
        if primary.succeeded:
            return primary.payload
        logger.info("Caption track unavailable for %s (%s)", request.resource_id, primary)

        fallback = await self._fallback(request, budgets)
        outcomes.append(fallback)
        if fallback.succeeded:
            return fallback.payload
        if fallback.failure != FailureKind.DISABLED:
            logger.info("Transcription fallback failed for %s (%s)", request.resource_id, fallback)

        raise NotFoundError(request, outcomes)

    # ------------------------------------------------------------------
    # Primary path: caption track
    # ------------------------------------------------------------------

    async def _primary(self, request: CaptionRequest, budgets: Timeouts) -> PathOutcome:
        fmt = request.preferred_format or self._settings.yt_dlp.sub_format

        with self._artifacts.scoped("subtitles", request.resource_id) as artifact:
            run: Optional[ToolRun] = None
            timed_out = False
            try:
                run = await asyncio.wait_for(
                    self._tool.extract_captions(
                        request.resource_id,
                        request.track_kind,
                        request.language,
                        fmt,
                        artifact,
                        budgets.subtitles,
                    ),
                    budgets.subtitles + _TOOL_GRACE_S,
                )
            except ToolNotFoundError as exc:
                return PathOutcome.failed(Provenance.PRIMARY, FailureKind.TOOL_MISSING, str(exc))
            except (asyncio.TimeoutError, AcquisitionTimeoutError):
                timed_out = True

            if run is not None and run.missing:
                return PathOutcome.failed(Provenance.PRIMARY, FailureKind.TOOL_MISSING)

            # the tool may have written the file before failing or timing out
            path = run.output_path if run is not None else None
            if path is None:
                path = artifact.find(SUBTITLE_SUFFIXES, preferred=fmt.extension)

            if path is None:
                if timed_out or (run is not None and run.timed_out):
                    return PathOutcome.failed(Provenance.PRIMARY, FailureKind.TIMEOUT)
                if run is not None and not run.succeeded:
                    return PathOutcome.failed(
                        Provenance.PRIMARY,
                        FailureKind.TOOL_ERROR,
                        "exit status {}".format(run.returncode),
                    )
                return PathOutcome.failed(Provenance.PRIMARY, FailureKind.NO_OUTPUT)

            if run is not None and not run.succeeded:
                logger.info(
                    "yt-dlp reported failure but wrote %s; using it", path.name
                )
            content = _read_text(path)

        if content is None or not content.strip():
            return PathOutcome.failed(Provenance.PRIMARY, FailureKind.EMPTY, path.name)
        return PathOutcome.ok(
            RawCaptionPayload(
                content=content,
                format=detect_format(content),
                provenance=Provenance.PRIMARY,
            )
        )

    # ------------------------------------------------------------------
    # Fallback path: audio transcription
    # ------------------------------------------------------------------

    async def _fallback(self, request: CaptionRequest, budgets: Timeouts) -> PathOutcome:
        service = self._service
        if service is None or not service.enabled:
            return PathOutcome.failed(Provenance.FALLBACK, FailureKind.DISABLED)

        with self._artifacts.scoped("audio", request.resource_id) as artifact:
            try:
                audio = await asyncio.wait_for(
                    self._tool.extract_audio(request.resource_id, artifact, budgets.audio),
                    budgets.audio + _TOOL_GRACE_S,
                )
            except ToolNotFoundError as exc:
                return PathOutcome.failed(Provenance.FALLBACK, FailureKind.TOOL_MISSING, str(exc))
            except (asyncio.TimeoutError, AcquisitionTimeoutError):
                return PathOutcome.failed(Provenance.FALLBACK, FailureKind.TIMEOUT, "audio download")

            if audio is None:
                return PathOutcome.failed(Provenance.FALLBACK, FailureKind.NO_OUTPUT, "no audio file")

            try:
                text = await asyncio.wait_for(
                    service.transcribe(
                        audio,
                        request.language,
                        FALLBACK_OUTPUT_FORMAT,
                        budgets.transcription,
                    ),
                    budgets.transcription,
                )
            except (asyncio.TimeoutError, AcquisitionTimeoutError):
                logger.warning("Transcription timed out for %s", request.resource_id)
                return PathOutcome.failed(Provenance.FALLBACK, FailureKind.TIMEOUT, "transcription")
            except TranscriptionServiceError as exc:
                logger.error("Transcription failed for %s: %s", request.resource_id, exc)
                return PathOutcome.failed(Provenance.FALLBACK, FailureKind.SERVICE_ERROR, str(exc))

        if not text or not text.strip():
            return PathOutcome.failed(Provenance.FALLBACK, FailureKind.EMPTY)
        return PathOutcome.ok(
            RawCaptionPayload(
                content=text,
                format=detect_format(text),
                provenance=Provenance.FALLBACK,
            )
        )


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        logger.warning("Cannot read caption file %s", path)
        return None
