"""Acquisition package: turns a CaptionRequest into raw caption text.

WHY: Getting captions is a two-path decision (caption track, then audio
transcription) with strict ordering and cleanup rules. This package holds
that decision and nothing else; running tools and calling services live
in extraction and api.
"""

from transcriptor.acquisition.orchestrator import (
    AcquisitionOrchestrator,
    FailureKind,
    PathOutcome,
    Timeouts,
)

__all__ = ["AcquisitionOrchestrator", "FailureKind", "PathOutcome", "Timeouts"]
