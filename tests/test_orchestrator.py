"""Tests for two-path caption acquisition.

WHY: The orchestrator's value is in its ordering and cleanup guarantees:
the fallback only after a failed primary, a disabled fallback never
downloads audio, a usable file beats a bad exit status, and no temp file
survives the call however it ends.

HOW: FakeTool and FakeService from conftest stand in for yt-dlp and
Whisper. Async code runs under asyncio.run() inside ordinary tests.
"""

from __future__ import annotations

import asyncio

import pytest

from transcriptor.acquisition.orchestrator import (
    AcquisitionOrchestrator,
    FailureKind,
    Timeouts,
)
from transcriptor.config import Settings, YtDlpSettings
from transcriptor.core.artifacts import ArtifactManager
from transcriptor.core.ir import (
    CaptionRequest,
    Provenance,
    SubtitleFormat,
    TrackKind,
)
from transcriptor.errors import NotFoundError, ToolNotFoundError, TranscriptionServiceError
from transcriptor.extraction.ytdlp import YtDlpTool

from conftest import SAMPLE_SRT, SAMPLE_VTT, FakeService, FakeTool


def _request(**kwargs) -> CaptionRequest:
    values = {"resource_id": "dQw4w9WgXcQ", "language": "en"}
    values.update(kwargs)
    return CaptionRequest(**values)


def _leftovers(tmp_path):
    return sorted(p.name for p in tmp_path.iterdir())


# ---------------------------------------------------------------------------
# Primary path
# ---------------------------------------------------------------------------


class TestPrimaryPath:
    """Caption track download and filesystem probing."""

    def test_caption_file_returned(self, settings, fake_tool, fake_service, tmp_path):
        fake_tool.caption_content = SAMPLE_SRT
        orchestrator = AcquisitionOrchestrator(settings, fake_tool, fake_service)

        payload = asyncio.run(orchestrator.acquire(_request()))

        assert payload.content == SAMPLE_SRT
        assert payload.format == SubtitleFormat.SRT
        assert payload.provenance == Provenance.PRIMARY
        assert fake_tool.calls == ["captions"]
        assert fake_service.calls == []
        assert _leftovers(tmp_path) == []

    def test_nonzero_exit_with_file_is_success(self, settings, fake_tool, tmp_path):
        """yt-dlp can fail after writing the captions; the file still counts."""
        fake_tool.caption_content = SAMPLE_SRT
        fake_tool.returncode = 1
        fake_tool.report_path = False
        orchestrator = AcquisitionOrchestrator(settings, fake_tool)

        payload = asyncio.run(orchestrator.acquire(_request()))

        assert payload.provenance == Provenance.PRIMARY
        assert payload.content == SAMPLE_SRT
        assert _leftovers(tmp_path) == []

    def test_format_detected_from_content(self, settings, fake_tool):
        fake_tool.caption_content = SAMPLE_VTT
        fake_tool.caption_suffix = ".vtt"
        orchestrator = AcquisitionOrchestrator(settings, fake_tool)

        payload = asyncio.run(orchestrator.acquire(_request(preferred_format=SubtitleFormat.SRT)))

        assert payload.format == SubtitleFormat.VTT

    def test_preferred_format_passed_to_tool(self, settings):
        seen = []

        class RecordingTool(FakeTool):
            async def extract_captions(self, resource_id, track_kind, language, fmt, artifact, timeout):
                seen.append((track_kind, language, fmt))
                return await super().extract_captions(
                    resource_id, track_kind, language, fmt, artifact, timeout
                )

        tool = RecordingTool()
        tool.caption_content = SAMPLE_SRT
        orchestrator = AcquisitionOrchestrator(settings, tool)
        request = _request(
            track_kind=TrackKind.OFFICIAL, language="ru", preferred_format=SubtitleFormat.LRC
        )

        asyncio.run(orchestrator.acquire(request))

        assert seen == [(TrackKind.OFFICIAL, "ru", SubtitleFormat.LRC)]

    def test_configured_format_used_without_preference(self, tmp_path):
        seen = []

        class RecordingTool(FakeTool):
            async def extract_captions(self, resource_id, track_kind, language, fmt, artifact, timeout):
                seen.append(fmt)
                return await super().extract_captions(
                    resource_id, track_kind, language, fmt, artifact, timeout
                )

        settings = Settings(
            temp_dir=tmp_path,
            file_visibility_delay_s=0.0,
            yt_dlp=YtDlpSettings(sub_format=SubtitleFormat.VTT),
        )
        tool = RecordingTool()
        tool.caption_content = SAMPLE_VTT
        asyncio.run(AcquisitionOrchestrator(settings, tool).acquire(_request()))

        assert seen == [SubtitleFormat.VTT]


# ---------------------------------------------------------------------------
# Fallback path
# ---------------------------------------------------------------------------


class TestFallbackPath:
    """Audio download plus transcription, only after primary failure."""

    def test_no_service_means_not_found_without_audio(self, settings, fake_tool):
        orchestrator = AcquisitionOrchestrator(settings, fake_tool, service=None)

        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(orchestrator.acquire(_request()))

        assert fake_tool.calls == ["captions"]
        kinds = [outcome.failure for outcome in exc_info.value.outcomes]
        assert kinds == [FailureKind.NO_OUTPUT, FailureKind.DISABLED]

    def test_disabled_service_not_invoked(self, settings, fake_tool):
        service = FakeService(text=SAMPLE_SRT, enabled=False)
        fake_tool.audio_content = b"audio"
        orchestrator = AcquisitionOrchestrator(settings, fake_tool, service)

        with pytest.raises(NotFoundError):
            asyncio.run(orchestrator.acquire(_request()))

        assert service.calls == []
        assert "audio" not in fake_tool.calls

    def test_transcription_used_when_no_captions(self, settings, fake_tool, fake_service, tmp_path):
        fake_tool.audio_content = b"audio bytes"
        orchestrator = AcquisitionOrchestrator(settings, fake_tool, fake_service)

        payload = asyncio.run(orchestrator.acquire(_request()))

        assert payload.provenance == Provenance.FALLBACK
        assert payload.format == SubtitleFormat.SRT
        assert fake_tool.calls == ["captions", "audio"]
        assert len(fake_service.calls) == 1
        assert fake_service.seen_audio_existed == [True]
        assert _leftovers(tmp_path) == []

    def test_service_error_attempted_once(self, settings, fake_tool, fake_service, tmp_path):
        fake_tool.audio_content = b"audio bytes"
        fake_service.error = TranscriptionServiceError("bad gateway", status_code=502)
        orchestrator = AcquisitionOrchestrator(settings, fake_tool, fake_service)

        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(orchestrator.acquire(_request()))

        assert len(fake_service.calls) == 1
        assert exc_info.value.outcomes[-1].failure == FailureKind.SERVICE_ERROR
        assert _leftovers(tmp_path) == []

    def test_missing_audio_skips_service(self, settings, fake_tool, fake_service):
        orchestrator = AcquisitionOrchestrator(settings, fake_tool, fake_service)

        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(orchestrator.acquire(_request()))

        assert fake_service.calls == []
        assert exc_info.value.outcomes[-1].failure == FailureKind.NO_OUTPUT

    def test_empty_transcript_is_not_found(self, settings, fake_tool):
        fake_tool.audio_content = b"audio"
        service = FakeService(text="   \n")
        orchestrator = AcquisitionOrchestrator(settings, fake_tool, service)

        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(orchestrator.acquire(_request()))

        assert exc_info.value.outcomes[-1].failure == FailureKind.EMPTY

    def test_empty_caption_file_falls_back(self, settings, fake_tool, fake_service):
        fake_tool.caption_content = "\n\n"
        fake_tool.audio_content = b"audio"
        orchestrator = AcquisitionOrchestrator(settings, fake_tool, fake_service)

        payload = asyncio.run(orchestrator.acquire(_request()))

        assert payload.provenance == Provenance.FALLBACK


# ---------------------------------------------------------------------------
# Failures, timeouts and cleanup
# ---------------------------------------------------------------------------


class SlowTool(FakeTool):
    """Writes its caption file (optionally) and then hangs."""

    def __init__(self, write_first: bool = False) -> None:
        super().__init__()
        self.write_first = write_first

    async def extract_captions(self, resource_id, track_kind, language, fmt, artifact, timeout):
        self.calls.append("captions")
        self.artifacts.append(artifact)
        if self.write_first:
            artifact.with_suffix(".en.srt").write_text(SAMPLE_SRT, encoding="utf-8")
        await asyncio.sleep(30)


class SlowService(FakeService):
    async def transcribe(self, audio_path, language, output_format="srt", timeout=None):
        self.calls.append(audio_path)
        await asyncio.sleep(30)


@pytest.fixture
def no_grace(monkeypatch):
    monkeypatch.setattr("transcriptor.acquisition.orchestrator._TOOL_GRACE_S", 0.0)


_FAST = Timeouts(subtitles=0.05, audio=0.05, transcription=0.05)


class TestFailureModes:
    """Each failure is local to its path and always cleaned up."""

    def test_not_found_message(self, settings, fake_tool):
        orchestrator = AcquisitionOrchestrator(settings, fake_tool)
        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(orchestrator.acquire(_request(track_kind=TrackKind.OFFICIAL, language="de")))
        assert str(exc_info.value) == (
            'No official subtitles available for "dQw4w9WgXcQ" in language "de"'
        )

    def test_tool_missing(self, settings, fake_tool):
        fake_tool.missing = True
        orchestrator = AcquisitionOrchestrator(settings, fake_tool)
        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(orchestrator.acquire(_request()))
        assert exc_info.value.outcomes[0].failure == FailureKind.TOOL_MISSING

    def test_tool_not_found_exception(self, settings, fake_tool):
        fake_tool.raise_on_captions = ToolNotFoundError("yt-dlp")
        orchestrator = AcquisitionOrchestrator(settings, fake_tool)
        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(orchestrator.acquire(_request()))
        assert exc_info.value.outcomes[0].failure == FailureKind.TOOL_MISSING

    def test_tool_error_without_file(self, settings, fake_tool):
        fake_tool.returncode = 1
        orchestrator = AcquisitionOrchestrator(settings, fake_tool)
        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(orchestrator.acquire(_request()))
        assert exc_info.value.outcomes[0].failure == FailureKind.TOOL_ERROR

    def test_unexecutable_binary_is_not_found(self, tmp_path, fake_service):
        binary = tmp_path / "yt-dlp"
        binary.write_text("#!/bin/sh\n", encoding="utf-8")
        binary.chmod(0o644)
        work = tmp_path / "work"
        work.mkdir()
        settings = Settings(
            yt_dlp=YtDlpSettings(binary=str(binary)),
            temp_dir=work,
            file_visibility_delay_s=0.0,
        )
        artifacts = ArtifactManager(work)
        orchestrator = AcquisitionOrchestrator(
            settings, YtDlpTool(settings, artifacts), fake_service, artifacts
        )

        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(orchestrator.acquire(_request()))

        failures = [outcome.failure for outcome in exc_info.value.outcomes]
        assert failures == [FailureKind.TOOL_MISSING, FailureKind.TOOL_MISSING]
        assert fake_service.calls == []
        assert _leftovers(work) == []

    def test_primary_timeout(self, settings, no_grace, tmp_path):
        tool = SlowTool()
        orchestrator = AcquisitionOrchestrator(settings, tool)
        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(orchestrator.acquire(_request(), _FAST))
        assert exc_info.value.outcomes[0].failure == FailureKind.TIMEOUT
        assert _leftovers(tmp_path) == []

    def test_file_written_before_timeout_is_used(self, settings, no_grace, tmp_path):
        tool = SlowTool(write_first=True)
        orchestrator = AcquisitionOrchestrator(settings, tool)

        payload = asyncio.run(orchestrator.acquire(_request(), _FAST))

        assert payload.provenance == Provenance.PRIMARY
        assert _leftovers(tmp_path) == []

    def test_transcription_timeout(self, settings, fake_tool, tmp_path):
        fake_tool.audio_content = b"audio"
        service = SlowService()
        orchestrator = AcquisitionOrchestrator(settings, fake_tool, service)

        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(orchestrator.acquire(_request(), _FAST))

        assert exc_info.value.outcomes[-1].failure == FailureKind.TIMEOUT
        assert len(service.calls) == 1
        assert _leftovers(tmp_path) == []

    def test_cancellation_releases_artifacts(self, settings, tmp_path):
        tool = SlowTool(write_first=True)
        orchestrator = AcquisitionOrchestrator(settings, tool)

        async def _run():
            task = asyncio.ensure_future(orchestrator.acquire(_request()))
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(_run())
        assert tool.calls == ["captions"]
        assert _leftovers(tmp_path) == []

    def test_concurrent_requests_do_not_collide(self, settings, tmp_path):
        tool = FakeTool()
        tool.caption_content = SAMPLE_SRT
        orchestrator = AcquisitionOrchestrator(settings, tool)

        async def _run():
            return await asyncio.gather(*(orchestrator.acquire(_request()) for _ in range(5)))

        payloads = asyncio.run(_run())

        assert len(payloads) == 5
        assert len({a.name for a in tool.artifacts}) == 5
        assert _leftovers(tmp_path) == []
