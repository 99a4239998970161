"""Shared test fixtures for the transcriptor test suite.

WHY: Parser, detector, orchestrator and pipeline tests all need the same
small caption samples and the same fake collaborators. Centralizing them
here keeps every module testing against one set of inputs.

HOW: Module-level constants hold one sample per dialect; fixtures return
them. FakeTool and FakeService stand in for yt-dlp and Whisper: they
write files into the TemporaryArtifact they are handed and record each
call, so tests can assert on ordering and cleanup.

RULES:
- No test spawns a process or opens a network connection
- Every sample parses to "Hello world This is a test"
- Settings point at tmp_path and use no file visibility delay
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pytest

from transcriptor.config import Settings, WhisperSettings
from transcriptor.core.artifacts import ArtifactManager, TemporaryArtifact
from transcriptor.extraction.ytdlp import ToolRun


# ---------------------------------------------------------------------------
# Caption samples
# ---------------------------------------------------------------------------

EXPECTED_TEXT = "Hello world This is a test"

SAMPLE_SRT = (
    "1\n"
    "00:00:00,000 --> 00:00:05,000\n"
    "Hello world\n"
    "\n"
    "2\n"
    "00:00:05,000 --> 00:00:10,000\n"
    "This is a test\n"
)

SAMPLE_VTT = (
    "WEBVTT\n"
    "Kind: captions\n"
    "Language: en\n"
    "\n"
    "NOTE This file was generated for tests\n"
    "\n"
    "00:00:00.000 --> 00:00:05.000\n"
    "Hello world\n"
    "\n"
    "00:00:05.000 --> 00:00:10.000\n"
    "This is a test\n"
)

SAMPLE_ASS = (
    "[Script Info]\n"
    "Title: Test\n"
    "ScriptType: v4.00+\n"
    "\n"
    "[V4+ Styles]\n"
    "Format: Name, Fontname, Fontsize\n"
    "Style: Default,Arial,20\n"
    "\n"
    "[Events]\n"
    "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
    "Dialogue: 0,0:00:00.00,0:00:05.00,Default,,0,0,0,,Hello world\n"
    "Dialogue: 0,0:00:05.00,0:00:10.00,Default,,0,0,0,,This is a test\n"
)

SAMPLE_LRC = (
    "[ti:Test]\n"
    "[00:00.00]Hello world\n"
    "[00:05.00]This is a test\n"
)


@pytest.fixture
def sample_srt() -> str:
    return SAMPLE_SRT


@pytest.fixture
def sample_vtt() -> str:
    return SAMPLE_VTT


@pytest.fixture
def sample_ass() -> str:
    return SAMPLE_ASS


@pytest.fixture
def sample_lrc() -> str:
    return SAMPLE_LRC


# ---------------------------------------------------------------------------
# Settings and artifacts
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Default settings with temp files under tmp_path and no visibility delay."""
    return Settings(temp_dir=tmp_path, file_visibility_delay_s=0.0)


@pytest.fixture
def whisper_settings(tmp_path) -> Settings:
    """Settings with the transcription fallback enabled (local mode)."""
    return Settings(
        temp_dir=tmp_path,
        file_visibility_delay_s=0.0,
        whisper=WhisperSettings(mode="local", base_url="http://whisper.test"),
    )


@pytest.fixture
def artifacts(tmp_path) -> ArtifactManager:
    return ArtifactManager(tmp_path)


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


class FakeTool:
    """In-memory extraction tool.

    Attributes set by tests:
        caption_content: text written as "<base>.<lang><caption_suffix>", or None
        returncode: exit status reported for caption runs
        report_path: when False, output_path is left for the caller to find
        timed_out / missing: reported flags
        audio_content: bytes written as "<base>.m4a", or None
        raise_on_captions: exception raised instead of running
        version_output: what "yt-dlp --version" prints, or None when not installed
    """

    binary = "yt-dlp"

    def __init__(self) -> None:
        self.caption_content: Optional[str] = None
        self.caption_suffix = ".srt"
        self.returncode: Optional[int] = 0
        self.report_path = True
        self.timed_out = False
        self.missing = False
        self.audio_content: Optional[bytes] = None
        self.raise_on_captions: Optional[BaseException] = None
        self.calls: List[str] = []
        self.artifacts: List[TemporaryArtifact] = []
        self.version_output: Optional[str] = "2026.02.04"

    async def extract_captions(self, resource_id, track_kind, language, fmt, artifact, timeout):
        self.calls.append("captions")
        self.artifacts.append(artifact)
        if self.raise_on_captions is not None:
            raise self.raise_on_captions
        if self.missing:
            return ToolRun(returncode=None, missing=True)

        path = None
        if self.caption_content is not None:
            path = artifact.with_suffix(".{}{}".format(language, self.caption_suffix))
            path.write_text(self.caption_content, encoding="utf-8")
        return ToolRun(
            returncode=self.returncode,
            output_path=path if self.report_path else None,
            timed_out=self.timed_out,
        )

    async def extract_audio(self, resource_id, artifact, timeout) -> Optional[Path]:
        self.calls.append("audio")
        self.artifacts.append(artifact)
        if self.audio_content is None:
            return None
        path = artifact.with_suffix(".m4a")
        path.write_bytes(self.audio_content)
        return path

    async def version(self, timeout: float = 10.0) -> Optional[str]:
        return self.version_output


class FakeService:
    """In-memory transcription service recording the audio it was given."""

    def __init__(self, text: Optional[str] = None, enabled: bool = True) -> None:
        self.text = text
        self._enabled = enabled
        self.error: Optional[BaseException] = None
        self.calls: List[Path] = []
        self.seen_audio_existed: List[bool] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def transcribe(self, audio_path, language, output_format="srt", timeout=None):
        self.calls.append(audio_path)
        self.seen_audio_existed.append(Path(audio_path).exists())
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def fake_tool() -> FakeTool:
    return FakeTool()


@pytest.fixture
def fake_service() -> FakeService:
    return FakeService(text=SAMPLE_SRT)
