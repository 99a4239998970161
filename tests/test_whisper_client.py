"""Tests for the Whisper transcription client.

HOW: httpx.MockTransport answers every request in-process, so the real
multipart encoding and status handling run without a network.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from transcriptor.api.client import WhisperClient
from transcriptor.config import WhisperSettings
from transcriptor.errors import AcquisitionTimeoutError, TranscriptionServiceError


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "audio.m4a"
    path.write_bytes(b"\x00\x01fake-audio")
    return path


def _transcribe(settings, handler, audio_path, language="en"):
    async def _run():
        async with WhisperClient(settings, transport=httpx.MockTransport(handler)) as client:
            return await client.transcribe(audio_path, language, "srt")

    return asyncio.run(_run())


class TestLocalMode:
    """Self-hosted whisper-asr-webservice."""

    def test_posts_to_asr(self, audio_file):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = request.content
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, text="1\n00:00:00,000 --> 00:00:01,000\nHi\n")

        settings = WhisperSettings(mode="local", base_url="http://whisper:9000/")
        text = _transcribe(settings, handler, audio_file)

        assert text.startswith("1\n")
        assert seen["url"] == "http://whisper:9000/asr"
        assert b'name="response_format"' in seen["body"]
        assert b'name="language"' in seen["body"]
        assert b"fake-audio" in seen["body"]
        assert seen["auth"] is None

    def test_language_omitted_when_empty(self, audio_file):
        seen = {}

        def handler(request):
            seen["body"] = request.content
            return httpx.Response(200, text="hello")

        settings = WhisperSettings(mode="local", base_url="http://whisper:9000")
        _transcribe(settings, handler, audio_file, language="")

        assert b'name="language"' not in seen["body"]

    def test_missing_base_url_returns_none(self, audio_file):
        def handler(request):
            raise AssertionError("no request expected")

        assert _transcribe(WhisperSettings(mode="local"), handler, audio_file) is None


class TestApiMode:
    """OpenAI-compatible transcription endpoint."""

    def test_bearer_and_model(self, audio_file):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = request.content
            return httpx.Response(200, text="WEBVTT\n\n00:00.000 --> 00:01.000\nHi\n")

        settings = WhisperSettings(
            mode="api", api_key="sk-test", api_base_url="https://api.example.com/v1"
        )
        text = _transcribe(settings, handler, audio_file)

        assert text.startswith("WEBVTT")
        assert seen["url"] == "https://api.example.com/v1/audio/transcriptions"
        assert seen["auth"] == "Bearer sk-test"
        assert b"whisper-1" in seen["body"]

    def test_missing_key_returns_none(self, audio_file):
        def handler(request):
            raise AssertionError("no request expected")

        assert _transcribe(WhisperSettings(mode="api"), handler, audio_file) is None


class TestResponses:
    """Status and body handling shared by both modes."""

    settings = WhisperSettings(mode="local", base_url="http://whisper")

    def test_blank_body_is_none(self, audio_file):
        assert _transcribe(self.settings, lambda r: httpx.Response(200, text="  \n"), audio_file) is None

    def test_error_status_raises(self, audio_file):
        with pytest.raises(TranscriptionServiceError) as exc_info:
            _transcribe(self.settings, lambda r: httpx.Response(503, text="busy"), audio_file)
        assert exc_info.value.status_code == 503
        assert "busy" in str(exc_info.value)

    def test_connection_error_raises(self, audio_file):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TranscriptionServiceError) as exc_info:
            _transcribe(self.settings, handler, audio_file)
        assert exc_info.value.status_code is None

    def test_timeout_raises(self, audio_file):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(AcquisitionTimeoutError):
            _transcribe(self.settings, handler, audio_file)

    def test_unreadable_audio_raises(self, tmp_path):
        with pytest.raises(TranscriptionServiceError):
            _transcribe(self.settings, lambda r: httpx.Response(200, text="x"),
                        tmp_path / "missing.m4a")


class TestLifecycle:
    def test_enabled_follows_mode(self):
        assert WhisperClient(WhisperSettings(mode="off")).enabled is False
        assert WhisperClient(WhisperSettings(mode="api")).enabled is True

    def test_requires_context_manager(self, audio_file):
        client = WhisperClient(WhisperSettings(mode="local", base_url="http://whisper"))
        with pytest.raises(RuntimeError):
            asyncio.run(client.transcribe(audio_file, "en"))
