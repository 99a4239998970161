"""Async HTTP client for Whisper transcription (self-hosted or OpenAI-compatible).

WHY: When a video has no caption track in the requested language, the
fallback path downloads its audio and asks a Whisper service for a
transcript. Two deployments are common: a self-hosted
whisper-asr-webservice, and the OpenAI transcription API (or anything
speaking its protocol). Callers should not care which one is configured.

HOW: WhisperClient wraps httpx.AsyncClient and is used as an async context
manager. transcribe() uploads the audio as multipart/form-data to the
endpoint of the configured mode and returns the response body as text:
  local: POST {WHISPER_BASE_URL}/asr  (file, response_format, language)
  api:   POST {WHISPER_API_BASE_URL}/audio/transcriptions
          (file, model=whisper-1, response_format, language), Bearer auth

RULES:
- Use as: async with WhisperClient(settings.whisper) as client: ...
- mode "off" means enabled is False and the client is never asked
- A missing base URL (local) or API key (api) logs a warning, returns None
- Non-2xx answers and transport errors raise TranscriptionServiceError
- An HTTP timeout raises AcquisitionTimeoutError
- A blank body is "no text" and returns None
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httpx

from transcriptor.config import WhisperSettings
from transcriptor.errors import AcquisitionTimeoutError, TranscriptionServiceError

logger = logging.getLogger(__name__)

WHISPER_API_MODEL = "whisper-1"
_UPLOAD_NAME = "audio.m4a"
_ERROR_BODY_CHARS = 200


class WhisperClient:
    """Transcription service collaborator backed by a Whisper HTTP endpoint.

    WHY: Gives the orchestrator one transcribe() call regardless of which
    Whisper deployment is configured.

    HOW: The httpx client is opened on __aenter__ and closed on __aexit__.
    Tests pass an httpx.MockTransport through the transport argument.
    """

    def __init__(
        self,
        settings: WhisperSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def enabled(self) -> bool:
        return self._settings.enabled

    @property
    def mode(self) -> str:
        return self._settings.mode

    async def __aenter__(self) -> WhisperClient:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self._settings.timeout_s, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "WhisperClient must be used as an async context manager: "
                "async with WhisperClient(settings) as client: ..."
            )
        return self._client

    # ------------------------------------------------------------------
    # Transcription service contract
    # ------------------------------------------------------------------

    async def transcribe(
        self,
        audio_path: Path,
        language: str,
        output_format: str = "srt",
        timeout: Optional[float] = None,
    ) -> Optional[str]:
        """Transcribe an audio file and return the service's text.

        Args:
            audio_path: Downloaded audio file (m4a, webm or mp3).
            language: Language hint; omitted from the form when empty.
            output_format: "srt", "vtt" or "text".
            timeout: Per-call budget in seconds; defaults to the configured one.

        Returns:
            The transcript body, or None when the mode is off or misconfigured
            or the service returned nothing.
        """
        if self._settings.mode == "local":
            if not self._settings.base_url:
                logger.warning("WHISPER_BASE_URL is not set for local mode")
                return None
            url = "{}/asr".format(self._settings.base_url.rstrip("/"))
            data = {"response_format": output_format}
            headers = {}
        elif self._settings.mode == "api":
            if not self._settings.api_key:
                logger.warning("WHISPER_API_KEY is not set for api mode")
                return None
            url = "{}/audio/transcriptions".format(self._settings.api_base_url)
            data = {"model": WHISPER_API_MODEL, "response_format": output_format}
            headers = {"Authorization": "Bearer {}".format(self._settings.api_key)}
        else:
            return None

        if language:
            data["language"] = language
        return await self._post_audio(url, Path(audio_path), data, headers, timeout)

    async def _post_audio(
        self,
        url: str,
        audio_path: Path,
        data: dict,
        headers: dict,
        timeout: Optional[float],
    ) -> Optional[str]:
        client = self._ensure_client()
        budget = self._settings.timeout_s if timeout is None else timeout
        logger.info("Sending %s to Whisper (%s mode)", audio_path.name, self._settings.mode)

        try:
            with open(audio_path, "rb") as f:
                resp = await client.post(
                    url,
                    data=data,
                    files={"file": (_UPLOAD_NAME, f)},
                    headers=headers,
                    timeout=httpx.Timeout(budget, connect=30.0),
                )
        except OSError as exc:
            raise TranscriptionServiceError(
                "cannot read audio file {}: {}".format(audio_path, exc)
            ) from exc
        except httpx.TimeoutException as exc:
            raise AcquisitionTimeoutError(
                "Whisper request timed out after {:.0f}s".format(budget)
            ) from exc
        except httpx.HTTPError as exc:
            raise TranscriptionServiceError(str(exc)) from exc

        if not resp.is_success:
            raise TranscriptionServiceError(
                resp.text[:_ERROR_BODY_CHARS], status_code=resp.status_code
            )

        text = resp.text
        if not text.strip():
            logger.info("Whisper returned an empty transcript")
            return None
        return text
