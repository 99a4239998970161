"""Transcription service package: async HTTP interface to Whisper.

WHY: The fallback acquisition path needs speech-to-text for videos that
have no caption track. This package keeps all HTTP details of that
service behind one client class.

RULES:
- All HTTP calls to the transcription service go through WhisperClient
- Authentication (api mode) is a Bearer key from config
"""

from transcriptor.api.client import WhisperClient

__all__ = ["WhisperClient"]
