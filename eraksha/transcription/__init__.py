"""
Transcription module boundary for eRaksha backend.

Design intent:
- Keep provider-specific speech-to-text calls out of API handlers.
- Always hand the pipeline a transcript string, degrading to placeholder text.
"""
from __future__ import annotations

from .base import TranscriptionError, TranscriptionProvider
from .controller import (
    build_transcription_provider,
    transcribe_with_placeholder,
    unavailable_placeholder,
)
from .groq_whisper import GroqWhisperProvider
from .mock import MockTranscriptionProvider

__all__ = [
    "TranscriptionError",
    "TranscriptionProvider",
    "GroqWhisperProvider",
    "MockTranscriptionProvider",
    "build_transcription_provider",
    "transcribe_with_placeholder",
    "unavailable_placeholder",
]
