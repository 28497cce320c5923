from __future__ import annotations

import logging
import time

from ..internal_core.config import ServiceConfig
from ..internal_core.contracts import TranscriptOutcome
from ..internal_core.provider import ProviderHandle
from .base import TranscriptionError, TranscriptionProvider
from .groq_whisper import GroqWhisperProvider
from .mock import MockTranscriptionProvider

logger = logging.getLogger(__name__)

NO_SPEECH_PLACEHOLDER = "[No speech detected in recording]"


def unavailable_placeholder() -> str:
    return "[Transcription unavailable: speech-to-text provider is not configured]"


def failed_placeholder(reason: str) -> str:
    reason = (reason or "unknown error").replace("\n", " ").strip()
    return f"[Transcription failed: {reason}]"


def build_transcription_provider(cfg: ServiceConfig, handle: ProviderHandle) -> TranscriptionProvider:
    if cfg.ERAKSHA_TRANSCRIBE_PROVIDER == "mock":
        return MockTranscriptionProvider()
    return GroqWhisperProvider(handle, model=cfg.ERAKSHA_TRANSCRIBE_MODEL)


def transcribe_with_placeholder(
    provider: TranscriptionProvider,
    audio_path: str,
    *,
    timeout_sec: float = 60.0,
) -> TranscriptOutcome:
    """
    Transcribe `audio_path` without ever raising.

    Missing credentials and provider failures are folded into placeholder
    text so classification can still run on degraded input.
    """
    ok, reason = provider.available()
    if not ok:
        logger.warning("transcription skipped provider=%s reason=%s", provider.name(), reason)
        return TranscriptOutcome(text=unavailable_placeholder(), degraded=True, reason=reason)

    started = time.perf_counter()
    try:
        text = provider.transcribe(audio_path, timeout_sec=timeout_sec)
    except TranscriptionError as exc:
        logger.error(
            "transcription failed provider=%s code=%s error=%s",
            exc.provider_name,
            exc.code,
            exc.message,
        )
        return TranscriptOutcome(text=failed_placeholder(exc.message), degraded=True, reason=exc.code)
    except Exception as exc:
        logger.exception("transcription crashed provider=%s", provider.name())
        return TranscriptOutcome(text=failed_placeholder(str(exc)), degraded=True, reason="UNEXPECTED")

    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    if not text.strip():
        logger.warning("transcription empty provider=%s elapsed_ms=%s", provider.name(), elapsed_ms)
        return TranscriptOutcome(text=NO_SPEECH_PLACEHOLDER, degraded=True, reason="EMPTY_TRANSCRIPT")

    logger.info("transcription complete provider=%s elapsed_ms=%s chars=%d", provider.name(), elapsed_ms, len(text))
    return TranscriptOutcome(text=text, degraded=False)
