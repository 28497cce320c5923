from __future__ import annotations

from pathlib import Path
from typing import Tuple

from ..internal_core.provider import ProviderHandle
from .base import TranscriptionError, TranscriptionProvider


class GroqWhisperProvider(TranscriptionProvider):
    def __init__(self, handle: ProviderHandle, model: str = "whisper-large-v3-turbo") -> None:
        self._handle = handle
        self._model = model

    def name(self) -> str:
        return "groq_whisper"

    def available(self) -> Tuple[bool, str]:
        if not self._handle.enabled:
            return False, self._handle.disabled_reason or "provider disabled"
        return True, ""

    def transcribe(self, audio_path: str, timeout_sec: float = 60.0) -> str:
        ok, reason = self.available()
        if not ok:
            raise TranscriptionError("PROVIDER_DISABLED", reason, self.name())

        path = Path(audio_path)
        if not path.exists():
            raise TranscriptionError("AUDIO_NOT_FOUND", f"audio file not found: {path}", self.name())

        try:
            with path.open("rb") as f:
                result = self._handle.client.audio.transcriptions.create(
                    file=(path.name, f),
                    model=self._model,
                    response_format="json",
                    timeout=timeout_sec,
                )
        except Exception as exc:
            raise TranscriptionError("PROVIDER_ERROR", str(exc), self.name()) from exc

        text = getattr(result, "text", None)
        if text is None and isinstance(result, dict):
            text = result.get("text")
        if not isinstance(text, str):
            raise TranscriptionError(
                "MALFORMED_RESPONSE", "transcription response has no text field", self.name()
            )
        return text.strip()
