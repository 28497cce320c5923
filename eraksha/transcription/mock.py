from __future__ import annotations

from .base import TranscriptionProvider

MOCK_TRANSCRIPT = (
    "(mock) Hi, this is Priya from the dental clinic. "
    "Just calling to confirm your appointment tomorrow at ten. See you then!"
)


class MockTranscriptionProvider(TranscriptionProvider):
    def __init__(self, text: str = MOCK_TRANSCRIPT) -> None:
        self._text = text
        self.calls = 0

    def transcribe(self, audio_path: str, timeout_sec: float = 60.0) -> str:
        self.calls += 1
        return self._text

    def name(self) -> str:
        return "mock"
