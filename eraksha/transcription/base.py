from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Tuple


class TranscriptionError(RuntimeError):
    def __init__(self, code: str, message: str, provider_name: str):
        super().__init__(message)
        self.code = code
        self.message = message
        self.provider_name = provider_name


class TranscriptionProvider(ABC):
    @abstractmethod
    def transcribe(self, audio_path: str, timeout_sec: float = 60.0) -> str: ...

    @abstractmethod
    def name(self) -> str: ...

    def available(self) -> Tuple[bool, str]:
        return True, ""
