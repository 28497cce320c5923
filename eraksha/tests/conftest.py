from pathlib import Path
from types import SimpleNamespace

import pytest

from eraksha.classification.scam_classifier import ScamClassifierResult
from eraksha.internal_core.config import ServiceConfig
from eraksha.internal_core.contracts import ScamVerdict
from eraksha.transcription import TranscriptionError, TranscriptionProvider


def make_config(upload_dir: Path, **overrides) -> ServiceConfig:
    values = dict(
        ERAKSHA_GROQ_API_KEY="",
        ERAKSHA_ALLOWED_ORIGINS=("http://localhost:5173",),
        ERAKSHA_FRONTEND_URL="",
        ERAKSHA_HOST="127.0.0.1",
        ERAKSHA_PORT=10000,
        ERAKSHA_MAX_UPLOAD_MB=10.0,
        ERAKSHA_UPLOAD_DIR=str(upload_dir),
        ERAKSHA_TRANSCRIBE_PROVIDER="groq",
        ERAKSHA_TRANSCRIBE_MODEL="whisper-large-v3-turbo",
        ERAKSHA_CLASSIFY_MODEL="openai/gpt-oss-120b",
        ERAKSHA_PROVIDER_TIMEOUT_SEC=5.0,
        ERAKSHA_CLASSIFY_MAX_RETRIES=1,
        ERAKSHA_LOG_LEVEL="INFO",
    )
    values.update(overrides)
    return ServiceConfig(**values)


class RecordingTranscriber(TranscriptionProvider):
    def __init__(self, text: str = "Hello, just calling to say happy birthday!", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: list[dict] = []

    def transcribe(self, audio_path: str, timeout_sec: float = 60.0) -> str:
        path = Path(audio_path)
        self.calls.append(
            {
                "path": path,
                "existed": path.exists(),
                "bytes": path.read_bytes() if path.exists() else b"",
                "timeout_sec": timeout_sec,
            }
        )
        if self.error is not None:
            raise self.error
        return self.text

    def name(self) -> str:
        return "recording"


class RecordingClassifier:
    enabled = True

    def __init__(self, verdict: ScamVerdict | None = None, error: Exception | None = None):
        self.verdict = verdict or ScamVerdict(
            is_scam=False,
            confidence=0.93,
            reasons=[],
            safe_reply="Thanks for calling!",
        )
        self.error = error
        self.transcripts: list[str] = []

    def classify(self, transcript: str) -> ScamClassifierResult:
        self.transcripts.append(transcript)
        if self.error is not None:
            raise self.error
        return ScamClassifierResult(verdict=self.verdict, debug={"dropped_fields": []})


def fake_chat_client(*contents):
    """Groq-shaped client whose chat completions replay `contents` in order.

    An item that is an Exception is raised instead of returned.
    """
    calls: list[dict] = []
    queue = list(contents)

    def create(**kwargs):
        calls.append(kwargs)
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=item))])

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    return client, calls


@pytest.fixture
def upload_dir(tmp_path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


def fake_transcription_error(message: str = "provider unreachable") -> TranscriptionError:
    return TranscriptionError("PROVIDER_ERROR", message, "recording")
