from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Protocol

from . import audit
from .contracts import AnalysisResult, TranscriptOutcome
from ..classification.scam_classifier import ScamClassifierError, ScamClassifierResult
from ..transcription import TranscriptionProvider, transcribe_with_placeholder

logger = logging.getLogger(__name__)


class VerdictClassifier(Protocol):
    def classify(self, transcript: str) -> ScamClassifierResult: ...


def _elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000.0))


class CallAnalysisPipeline:
    """Transcribe a staged recording, then classify the transcript."""

    def __init__(
        self,
        transcriber: TranscriptionProvider,
        classifier: VerdictClassifier,
        *,
        timeout_sec: float = 60.0,
    ) -> None:
        self.transcriber = transcriber
        self.classifier = classifier
        self.timeout_sec = timeout_sec

    def transcribe(self, request_id: str, audio_path: Path) -> TranscriptOutcome:
        started = time.perf_counter()
        outcome = transcribe_with_placeholder(
            self.transcriber, str(audio_path), timeout_sec=self.timeout_sec
        )
        if outcome.degraded:
            audit.log_event(
                request_id,
                "TRANSCRIPTION_DEGRADED",
                outcome.reason or "DEGRADED",
                f"provider={self.transcriber.name()}",
                duration_ms=_elapsed_ms(started),
            )
        else:
            audit.log_event(
                request_id,
                "TRANSCRIPTION_DONE",
                "OK",
                f"provider={self.transcriber.name()} chars={len(outcome.text)}",
                duration_ms=_elapsed_ms(started),
            )
        return outcome

    def classify(self, request_id: str, outcome: TranscriptOutcome) -> AnalysisResult:
        if outcome.degraded:
            # The classifier cannot tell placeholder text from speech.
            logger.warning(
                "classifying placeholder transcript request_id=%s reason=%s",
                request_id,
                outcome.reason,
            )

        started = time.perf_counter()
        try:
            result = self.classifier.classify(outcome.text)
        except ScamClassifierError as exc:
            audit.log_event(
                request_id,
                "CLASSIFICATION_FAILED",
                type(exc.__cause__).__name__ if exc.__cause__ else "ScamClassifierError",
                str(exc),
                duration_ms=_elapsed_ms(started),
            )
            raise

        verdict = result.verdict
        audit.log_event(
            request_id,
            "CLASSIFICATION_DONE",
            "OK",
            f"is_scam={verdict.is_scam} confidence={verdict.confidence:.2f} "
            f"reasons={len(verdict.reasons)} dropped={result.debug.get('dropped_fields', [])}",
            duration_ms=_elapsed_ms(started),
        )
        return AnalysisResult(transcript=outcome.text, **verdict.model_dump())

    def run(self, request_id: str, audio_path: Path) -> AnalysisResult:
        outcome = self.transcribe(request_id, audio_path)
        return self.classify(request_id, outcome)
