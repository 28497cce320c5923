from __future__ import annotations

"""
Scam verdict adapter with strict output validation.

Design intent:
- Ask the hosted LLM for a four-field JSON verdict in provider JSON mode.
- Normalize the loosely-typed fields the model has been seen to return.
- Fail closed on unusable output: no verdict is better than a made-up one.
"""

import json
import logging
import math
import time
from dataclasses import dataclass
from typing import Any

import groq

from eraksha.internal_core.contracts import ScamVerdict
from eraksha.internal_core.provider import ProviderHandle

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are an AI scam detection system. Analyze the call transcript and respond ONLY in valid JSON.
Required JSON format:
{
  "is_scam": true | false,
  "confidence": number (0 to 1),
  "reasons": [string],
  "safe_reply": string
}"""

DEFAULT_SAFE_REPLY = (
    "Do not share personal, banking, or OTP details. "
    "Hang up and call the organisation back on its official number."
)

REQUIRED_FIELDS = ("is_scam", "confidence")
KNOWN_FIELDS = {"is_scam", "confidence", "reasons", "safe_reply"}

_TRUE_TOKENS = {"true", "yes", "1"}
_FALSE_TOKENS = {"false", "no", "0"}


class ScamClassifierError(RuntimeError):
    """Raised when the verdict cannot be produced or the reply is unusable."""


@dataclass(frozen=True)
class ScamClassifierResult:
    verdict: ScamVerdict
    debug: dict[str, Any]


class ScamClassifier:
    def __init__(
        self,
        handle: ProviderHandle,
        *,
        model: str = "openai/gpt-oss-120b",
        timeout_sec: float = 60.0,
        max_retries: int = 1,
    ) -> None:
        self._handle = handle
        self._model = model
        self._timeout_sec = timeout_sec
        self._max_retries = max(0, int(max_retries))

    @property
    def enabled(self) -> bool:
        return self._handle.enabled

    def classify(self, transcript: str) -> ScamClassifierResult:
        if not self._handle.enabled:
            raise ScamClassifierError(
                self._handle.disabled_reason
                or "Groq API key is missing. Please set GROQ_API_KEY in the environment."
            )

        started = time.perf_counter()
        raw, attempts = self._complete_with_retry(transcript)
        payload = _parse_json_object(raw)
        if payload is None:
            raise ScamClassifierError("AI Analysis failed: model output is not valid JSON.")

        verdict, notes = normalize_verdict(payload)
        debug = {
            "model": self._model,
            "attempts": attempts,
            "elapsed_ms": round((time.perf_counter() - started) * 1000.0, 2),
            **notes,
        }
        return ScamClassifierResult(verdict=verdict, debug=debug)

    def _complete_with_retry(self, transcript: str) -> tuple[str, int]:
        attempts = 0
        while True:
            attempts += 1
            try:
                return self._complete(transcript), attempts
            except groq.APIConnectionError as exc:
                # APITimeoutError is a subclass; both are transient.
                if attempts > self._max_retries:
                    raise ScamClassifierError(f"AI Analysis failed: {exc}") from exc
                logger.warning(
                    "classification transient error attempt=%d/%d error=%s",
                    attempts,
                    self._max_retries + 1,
                    exc,
                )
            except ScamClassifierError:
                raise
            except Exception as exc:
                raise ScamClassifierError(f"AI Analysis failed: {exc}") from exc

    def _complete(self, transcript: str) -> str:
        response = self._handle.client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"Transcript: {transcript}"},
            ],
            response_format={"type": "json_object"},
            timeout=self._timeout_sec,
        )
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise ScamClassifierError("AI Analysis failed: provider response has no choices.") from exc
        return str(content or "").strip()


def normalize_verdict(payload: dict[str, Any]) -> tuple[ScamVerdict, dict[str, Any]]:
    missing = [name for name in REQUIRED_FIELDS if payload.get(name) is None]
    if missing:
        raise ScamClassifierError(
            f"AI Analysis failed: model JSON missing required field(s): {', '.join(missing)}."
        )

    is_scam = _coerce_bool(payload["is_scam"])
    if is_scam is None:
        raise ScamClassifierError(
            f"AI Analysis failed: unrecognized is_scam value: {payload['is_scam']!r}."
        )

    raw_confidence = _coerce_float(payload["confidence"])
    if raw_confidence is None:
        raise ScamClassifierError(
            f"AI Analysis failed: confidence is not a number: {payload['confidence']!r}."
        )
    confidence = min(1.0, max(0.0, raw_confidence))

    reasons = _coerce_reasons(payload.get("reasons"))

    safe_reply = str(payload.get("safe_reply") or "").strip()
    defaults_applied: list[str] = []
    if not safe_reply:
        safe_reply = DEFAULT_SAFE_REPLY
        defaults_applied.append("safe_reply")
    if payload.get("reasons") is None:
        defaults_applied.append("reasons")

    notes = {
        "confidence_raw": raw_confidence,
        "confidence_clamped": confidence != raw_confidence,
        "defaults_applied": defaults_applied,
        "dropped_fields": sorted(set(payload) - KNOWN_FIELDS),
    }
    verdict = ScamVerdict(
        is_scam=is_scam,
        confidence=confidence,
        reasons=reasons,
        safe_reply=safe_reply,
    )
    return verdict, notes


def _coerce_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
    return None


def _coerce_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _coerce_reasons(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items = [value]
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        items = [value]
    return [str(item).strip() for item in items if item is not None and str(item).strip()]


def _parse_json_object(raw: str) -> dict[str, Any] | None:
    if not raw:
        return None
    try:
        data = json.loads(raw)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass

    extracted = _extract_first_json_object(raw)
    if not extracted:
        return None
    try:
        data = json.loads(extracted)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _extract_first_json_object(text: str) -> str:
    start = text.find("{")
    if start < 0:
        return ""
    depth = 0
    in_str = False
    escape = False
    for i, ch in enumerate(text[start:], start=start):
        if in_str:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_str = False
            continue
        if ch == '"':
            in_str = True
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return ""
