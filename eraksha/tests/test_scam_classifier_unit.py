import groq
import httpx
import pytest

from conftest import fake_chat_client
from eraksha.classification.scam_classifier import (
    DEFAULT_SAFE_REPLY,
    SYSTEM_PROMPT,
    ScamClassifier,
    ScamClassifierError,
    normalize_verdict,
)
from eraksha.internal_core.provider import ProviderHandle


def _connection_error() -> groq.APIConnectionError:
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    return groq.APIConnectionError(request=request)


def _classifier(*contents, max_retries: int = 1):
    client, calls = fake_chat_client(*contents)
    classifier = ScamClassifier(
        ProviderHandle(client=client),
        model="test-model",
        timeout_sec=7.0,
        max_retries=max_retries,
    )
    return classifier, calls


def test_classify_sends_fixed_prompt_in_json_mode() -> None:
    classifier, calls = _classifier(
        '{"is_scam": true, "confidence": 0.91, "reasons": ["Asked for OTP"], "safe_reply": "I will call my bank directly."}'
    )

    result = classifier.classify("Please read me the OTP you just received.")

    assert result.verdict.is_scam is True
    assert result.verdict.confidence == pytest.approx(0.91)
    assert result.verdict.reasons == ["Asked for OTP"]
    assert result.verdict.safe_reply == "I will call my bank directly."
    assert result.debug["attempts"] == 1

    kwargs = calls[0]
    assert kwargs["model"] == "test-model"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["timeout"] == 7.0
    assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert kwargs["messages"][1] == {
        "role": "user",
        "content": "Transcript: Please read me the OTP you just received.",
    }


def test_classify_accepts_json_wrapped_in_prose() -> None:
    classifier, _ = _classifier(
        'Here is my answer: {"is_scam": false, "confidence": 0.2, "reasons": [], "safe_reply": "Sounds fine."} Thanks.'
    )
    result = classifier.classify("hi mum")
    assert result.verdict.is_scam is False
    assert result.verdict.safe_reply == "Sounds fine."


def test_classify_rejects_non_json_reply() -> None:
    classifier, _ = _classifier("I think this is probably a scam.")
    with pytest.raises(ScamClassifierError, match="not valid JSON"):
        classifier.classify("transcript")


def test_classify_disabled_provider_fails_without_calls() -> None:
    classifier = ScamClassifier(ProviderHandle.disabled("Groq API key is missing."))
    with pytest.raises(ScamClassifierError, match="API key is missing"):
        classifier.classify("transcript")
    assert classifier.enabled is False


def test_classify_retries_once_on_connection_error() -> None:
    classifier, calls = _classifier(
        _connection_error(),
        '{"is_scam": false, "confidence": 0.1, "reasons": [], "safe_reply": "ok"}',
    )
    result = classifier.classify("transcript")
    assert result.verdict.is_scam is False
    assert result.debug["attempts"] == 2
    assert len(calls) == 2


def test_classify_persistent_connection_error_propagates() -> None:
    classifier, calls = _classifier(_connection_error(), max_retries=1)
    with pytest.raises(ScamClassifierError, match="AI Analysis failed") as excinfo:
        classifier.classify("transcript")
    assert isinstance(excinfo.value.__cause__, groq.APIConnectionError)
    assert len(calls) == 2


def test_classify_does_not_retry_non_transient_errors() -> None:
    classifier, calls = _classifier(RuntimeError("model overloaded"))
    with pytest.raises(ScamClassifierError, match="AI Analysis failed: model overloaded"):
        classifier.classify("transcript")
    assert len(calls) == 1


@pytest.mark.parametrize(
    "raw, expected",
    [
        (True, True),
        (False, False),
        ("true", True),
        (" FALSE ", False),
        ("yes", True),
        ("no", False),
        (1, True),
        (0, False),
    ],
)
def test_normalize_verdict_accepts_boolean_forms(raw, expected) -> None:
    verdict, _ = normalize_verdict({"is_scam": raw, "confidence": 0.5})
    assert verdict.is_scam is expected


@pytest.mark.parametrize("raw", ["maybe", 2, [True], {"value": True}])
def test_normalize_verdict_rejects_unrecognized_is_scam(raw) -> None:
    with pytest.raises(ScamClassifierError, match="is_scam"):
        normalize_verdict({"is_scam": raw, "confidence": 0.5})


@pytest.mark.parametrize("raw, expected", [(1.7, 1.0), (-0.2, 0.0), ("0.8", 0.8), (1, 1.0)])
def test_normalize_verdict_clamps_confidence(raw, expected) -> None:
    verdict, notes = normalize_verdict({"is_scam": True, "confidence": raw})
    assert verdict.confidence == pytest.approx(expected)
    assert 0.0 <= verdict.confidence <= 1.0
    assert notes["confidence_clamped"] is (float(raw) != expected)


def test_normalize_verdict_rejects_missing_required_fields() -> None:
    with pytest.raises(ScamClassifierError, match="is_scam, confidence"):
        normalize_verdict({"reasons": ["x"], "safe_reply": "y"})


def test_normalize_verdict_rejects_non_numeric_confidence() -> None:
    with pytest.raises(ScamClassifierError, match="confidence is not a number"):
        normalize_verdict({"is_scam": True, "confidence": "high"})


def test_normalize_verdict_default_fills_optional_fields() -> None:
    verdict, notes = normalize_verdict({"is_scam": False, "confidence": 0.3})
    assert verdict.reasons == []
    assert verdict.safe_reply == DEFAULT_SAFE_REPLY
    assert notes["defaults_applied"] == ["safe_reply", "reasons"]


def test_normalize_verdict_wraps_single_reason_and_drops_blanks() -> None:
    verdict, _ = normalize_verdict(
        {"is_scam": True, "confidence": 0.9, "reasons": "Urgent payment demand", "safe_reply": " Hang up. "}
    )
    assert verdict.reasons == ["Urgent payment demand"]
    assert verdict.safe_reply == "Hang up."

    verdict, _ = normalize_verdict({"is_scam": True, "confidence": 0.9, "reasons": ["a", "", "  ", None, "b"]})
    assert verdict.reasons == ["a", "b"]


def test_normalize_verdict_drops_extra_fields() -> None:
    verdict, notes = normalize_verdict(
        {"is_scam": True, "confidence": 0.9, "risk_level": "high", "language": "en"}
    )
    assert "risk_level" not in verdict.model_dump()
    assert notes["dropped_fields"] == ["language", "risk_level"]
