from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

UploadErrorCode = Literal["MissingFile", "InvalidType", "TooLarge"]


class UploadedAudio(BaseModel):
    model_config = ConfigDict(extra="forbid")

    data: bytes = Field(repr=False)
    mime_type: str
    size_bytes: int = Field(ge=0)
    original_name: str = ""


class TranscriptOutcome(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str
    degraded: bool = False
    reason: str = ""


class ScamVerdict(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_scam: bool
    confidence: float = Field(ge=0.0, le=1.0)
    reasons: List[str] = Field(default_factory=list)
    safe_reply: str = Field(min_length=1)


class AnalysisResult(ScamVerdict):
    transcript: str


class ProcessCallResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: Literal[True] = True
    transcript: str
    analysis: ScamVerdict


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    success: Literal[False] = False
    error: str


AuditEventType = Literal[
    "UPLOAD_RECEIVED",
    "UPLOAD_REJECTED",
    "TRANSCRIPTION_DONE",
    "TRANSCRIPTION_DEGRADED",
    "CLASSIFICATION_DONE",
    "CLASSIFICATION_FAILED",
    "TEMP_FILE_REMOVED",
    "ERROR",
]


class AuditEvent(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ts_iso: str
    request_id: str
    type: AuditEventType
    code: str
    detail: str
    duration_ms: Optional[int] = None
