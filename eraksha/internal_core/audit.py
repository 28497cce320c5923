from __future__ import annotations

import datetime as _dt
import logging
from typing import Optional

from .contracts import AuditEvent, AuditEventType

logger = logging.getLogger("eraksha.audit")

_WARNING_EVENTS = {"UPLOAD_REJECTED", "TRANSCRIPTION_DEGRADED"}
_ERROR_EVENTS = {"CLASSIFICATION_FAILED", "ERROR"}


def _ts_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat()


def _sanitize_detail(detail: str) -> str:
    # IMPORTANT: Never include transcript text or audio bytes in detail.
    detail = (detail or "").replace("\n", " ").strip()
    if len(detail) > 200:
        detail = detail[:200] + "..."
    return detail


def log_event(
    request_id: str,
    event_type: AuditEventType,
    code: str,
    detail: str,
    duration_ms: Optional[int] = None,
) -> AuditEvent:
    event = AuditEvent(
        ts_iso=_ts_iso(),
        request_id=request_id,
        type=event_type,
        code=code,
        detail=_sanitize_detail(detail),
        duration_ms=duration_ms,
    )
    if event_type in _ERROR_EVENTS:
        level = logging.ERROR
    elif event_type in _WARNING_EVENTS:
        level = logging.WARNING
    else:
        level = logging.INFO
    logger.log(
        level,
        "audit request_id=%s type=%s code=%s duration_ms=%s detail=%s",
        event.request_id,
        event.type,
        event.code,
        event.duration_ms,
        event.detail,
    )
    return event
