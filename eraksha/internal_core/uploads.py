from __future__ import annotations

"""
Upload receiver for call recordings.

Design intent:
- Reject missing, non-audio, or oversized uploads before any provider call.
- Never hold more than the configured ceiling plus one byte in memory.
- Starlette spools the file part to disk before `receive_upload` runs, so the
  on-disk bound comes from the API middleware: it rejects a Content-Length above
  the ceiling and chunked bodies that declare none.
- Stage accepted audio under a collision-free name and delete it on every exit path.
"""

import secrets
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from .contracts import UploadedAudio, UploadErrorCode

MISSING_FILE_MESSAGE = "No audio file uploaded"
INVALID_TYPE_MESSAGE = "Only audio files are allowed"

_KNOWN_AUDIO_SUFFIXES = {".wav", ".mp3", ".webm", ".ogg", ".m4a", ".mp4", ".flac", ".aac", ".opus"}


class UploadValidationError(ValueError):
    def __init__(self, code: UploadErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def format_upload_limit(max_bytes: int) -> str:
    mb = max_bytes / (1024 * 1024)
    return f"{mb:.3g}MB"


def check_declared_upload(upload: Any | None, *, max_bytes: int) -> None:
    if upload is None or not str(getattr(upload, "filename", "") or "").strip():
        raise UploadValidationError("MissingFile", MISSING_FILE_MESSAGE)

    content_type = str(getattr(upload, "content_type", "") or "").strip().lower()
    if not content_type.startswith("audio/"):
        raise UploadValidationError("InvalidType", INVALID_TYPE_MESSAGE)

    declared_size = getattr(upload, "size", None)
    if isinstance(declared_size, int) and declared_size > max_bytes:
        raise UploadValidationError(
            "TooLarge", f"Audio file exceeds the {format_upload_limit(max_bytes)} limit"
        )


async def receive_upload(upload: Any | None, *, max_bytes: int) -> UploadedAudio:
    """
    Validate a multipart upload and read it into memory.

    `upload` is a Starlette/FastAPI `UploadFile` (or anything exposing
    `filename`, `content_type` and an async `read(size)`).
    """
    check_declared_upload(upload, max_bytes=max_bytes)

    data = await upload.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise UploadValidationError(
            "TooLarge", f"Audio file exceeds the {format_upload_limit(max_bytes)} limit"
        )
    if not data:
        raise UploadValidationError("MissingFile", MISSING_FILE_MESSAGE)

    return UploadedAudio(
        data=data,
        mime_type=str(upload.content_type).strip().lower(),
        size_bytes=len(data),
        original_name=Path(str(upload.filename)).name,
    )


def _guess_audio_suffix(original_name: str, mime_type: str | None) -> str:
    suffix = Path(str(original_name or "")).suffix.lower()
    if suffix in _KNOWN_AUDIO_SUFFIXES:
        return suffix
    mt = str(mime_type or "").strip().lower()
    if "wav" in mt:
        return ".wav"
    if "mpeg" in mt or "mp3" in mt:
        return ".mp3"
    if "ogg" in mt:
        return ".ogg"
    if "mp4" in mt or "m4a" in mt:
        return ".m4a"
    if "flac" in mt:
        return ".flac"
    return ".webm"


def staged_file_name(audio: UploadedAudio, *, field_name: str = "audio") -> str:
    unique_suffix = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}"
    return f"{field_name}-{unique_suffix}{_guess_audio_suffix(audio.original_name, audio.mime_type)}"


@contextmanager
def staged_upload(
    audio: UploadedAudio,
    upload_dir: Path,
    *,
    field_name: str = "audio",
) -> Iterator[Path]:
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / staged_file_name(audio, field_name=field_name)
    # "xb" fails instead of overwriting a concurrent request's file.
    handle = path.open("xb")
    try:
        with handle:
            handle.write(audio.data)
        yield path
    finally:
        path.unlink(missing_ok=True)
