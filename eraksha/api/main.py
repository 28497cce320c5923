from __future__ import annotations

"""
Call analysis API surface for eRaksha backend.

Design intent:
- Keep API orchestration thin: receive upload, stage it, run the pipeline.
- Reject bad uploads before any provider call is made.
- Return the same `{success, ...}` envelope on every path.
"""

import logging
from pathlib import Path
from uuid import uuid4

from dotenv import load_dotenv
from fastapi import APIRouter, FastAPI, File, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from eraksha.classification.scam_classifier import ScamClassifier, ScamClassifierError
from eraksha.internal_core import audit
from eraksha.internal_core.config import ServiceConfig, load_config
from eraksha.internal_core.contracts import ErrorResponse, ProcessCallResponse, ScamVerdict
from eraksha.internal_core.pipeline import CallAnalysisPipeline, VerdictClassifier
from eraksha.internal_core.provider import ProviderHandle, build_provider_handle
from eraksha.internal_core.uploads import (
    UploadValidationError,
    format_upload_limit,
    receive_upload,
    staged_upload,
)
from eraksha.transcription import TranscriptionProvider, build_transcription_provider

logger = logging.getLogger(__name__)

LIVENESS_TEXT = "eRaksha backend is running"
AUDIO_FIELD_NAME = "audio"
# Multipart boundaries and part headers on top of the audio bytes.
_MULTIPART_OVERHEAD_BYTES = 64 * 1024
CONTENT_LENGTH_REQUIRED_MESSAGE = "Audio upload must declare a Content-Length"

router = APIRouter()


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


@router.get("/", response_class=PlainTextResponse)
async def liveness() -> str:
    return LIVENESS_TEXT


@router.get("/healthz")
async def healthz(request: Request) -> dict[str, str]:
    classifier = request.app.state.pipeline.classifier
    enabled = bool(getattr(classifier, "enabled", True))
    return {"status": "ok", "provider": "enabled" if enabled else "disabled"}


@router.post(
    "/process-call",
    response_model=ProcessCallResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def process_call(
    request: Request,
    audio: UploadFile | None = File(default=None),
) -> ProcessCallResponse | JSONResponse:
    cfg: ServiceConfig = request.app.state.config
    pipeline: CallAnalysisPipeline = request.app.state.pipeline
    upload_dir: Path = request.app.state.upload_dir
    request_id = uuid4().hex[:12]
    logger.info("/process-call hit request_id=%s", request_id)

    try:
        uploaded = await receive_upload(audio, max_bytes=cfg.max_upload_bytes)
    except UploadValidationError as exc:
        audit.log_event(request_id, "UPLOAD_REJECTED", exc.code, exc.message)
        raise

    audit.log_event(
        request_id,
        "UPLOAD_RECEIVED",
        "OK",
        f"name={uploaded.original_name} mime={uploaded.mime_type} size={uploaded.size_bytes}",
    )

    staged_name = ""
    try:
        with staged_upload(uploaded, upload_dir, field_name=AUDIO_FIELD_NAME) as audio_path:
            staged_name = audio_path.name
            result = await run_in_threadpool(pipeline.run, request_id, audio_path)
    except ScamClassifierError:
        raise
    except Exception as exc:
        logger.exception("Process error request_id=%s", request_id)
        audit.log_event(request_id, "ERROR", type(exc).__name__, str(exc))
        return _error_response(500, "Internal server error")
    finally:
        if staged_name:
            audit.log_event(request_id, "TEMP_FILE_REMOVED", "OK", staged_name)

    return ProcessCallResponse(
        transcript=result.transcript,
        analysis=ScamVerdict(
            is_scam=result.is_scam,
            confidence=result.confidence,
            reasons=result.reasons,
            safe_reply=result.safe_reply,
        ),
    )


async def _handle_upload_error(request: Request, exc: UploadValidationError) -> JSONResponse:
    return _error_response(400, exc.message)


async def _handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = str(errors[0].get("msg", "")) if errors else ""
    message = "Invalid upload request" + (f": {detail}" if detail else "")
    return _error_response(400, message)


async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail))


async def _handle_classifier_error(request: Request, exc: ScamClassifierError) -> JSONResponse:
    return _error_response(500, str(exc) or "AI Analysis failed")


def create_app(
    config: ServiceConfig | None = None,
    *,
    transcriber: TranscriptionProvider | None = None,
    classifier: VerdictClassifier | None = None,
    provider: ProviderHandle | None = None,
) -> FastAPI:
    cfg = config or load_config()
    if transcriber is None or classifier is None:
        provider = provider or build_provider_handle(cfg)
    if transcriber is None:
        transcriber = build_transcription_provider(cfg, provider)
    if classifier is None:
        classifier = ScamClassifier(
            provider,
            model=cfg.ERAKSHA_CLASSIFY_MODEL,
            timeout_sec=cfg.ERAKSHA_PROVIDER_TIMEOUT_SEC,
            max_retries=cfg.ERAKSHA_CLASSIFY_MAX_RETRIES,
        )

    app = FastAPI(title="eRaksha backend service")
    app.state.config = cfg
    app.state.upload_dir = cfg.upload_dir_path()
    app.state.pipeline = CallAnalysisPipeline(
        transcriber,
        classifier,
        timeout_sec=cfg.ERAKSHA_PROVIDER_TIMEOUT_SEC,
    )

    @app.middleware("http")
    async def log_and_bound_requests(request: Request, call_next):
        logger.info(
            "%s %s (Origin: %s)",
            request.method,
            request.url.path,
            request.headers.get("origin", "null"),
        )
        if request.method == "POST" and request.url.path == "/process-call":
            if "chunked" in request.headers.get("transfer-encoding", "").lower():
                logger.warning("rejecting chunked upload without content-length")
                return _error_response(400, CONTENT_LENGTH_REQUIRED_MESSAGE)
            declared = request.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > cfg.max_upload_bytes + _MULTIPART_OVERHEAD_BYTES:
                logger.warning("rejecting oversized body content_length=%s", declared)
                return _error_response(
                    400,
                    f"Audio file exceeds the {format_upload_limit(cfg.max_upload_bytes)} limit",
                )
        return await call_next(request)

    # Outermost: responses short-circuited above still carry CORS headers.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(StarletteHTTPException, _handle_http_error)
    app.add_exception_handler(UploadValidationError, _handle_upload_error)
    app.add_exception_handler(RequestValidationError, _handle_request_validation_error)
    app.add_exception_handler(ScamClassifierError, _handle_classifier_error)
    app.include_router(router)
    return app


load_dotenv()
app = create_app()


def run() -> None:
    import uvicorn

    cfg: ServiceConfig = app.state.config
    logging.basicConfig(
        level=getattr(logging, cfg.ERAKSHA_LOG_LEVEL.upper(), logging.INFO),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=cfg.ERAKSHA_HOST, port=cfg.ERAKSHA_PORT)


if __name__ == "__main__":
    run()
