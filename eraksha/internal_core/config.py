from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


def _getenv_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return float(value)


def _getenv_list(name: str, default: list[str]) -> list[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


_DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:5500",
]

_SUPPORTED_TRANSCRIBE_PROVIDERS = {"groq", "mock"}


@dataclass(frozen=True)
class ServiceConfig:
    ERAKSHA_GROQ_API_KEY: str
    ERAKSHA_ALLOWED_ORIGINS: tuple[str, ...]
    ERAKSHA_FRONTEND_URL: str
    ERAKSHA_HOST: str
    ERAKSHA_PORT: int
    ERAKSHA_MAX_UPLOAD_MB: float
    ERAKSHA_UPLOAD_DIR: str
    ERAKSHA_TRANSCRIBE_PROVIDER: str
    ERAKSHA_TRANSCRIBE_MODEL: str
    ERAKSHA_CLASSIFY_MODEL: str
    ERAKSHA_PROVIDER_TIMEOUT_SEC: float
    ERAKSHA_CLASSIFY_MAX_RETRIES: int
    ERAKSHA_LOG_LEVEL: str

    @property
    def max_upload_bytes(self) -> int:
        return int(self.ERAKSHA_MAX_UPLOAD_MB * 1024 * 1024)

    @property
    def cors_origins(self) -> list[str]:
        origins = list(self.ERAKSHA_ALLOWED_ORIGINS)
        if self.ERAKSHA_FRONTEND_URL and self.ERAKSHA_FRONTEND_URL not in origins:
            origins.append(self.ERAKSHA_FRONTEND_URL)
        return origins

    def upload_dir_path(self, base_dir: Path | None = None) -> Path:
        # Relative paths resolve against the working directory.
        base = base_dir if base_dir is not None else Path.cwd()
        return (base / Path(self.ERAKSHA_UPLOAD_DIR).expanduser()).resolve()


def load_config() -> ServiceConfig:
    transcribe_provider = _getenv_str("ERAKSHA_TRANSCRIBE_PROVIDER", "groq").strip().lower()
    if transcribe_provider not in _SUPPORTED_TRANSCRIBE_PROVIDERS:
        raise ValueError(
            f"Unsupported ERAKSHA_TRANSCRIBE_PROVIDER: {transcribe_provider!r} "
            f"(expected one of {sorted(_SUPPORTED_TRANSCRIBE_PROVIDERS)})"
        )

    max_retries = _getenv_int("ERAKSHA_CLASSIFY_MAX_RETRIES", 1)
    if max_retries < 0:
        raise ValueError("ERAKSHA_CLASSIFY_MAX_RETRIES must be >= 0")

    return ServiceConfig(
        ERAKSHA_GROQ_API_KEY=_getenv_str(
            "ERAKSHA_GROQ_API_KEY",
            _getenv_str("GROQ_API_KEY", ""),
        ).strip(),
        ERAKSHA_ALLOWED_ORIGINS=tuple(
            _getenv_list("ERAKSHA_ALLOWED_ORIGINS", _DEFAULT_ALLOWED_ORIGINS)
        ),
        ERAKSHA_FRONTEND_URL=_getenv_str(
            "ERAKSHA_FRONTEND_URL",
            _getenv_str("FRONTEND_URL", ""),
        ).strip(),
        ERAKSHA_HOST=_getenv_str("ERAKSHA_HOST", "0.0.0.0"),
        ERAKSHA_PORT=_getenv_int("ERAKSHA_PORT", _getenv_int("PORT", 10000)),
        ERAKSHA_MAX_UPLOAD_MB=_getenv_float("ERAKSHA_MAX_UPLOAD_MB", 10.0),
        ERAKSHA_UPLOAD_DIR=_getenv_str("ERAKSHA_UPLOAD_DIR", "./uploads"),
        ERAKSHA_TRANSCRIBE_PROVIDER=transcribe_provider,
        ERAKSHA_TRANSCRIBE_MODEL=_getenv_str("ERAKSHA_TRANSCRIBE_MODEL", "whisper-large-v3-turbo"),
        ERAKSHA_CLASSIFY_MODEL=_getenv_str("ERAKSHA_CLASSIFY_MODEL", "openai/gpt-oss-120b"),
        ERAKSHA_PROVIDER_TIMEOUT_SEC=_getenv_float("ERAKSHA_PROVIDER_TIMEOUT_SEC", 60.0),
        ERAKSHA_CLASSIFY_MAX_RETRIES=max_retries,
        ERAKSHA_LOG_LEVEL=_getenv_str("ERAKSHA_LOG_LEVEL", "INFO"),
    )
