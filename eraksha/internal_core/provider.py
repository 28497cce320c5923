from __future__ import annotations

"""
Credentialed client handle for the hosted AI provider.

Design intent:
- Build the provider client once at startup and pass it to the adapters.
- Represent missing credentials as an explicit disabled state, not a None global.
"""

import logging
from dataclasses import dataclass
from typing import Any

from groq import Groq

from .config import ServiceConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderHandle:
    client: Any | None
    disabled_reason: str = ""

    @property
    def enabled(self) -> bool:
        return self.client is not None

    @classmethod
    def disabled(cls, reason: str) -> "ProviderHandle":
        return cls(client=None, disabled_reason=reason)


def build_provider_handle(cfg: ServiceConfig) -> ProviderHandle:
    if not cfg.ERAKSHA_GROQ_API_KEY:
        logger.warning(
            "Groq API key missing (ERAKSHA_GROQ_API_KEY / GROQ_API_KEY). "
            "Server will start, but transcription is degraded and AI analysis will fail."
        )
        return ProviderHandle.disabled(
            "Groq API key is missing. Please set GROQ_API_KEY in the environment."
        )

    logger.info("Groq API key found. Initializing Groq client...")
    # Retries are owned by the adapters so that they stay bounded and visible.
    client = Groq(
        api_key=cfg.ERAKSHA_GROQ_API_KEY,
        timeout=cfg.ERAKSHA_PROVIDER_TIMEOUT_SEC,
        max_retries=0,
    )
    return ProviderHandle(client=client)
