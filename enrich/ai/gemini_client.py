"""Gemini-backed text generation capability."""

from __future__ import annotations

import time
from typing import Any, Protocol

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..core.exceptions import (
    AuthError,
    ConfigurationError,
    EnrichError,
    QuotaError,
    RewriteError,
    SafetyBlockedError,
)
from ..settings import RewriteSettings
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

PROVIDER_NAME = "Google Gemini"


class TextGenerator(Protocol):
    """Anything that turns a system instruction plus prompt into text."""

    name: str

    async def generate(
        self,
        *,
        system_instruction: str,
        prompt: str,
        max_output_tokens: int | None = None,
    ) -> str: ...


def classify_provider_error(code: int | None, message: str) -> EnrichError:
    """Map a provider failure onto the pipeline's error taxonomy."""
    lowered = (message or "").lower()
    if code in (401, 403) or "api key" in lowered or "api_key" in lowered:
        return AuthError(f"Gemini rejected the API key: {message}")
    if code == 429 or "resource_exhausted" in lowered or "quota" in lowered:
        return QuotaError(f"Gemini quota exceeded: {message}")
    if "safety" in lowered or "blocked" in lowered:
        return SafetyBlockedError(f"Content was blocked by safety filters: {message}")
    return RewriteError(f"Failed to enhance article: {message}")


class GeminiTextGenerator:
    """Asynchronous wrapper over ``client.aio.models.generate_content``."""

    name = PROVIDER_NAME

    def __init__(self, client: genai.Client, settings: RewriteSettings) -> None:
        self._client = client
        self._settings = settings

    @classmethod
    def from_settings(cls, settings: RewriteSettings, *, api_key: str) -> "GeminiTextGenerator":
        return cls(cls.create_client(api_key), settings)

    @staticmethod
    def create_client(api_key: str | None) -> genai.Client:
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        return genai.Client(api_key=api_key)

    @property
    def model(self) -> str:
        return self._settings.model

    async def generate(
        self,
        *,
        system_instruction: str,
        prompt: str,
        max_output_tokens: int | None = None,
    ) -> str:
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=self._settings.temperature,
            top_p=self._settings.top_p,
            max_output_tokens=max_output_tokens or self._settings.max_output_tokens,
        )
        start = time.monotonic()
        LOGGER.info(
            "Gemini request start model=%s prompt_chars=%d",
            self._settings.model,
            len(prompt),
            extra={"event": "ai.request", "model": self._settings.model},
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=self._settings.model,
                contents=prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            raise classify_provider_error(exc.code, exc.message or str(exc)) from exc

        self._check_blocked(response)
        text = (response.text or "").strip()
        if not text:
            raise RewriteError("Gemini returned an empty response")
        LOGGER.info(
            "Gemini request succeeded in %.2fs",
            time.monotonic() - start,
            extra={"event": "ai.response", "model": self._settings.model, "chars": len(text)},
        )
        return text

    @staticmethod
    def _check_blocked(response: Any) -> None:
        feedback = getattr(response, "prompt_feedback", None)
        block_reason = getattr(feedback, "block_reason", None)
        if block_reason:
            raise SafetyBlockedError(f"Content was blocked by safety filters: {block_reason}")
        for candidate in getattr(response, "candidates", None) or []:
            if getattr(candidate, "finish_reason", None) == types.FinishReason.SAFETY:
                raise SafetyBlockedError("Content was blocked by safety filters: SAFETY")


__all__ = [
    "GeminiTextGenerator",
    "PROVIDER_NAME",
    "TextGenerator",
    "classify_provider_error",
]
