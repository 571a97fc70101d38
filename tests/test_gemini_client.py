"""Tests for the Gemini text generator and provider error mapping."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from enrich.ai.gemini_client import GeminiTextGenerator, classify_provider_error
from enrich.core.exceptions import (
    AuthError,
    ConfigurationError,
    QuotaError,
    RewriteError,
    SafetyBlockedError,
)
from enrich.settings import RewriteSettings


class FakeModels:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def _client(models: FakeModels) -> Any:
    return SimpleNamespace(aio=SimpleNamespace(models=models))


def _response(text: str | None, *, block_reason: str | None = None, finish_reason: Any = None) -> Any:
    feedback = SimpleNamespace(block_reason=block_reason) if block_reason else None
    candidates = [SimpleNamespace(finish_reason=finish_reason)] if finish_reason else []
    return SimpleNamespace(text=text, prompt_feedback=feedback, candidates=candidates)


@pytest.mark.parametrize(
    ("code", "message", "expected"),
    [
        (401, "unauthorized", AuthError),
        (400, "API key not valid. Please pass a valid API key.", AuthError),
        (429, "too many requests", QuotaError),
        (400, "RESOURCE_EXHAUSTED", QuotaError),
        (400, "You exceeded your current quota", QuotaError),
        (400, "Response was blocked due to safety", SafetyBlockedError),
        (500, "internal", RewriteError),
        (None, "", RewriteError),
    ],
)
def test_classify_provider_error(code: int | None, message: str, expected: type[Exception]) -> None:
    assert type(classify_provider_error(code, message)) is expected


@pytest.mark.asyncio
async def test_generate_passes_generation_config() -> None:
    models = FakeModels(_response("  # Title\nBody  "))
    generator = GeminiTextGenerator(_client(models), RewriteSettings())

    text = await generator.generate(system_instruction="Be helpful.", prompt="Rewrite this")

    assert text == "# Title\nBody"
    call = models.calls[0]
    assert call["model"] == "gemini-2.0-flash"
    assert call["contents"] == "Rewrite this"
    config = call["config"]
    assert config.system_instruction == "Be helpful."
    assert config.temperature == pytest.approx(0.7)
    assert config.top_p == pytest.approx(0.95)
    assert config.max_output_tokens == 8192


@pytest.mark.asyncio
async def test_generate_honours_token_override() -> None:
    models = FakeModels(_response("ok"))
    generator = GeminiTextGenerator(_client(models), RewriteSettings())
    await generator.generate(system_instruction="s", prompt="p", max_output_tokens=500)
    assert models.calls[0]["config"].max_output_tokens == 500


@pytest.mark.asyncio
async def test_api_errors_are_classified() -> None:
    error = genai_errors.APIError(
        429, {"error": {"code": 429, "message": "Resource exhausted", "status": "RESOURCE_EXHAUSTED"}}
    )
    generator = GeminiTextGenerator(_client(FakeModels(error=error)), RewriteSettings())
    with pytest.raises(QuotaError):
        await generator.generate(system_instruction="s", prompt="p")


@pytest.mark.asyncio
async def test_blocked_prompt_raises_safety_error() -> None:
    generator = GeminiTextGenerator(
        _client(FakeModels(_response(None, block_reason="SAFETY"))), RewriteSettings()
    )
    with pytest.raises(SafetyBlockedError):
        await generator.generate(system_instruction="s", prompt="p")


@pytest.mark.asyncio
async def test_safety_finish_reason_raises_safety_error() -> None:
    response = _response("partial", finish_reason=types.FinishReason.SAFETY)
    generator = GeminiTextGenerator(_client(FakeModels(response)), RewriteSettings())
    with pytest.raises(SafetyBlockedError):
        await generator.generate(system_instruction="s", prompt="p")


@pytest.mark.asyncio
async def test_empty_text_is_a_rewrite_error() -> None:
    generator = GeminiTextGenerator(_client(FakeModels(_response(""))), RewriteSettings())
    with pytest.raises(RewriteError):
        await generator.generate(system_instruction="s", prompt="p")


def test_create_client_requires_key() -> None:
    with pytest.raises(ConfigurationError):
        GeminiTextGenerator.create_client(None)
