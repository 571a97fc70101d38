"""Tests for prompt construction and rewrite post-processing."""

from __future__ import annotations

import pytest

from enrich.ai.rewrite_engine import RewriteEngine, build_references_section, split_title
from enrich.core.exceptions import ConfigurationError, QuotaError, RewriteError
from enrich.services.models import Article, ReferenceArticle
from enrich.settings import RewriteSettings


class StubGenerator:
    name = "Stub AI"

    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[dict[str, object]] = []

    async def generate(self, *, system_instruction: str, prompt: str, max_output_tokens: int | None = None) -> str:
        self.calls.append(
            {
                "system_instruction": system_instruction,
                "prompt": prompt,
                "max_output_tokens": max_output_tokens,
            }
        )
        if self.error is not None:
            raise self.error
        return self.reply


def _original() -> Article:
    return Article(
        id="a" * 24,
        title="Chatbots for Small Business",
        url="https://beyondchats.example/blogs/chatbots",
        content="Chatbots help small teams answer questions quickly.",
    )


def _reference(index: int, **overrides: object) -> ReferenceArticle:
    data: dict[str, object] = {
        "title": f"Reference {index}",
        "url": f"https://ref{index}.example.com/article",
        "content": f"Reference body {index}. " * 10,
        "display_link": f"ref{index}.example.com",
        "snippet": f"Snippet {index}",
        "word_count": 30,
    }
    data.update(overrides)
    return ReferenceArticle(**data)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_rewrite_extracts_title_and_appends_references() -> None:
    generator = StubGenerator("# Better Chatbots\n\n## Why it matters\n\nBody text here.")
    engine = RewriteEngine(generator, RewriteSettings())

    result = await engine.rewrite(_original(), [_reference(1), _reference(2, snippet="")])

    assert result.title == "Better Chatbots"
    assert result.original_title == "Chatbots for Small Business"
    assert result.content.startswith("## Why it matters\n\nBody text here.")
    assert "## References" in result.content
    assert "1. **[Reference 1](https://ref1.example.com/article)** - ref1.example.com\n   - Snippet 1\n" in result.content
    assert "2. **[Reference 2](https://ref2.example.com/article)** - ref2.example.com\n\n" in result.content
    assert result.word_count == len(result.content.split())
    assert [ref.source for ref in result.references] == ["ref1.example.com", "ref2.example.com"]
    assert result.ai_provider == "Stub AI"


@pytest.mark.asyncio
async def test_rewrite_keeps_original_title_without_heading() -> None:
    engine = RewriteEngine(StubGenerator("Plain body without a heading."), RewriteSettings())
    result = await engine.rewrite(_original(), [_reference(1)])
    assert result.title == "Chatbots for Small Business"
    assert result.content.startswith("Plain body without a heading.")


@pytest.mark.asyncio
async def test_four_hundred_words_read_in_two_minutes() -> None:
    body = " ".join(["word"] * 400)
    engine = RewriteEngine(StubGenerator(f"# Title\n{body}"), RewriteSettings())

    result = await engine.rewrite(_original(), [])

    assert result.word_count == 400
    assert result.reading_time == "2 min read"
    assert "## References" not in result.content


@pytest.mark.asyncio
async def test_prompt_embeds_original_and_truncated_references() -> None:
    generator = StubGenerator("# T\nbody")
    engine = RewriteEngine(generator, RewriteSettings())
    long_ref = _reference(1, content="x" * 2500)

    await engine.rewrite(_original(), [long_ref, _reference(2), _reference(3)])

    call = generator.calls[0]
    prompt = str(call["prompt"])
    assert call["system_instruction"] == "You are a professional content writer and SEO expert."
    assert "Title: Chatbots for Small Business" in prompt
    assert "Content: Chatbots help small teams answer questions quickly." in prompt
    assert "URL: https://ref1.example.com/article" in prompt
    assert "x" * 2000 in prompt
    assert "x" * 2001 not in prompt
    assert "ref3.example.com" not in prompt
    assert "800-2000 words" in prompt


@pytest.mark.asyncio
async def test_only_two_references_are_cited() -> None:
    engine = RewriteEngine(StubGenerator("# T\nbody"), RewriteSettings())
    result = await engine.rewrite(_original(), [_reference(1), _reference(2), _reference(3)])
    assert len(result.references) == 2
    assert "Reference 3" not in result.content


@pytest.mark.asyncio
async def test_missing_generator_is_a_configuration_error() -> None:
    engine = RewriteEngine(None, RewriteSettings())
    with pytest.raises(ConfigurationError):
        await engine.rewrite(_original(), [_reference(1)])


@pytest.mark.asyncio
async def test_unexpected_generator_failure_becomes_rewrite_error() -> None:
    engine = RewriteEngine(StubGenerator(error=ValueError("bad payload")), RewriteSettings())
    with pytest.raises(RewriteError, match="bad payload"):
        await engine.rewrite(_original(), [_reference(1)])


@pytest.mark.asyncio
async def test_classified_provider_errors_propagate() -> None:
    engine = RewriteEngine(StubGenerator(error=QuotaError("quota")), RewriteSettings())
    with pytest.raises(QuotaError):
        await engine.rewrite(_original(), [_reference(1)])


@pytest.mark.asyncio
async def test_seo_metadata_parses_json_reply() -> None:
    reply = '```json\n{"metaDescription": "Short", "keywords": "a, b", "slug": "better-chatbots"}\n```'
    engine = RewriteEngine(StubGenerator(reply), RewriteSettings())
    metadata = await engine.seo_metadata("Title", "Content")
    assert metadata == {"meta_description": "Short", "keywords": "a, b", "slug": "better-chatbots"}


@pytest.mark.asyncio
async def test_seo_metadata_returns_empty_fields_on_failure() -> None:
    engine = RewriteEngine(StubGenerator("not json"), RewriteSettings())
    metadata = await engine.seo_metadata("Title", "Content")
    assert metadata == {"meta_description": "", "keywords": "", "slug": ""}


@pytest.mark.asyncio
async def test_summarize_uses_first_3000_characters() -> None:
    generator = StubGenerator("  A short summary.  ")
    engine = RewriteEngine(generator, RewriteSettings())
    summary = await engine.summarize("y" * 5000)
    assert summary == "A short summary."
    prompt = str(generator.calls[0]["prompt"])
    assert "y" * 3000 in prompt and "y" * 3001 not in prompt
    assert generator.calls[0]["max_output_tokens"] == 500


def test_split_title_ignores_second_level_headings() -> None:
    assert split_title("## Not a title\nbody", "Fallback") == ("Fallback", "## Not a title\nbody")


def test_references_section_empty_without_references() -> None:
    assert build_references_section([]) == ""
