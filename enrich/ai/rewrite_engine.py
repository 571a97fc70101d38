"""Rewrite an article in the style of its reference pages."""

from __future__ import annotations

import json
import re
from typing import Sequence

from ..core.exceptions import ConfigurationError, EnrichError, RewriteError
from ..services.models import Article, Citation, EnhancedContent, ReferenceArticle, utcnow
from ..settings import RewriteSettings
from ..utils.logging import get_logger
from ..utils.text import reading_time, word_count
from .gemini_client import TextGenerator
from .prompts import (
    SEO_SYSTEM_INSTRUCTION,
    SUMMARY_SYSTEM_INSTRUCTION,
    build_rewrite_prompt,
    build_seo_prompt,
    build_summary_prompt,
)

LOGGER = get_logger(__name__)

MAX_REFERENCES = 2
_TITLE_PATTERN = re.compile(r"^#\s+(.+?)[\n\r]")
_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")

REFERENCES_HEADER = (
    "\n\n---\n\n## References\n\n"
    "*This article was enhanced based on top-ranking content from Google Search. "
    "Below are the reference sources:*\n\n"
)


def split_title(text: str, fallback: str) -> tuple[str, str]:
    """Return ``(title, body)``; a leading H1 line becomes the title."""
    body = text.strip()
    match = _TITLE_PATTERN.match(body)
    if not match:
        return fallback, body
    return match.group(1).strip(), body.replace(match.group(0), "", 1).strip()


def build_references_section(references: Sequence[ReferenceArticle]) -> str:
    if not references:
        return ""
    lines = [REFERENCES_HEADER]
    for index, reference in enumerate(references, start=1):
        lines.append(f"{index}. **[{reference.title}]({reference.url})** - {reference.source}\n")
        if reference.snippet:
            lines.append(f"   - {reference.snippet}\n")
        lines.append("\n")
    return "".join(lines)


class RewriteEngine:
    """Prompt the text generator and post-process its markdown."""

    def __init__(self, generator: TextGenerator | None, settings: RewriteSettings) -> None:
        self._generator = generator
        self._settings = settings

    @property
    def provider_name(self) -> str:
        return self._generator.name if self._generator else ""

    async def rewrite(
        self, original: Article, references: Sequence[ReferenceArticle]
    ) -> EnhancedContent:
        used = list(references[:MAX_REFERENCES])
        prompt = build_rewrite_prompt(
            original, used, preview_chars=self._settings.reference_preview_chars
        )
        LOGGER.info(
            "Enhancing %r with %d references",
            original.title,
            len(used),
            extra={"event": "rewrite.start", "article_id": original.id, "references": len(used)},
        )
        raw = await self._generate(self._settings.system_instruction, prompt)

        title, body = split_title(raw, original.title)
        content = f"{body}\n\n{build_references_section(used)}" if used else body
        words = word_count(content)
        return EnhancedContent(
            title=title,
            content=content,
            original_title=original.title,
            word_count=words,
            reading_time=reading_time(words),
            references=[
                Citation(title=ref.title, url=ref.url, source=ref.source) for ref in used
            ],
            enhanced_at=utcnow(),
            ai_provider=self.provider_name,
        )

    async def summarize(self, content: str) -> str:
        summary = await self._generate(
            SUMMARY_SYSTEM_INSTRUCTION, build_summary_prompt(content), max_output_tokens=500
        )
        return summary.strip()

    async def seo_metadata(self, title: str, content: str) -> dict[str, str]:
        empty = {"meta_description": "", "keywords": "", "slug": ""}
        try:
            raw = await self._generate(
                SEO_SYSTEM_INSTRUCTION, build_seo_prompt(title, content), max_output_tokens=500
            )
            data = json.loads(_CODE_FENCE.sub("", raw.strip()))
        except (EnrichError, ValueError) as exc:
            LOGGER.warning(
                "SEO metadata generation failed: %s",
                exc,
                extra={"event": "rewrite.seo_failed", "error_type": type(exc).__name__},
            )
            return empty
        if not isinstance(data, dict):
            return empty
        return {
            "meta_description": str(data.get("metaDescription") or ""),
            "keywords": str(data.get("keywords") or ""),
            "slug": str(data.get("slug") or ""),
        }

    async def _generate(
        self, system_instruction: str, prompt: str, *, max_output_tokens: int | None = None
    ) -> str:
        if self._generator is None:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        try:
            return await self._generator.generate(
                system_instruction=system_instruction,
                prompt=prompt,
                max_output_tokens=max_output_tokens,
            )
        except EnrichError:
            raise
        except Exception as exc:
            raise RewriteError(f"Failed to enhance article: {exc}") from exc


__all__ = ["RewriteEngine", "build_references_section", "split_title"]
