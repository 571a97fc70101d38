"""Prompt templates for the rewrite provider."""

from __future__ import annotations

from typing import Sequence

from ..services.models import Article, ReferenceArticle

SUMMARY_SYSTEM_INSTRUCTION = "You are a helpful assistant."
SEO_SYSTEM_INSTRUCTION = "You are an SEO expert."

_ORDINALS = ("Top Ranking on Google", "Second Top Ranking on Google")

_TASK = """**YOUR TASK:**
1. Analyze the writing style, tone, and structure of the reference articles
2. Rewrite the original article to match their style and formatting
3. Enhance the content quality while maintaining the core message
4. Improve readability, SEO optimization, and engagement
5. Use similar heading structures and content organization
6. Match the length and depth of the reference articles
7. Keep the same professional tone and expertise level

**REQUIREMENTS:**
- Keep the enhanced content between 800-2000 words
- Use clear headings (use ## for main headings, ### for subheadings)
- Include an engaging introduction
- Use bullet points or numbered lists where appropriate
- Add a conclusion section
- Maintain factual accuracy
- Make it more comprehensive than the original
- Use markdown formatting

**OUTPUT FORMAT:**
Return ONLY the enhanced article content in markdown format. Do not include any meta-commentary, explanations, or notes. Start directly with the article title as an H1 heading (# Title), followed by the content.

Begin your response now:"""


def build_rewrite_prompt(
    original: Article,
    references: Sequence[ReferenceArticle],
    *,
    preview_chars: int = 2000,
) -> str:
    sections = [
        "You are a professional content writer and SEO expert. Your task is to rewrite and "
        "enhance an article to match the style, formatting, and quality of top-ranking "
        "articles on Google.",
        f"**ORIGINAL ARTICLE:**\nTitle: {original.title}\nContent: {original.content}",
    ]
    for index, label in enumerate(_ORDINALS):
        reference = references[index] if index < len(references) else None
        if reference is None:
            sections.append(
                f"**REFERENCE ARTICLE {index + 1} ({label}):**\nTitle: N/A\nURL: N/A\n"
                "Content Preview: N/A..."
            )
            continue
        preview = reference.content[:preview_chars] if reference.content else "N/A"
        sections.append(
            f"**REFERENCE ARTICLE {index + 1} ({label}):**\n"
            f"Title: {reference.title or 'N/A'}\n"
            f"URL: {reference.url or 'N/A'}\n"
            f"Content Preview: {preview}..."
        )
    sections.append(_TASK)
    return "\n\n".join(sections)


def build_summary_prompt(content: str, *, limit: int = 3000) -> str:
    return (
        "Please provide a concise summary (2-3 sentences) of the following article:\n\n"
        f"{content[:limit]}\n\nSummary:"
    )


def build_seo_prompt(title: str, content: str, *, limit: int = 2000) -> str:
    return f"""Based on the following article, generate SEO metadata:

Title: {title}
Content: {content[:limit]}

Please provide:
1. Meta description (150-160 characters)
2. 5-7 relevant keywords/tags (comma-separated)
3. Suggested URL slug

Format your response as JSON:
{{
  "metaDescription": "...",
  "keywords": "...",
  "slug": "..."
}}"""


__all__ = [
    "SEO_SYSTEM_INSTRUCTION",
    "SUMMARY_SYSTEM_INSTRUCTION",
    "build_rewrite_prompt",
    "build_seo_prompt",
    "build_summary_prompt",
]
