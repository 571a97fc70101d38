"""AI utilities for article rewriting, summaries, and SEO metadata."""

from .gemini_client import GeminiTextGenerator, TextGenerator, classify_provider_error
from .rewrite_engine import RewriteEngine

__all__ = [
    "GeminiTextGenerator",
    "RewriteEngine",
    "TextGenerator",
    "classify_provider_error",
]
