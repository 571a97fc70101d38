"""Utility exports."""

from .logging import configure_logging, get_logger
from .text import clean_content, clean_text, reading_time, word_count

__all__ = [
    "clean_content",
    "clean_text",
    "configure_logging",
    "get_logger",
    "reading_time",
    "word_count",
]
