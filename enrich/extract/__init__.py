"""Reference page extraction."""

from .content_extractor import ContentExtractor, ExtractionBatch, analyze_structure

__all__ = ["ContentExtractor", "ExtractionBatch", "analyze_structure"]
