"""Search provider integration."""

from .reference_finder import ReferenceFinder

__all__ = ["ReferenceFinder"]
