"""Article enhancement pipeline: search, scrape, rewrite, persist."""

__version__ = "0.1.0"
