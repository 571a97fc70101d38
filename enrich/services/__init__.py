"""Domain models and enhancement services.

Only the models are re-exported here; import the workflow, batch
coordinator and service facade from their modules.
"""

from .models import (
    Article,
    ArticleSummary,
    Citation,
    EnhancedContent,
    ExtractedContent,
    ReferenceArticle,
    ReferenceCandidate,
)

__all__ = [
    "Article",
    "ArticleSummary",
    "Citation",
    "EnhancedContent",
    "ExtractedContent",
    "ReferenceArticle",
    "ReferenceCandidate",
]
