"""Exception hierarchy shared by the enhancement pipeline.

Every error raised on purpose by the package derives from :class:`EnrichError`
so the batch coordinator and the CLI can report failures uniformly::

    EnrichError
    ├── ConfigurationError
    ├── ValidationError
    │   └── DuplicateArticleError
    ├── NotFoundError
    │   ├── ArticleNotFoundError
    │   └── PageNotFoundError        (also an ExtractionError)
    ├── ProviderError
    │   ├── AuthError
    │   ├── RateLimitError
    │   │   └── QuotaError
    │   └── SafetyBlockedError
    ├── SearchError
    │   └── NoResultsError
    ├── PipelineEmptyError
    │   ├── NoReferencesError
    │   ├── NoContentExtractedError
    │   └── EmptyDatasetError
    ├── ExtractionError
    │   ├── FetchError
    │   └── AccessDeniedError
    └── RewriteError
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:  # pragma: no cover
    from ..services.workflow_record import WorkflowRecord


class EnrichError(RuntimeError):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})
        self.workflow: WorkflowRecord | None = None

    def __str__(self) -> str:
        if not self.details:
            return self.message
        try:
            detail_repr = json.dumps(self.details, ensure_ascii=False, default=str)
        except TypeError:
            detail_repr = str(self.details)
        return f"{self.message} | details: {detail_repr}"


class ConfigurationError(EnrichError):
    """Raised when a provider credential or setting is missing."""


class ValidationError(EnrichError):
    """Raised when article fields fail validation."""


class DuplicateArticleError(ValidationError):
    """Raised when an article URL already exists in the store."""


class NotFoundError(EnrichError):
    """Raised when a requested resource does not exist."""


class ArticleNotFoundError(NotFoundError):
    """Raised when an article id is unknown to the store."""


class ProviderError(EnrichError):
    """Raised when an external provider rejects a call."""


class AuthError(ProviderError):
    """Raised on provider authentication failures (HTTP 401)."""


class RateLimitError(ProviderError):
    """Raised on provider rate limiting (HTTP 429)."""


class QuotaError(RateLimitError):
    """Raised when the generative provider reports an exhausted quota."""


class SafetyBlockedError(ProviderError):
    """Raised when the generative provider blocks the content."""


class SearchError(EnrichError):
    """Raised when the search provider call fails."""


class NoResultsError(SearchError):
    """Raised when the search provider returns zero organic results."""


class PipelineEmptyError(EnrichError):
    """Raised when a pipeline step produced nothing usable."""


class NoReferencesError(PipelineEmptyError):
    """Raised when no reference candidate survived filtering."""


class NoContentExtractedError(PipelineEmptyError):
    """Raised when none of the reference pages could be extracted."""


class EmptyDatasetError(PipelineEmptyError):
    """Raised when there are no articles to enhance."""


class ExtractionError(EnrichError):
    """Raised when a page cannot be fetched or parsed."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.url = url


class FetchError(ExtractionError):
    """Raised when a page is unreachable (DNS, refused connection, timeout)."""


class AccessDeniedError(ExtractionError):
    """Raised when a page answers 401 or 403."""


class PageNotFoundError(ExtractionError, NotFoundError):
    """Raised when a page answers 404."""


class RewriteError(EnrichError):
    """Raised when the rewrite step fails for any other reason."""


__all__ = [
    "AccessDeniedError",
    "ArticleNotFoundError",
    "AuthError",
    "ConfigurationError",
    "DuplicateArticleError",
    "EmptyDatasetError",
    "EnrichError",
    "ExtractionError",
    "FetchError",
    "NoContentExtractedError",
    "NoReferencesError",
    "NoResultsError",
    "NotFoundError",
    "PageNotFoundError",
    "PipelineEmptyError",
    "ProviderError",
    "QuotaError",
    "RateLimitError",
    "RewriteError",
    "SafetyBlockedError",
    "SearchError",
    "ValidationError",
]
