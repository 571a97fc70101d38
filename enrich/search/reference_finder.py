"""Locate top-ranking reference pages for an article through SerpAPI."""

from __future__ import annotations

from typing import Any, Iterable

import httpx

from ..core.exceptions import (
    AuthError,
    ConfigurationError,
    NoResultsError,
    RateLimitError,
    SearchError,
)
from ..core.http_client import HttpClient
from ..services.models import ReferenceCandidate, hostname
from ..settings import SearchSettings
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)


class ReferenceFinder:
    """Query the search provider and keep the best non-social candidates."""

    def __init__(
        self,
        http: HttpClient,
        settings: SearchSettings,
        *,
        api_key: str | None,
    ) -> None:
        self._http = http
        self._settings = settings
        self._api_key = api_key

    async def find(self, query: str) -> list[ReferenceCandidate]:
        if not self._api_key:
            raise ConfigurationError("SERPAPI_KEY is not configured")

        LOGGER.info("Searching references for %r", query, extra={"event": "search.start", "query": query})
        payload = await self._request(query)
        organic = payload.get("organic_results") or []
        if not organic:
            raise NoResultsError(f"No search results found for {query!r}", details={"query": query})

        candidates = [
            candidate
            for candidate in (self._to_candidate(item) for item in organic)
            if candidate is not None and not self.is_excluded(candidate.link)
        ]
        selected = candidates[: self._settings.max_candidates]
        LOGGER.info(
            "Selected %d of %d search results",
            len(selected),
            len(organic),
            extra={
                "event": "search.done",
                "query": query,
                "organic": len(organic),
                "selected": [candidate.link for candidate in selected],
            },
        )
        return selected

    def is_excluded(self, link: str) -> bool:
        return _host_matches(hostname(link).lower(), self._settings.excluded_domains)

    async def _request(self, query: str) -> dict[str, Any]:
        params = {
            "q": query,
            "api_key": self._api_key,
            "num": self._settings.num_results,
            "gl": self._settings.gl,
            "hl": self._settings.hl,
            "engine": self._settings.engine,
        }
        try:
            payload = await self._http.get_json(
                self._settings.endpoint, params=params, timeout=self._settings.timeout
            )
        except httpx.HTTPStatusError as exc:
            code = exc.response.status_code
            if code == 429:
                raise RateLimitError("Search provider rate limit exceeded (HTTP 429)") from exc
            if code in (401, 403):
                raise AuthError(f"Search provider rejected the API key (HTTP {code})") from exc
            raise SearchError(
                f"Search request failed with HTTP {code}", details={"body": exc.response.text[:200]}
            ) from exc
        except httpx.RequestError as exc:
            raise SearchError(f"Search request failed: {exc}") from exc
        except ValueError as exc:
            raise SearchError("Search provider returned invalid JSON") from exc

        if not isinstance(payload, dict):
            raise SearchError("Search provider returned an unexpected payload")
        if payload.get("error") and not payload.get("organic_results"):
            LOGGER.warning(
                "Search provider reported: %s",
                payload["error"],
                extra={"event": "search.provider_error", "query": query},
            )
        return payload

    @staticmethod
    def _to_candidate(item: Any) -> ReferenceCandidate | None:
        if not isinstance(item, dict):
            return None
        link = str(item.get("link") or "").strip()
        if not link:
            return None
        return ReferenceCandidate(
            title=str(item.get("title") or "").strip(),
            link=link,
            snippet=str(item.get("snippet") or "").strip(),
            display_link=str(item.get("displayed_link") or "").strip() or hostname(link),
        )


def _host_matches(host: str, domains: Iterable[str]) -> bool:
    if not host:
        return False
    return any(host == domain or host.endswith("." + domain) for domain in domains)


__all__ = ["ReferenceFinder"]
