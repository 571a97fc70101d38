"""Shared asynchronous HTTP client with browser-like default headers."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Mapping

import httpx

from ..settings import HttpSettings, load_default_headers

_LOGGER = logging.getLogger(__name__)
_EXCLUDED_HEADER_KEYS = {"cookie", "cookie2", "host", "content-length"}
# httpx decodes gzip/deflate natively; anything else would come back as bytes.
_SUPPORTED_ENCODINGS = {"gzip", "deflate", "identity"}


@dataclass(slots=True)
class HttpRequest:
    url: str
    method: str = "GET"
    headers: Mapping[str, str] | None = None
    params: Mapping[str, Any] | None = None
    timeout: float | None = None


@dataclass(slots=True)
class HttpResponse:
    url: str
    status: int
    headers: Mapping[str, str]
    text: str
    elapsed: float

    def json(self) -> Any:
        return json.loads(self.text)


class HttpClient:
    """Thin wrapper around one :class:`httpx.AsyncClient` shared by the pipeline.

    Non-2xx responses raise :class:`httpx.HTTPStatusError`; transport failures
    raise :class:`httpx.RequestError`. Callers translate both into domain errors.
    """

    def __init__(
        self,
        *,
        http_settings: HttpSettings,
        default_headers: Mapping[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._http_settings = http_settings
        raw_headers = load_default_headers() if default_headers is None else default_headers
        self._default_headers = self._normalize_headers(raw_headers)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            max_redirects=http_settings.max_redirects,
            timeout=http_settings.timeout,
        )

    @property
    def default_headers(self) -> dict[str, str]:
        return dict(self._default_headers)

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch(self, request: HttpRequest) -> HttpResponse:
        headers = self._merge_headers(request.headers)
        timeout = request.timeout if request.timeout is not None else self._http_settings.timeout
        start_time = time.monotonic()
        response = await self._client.request(
            request.method.upper(),
            request.url,
            headers=headers,
            params=dict(request.params) if request.params else None,
            timeout=timeout,
        )
        elapsed = time.monotonic() - start_time
        _LOGGER.debug(
            "HTTP %s %s -> %s in %.2fs",
            request.method.upper(),
            request.url,
            response.status_code,
            elapsed,
        )
        response.raise_for_status()
        return HttpResponse(
            url=str(response.url),
            status=response.status_code,
            headers=dict(response.headers.items()),
            text=response.text,
            elapsed=elapsed,
        )

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        response = await self.fetch(
            HttpRequest(url=url, params=params, timeout=timeout, headers={"accept": "application/json"})
        )
        return response.json()

    def _merge_headers(self, request_headers: Mapping[str, str] | None) -> dict[str, str]:
        headers = dict(self._default_headers)
        if request_headers:
            headers.update({str(k).lower(): str(v) for k, v in request_headers.items()})
        return headers

    def _normalize_headers(self, raw: Mapping[str, str]) -> dict[str, str]:
        normalized: dict[str, str] = {}
        for key, value in raw.items():
            key_str = str(key).strip()
            if not key_str or key_str.startswith(":"):
                continue
            key_lower = key_str.lower()
            if key_lower in _EXCLUDED_HEADER_KEYS:
                continue
            if key_lower == "accept-encoding":
                normalized[key_lower] = self._strip_unsupported_encodings(str(value))
            else:
                normalized[key_lower] = str(value)
        return normalized

    def _strip_unsupported_encodings(self, value: str) -> str:
        encodings = [item.strip() for item in value.split(",") if item.strip()]
        supported = [
            encoding
            for encoding in encodings
            if encoding.split(";", 1)[0].strip().lower() in _SUPPORTED_ENCODINGS
        ]
        return ", ".join(supported) if supported else "gzip, deflate"


__all__ = ["HttpClient", "HttpRequest", "HttpResponse"]
