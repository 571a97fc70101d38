"""Fetch reference pages and pull their main readable content."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup, Tag

from ..core.exceptions import (
    AccessDeniedError,
    ExtractionError,
    FetchError,
    PageNotFoundError,
)
from ..core.http_client import HttpClient, HttpRequest
from ..core.results import Err, Ok, Result, partition
from ..services.models import ExtractedContent, utcnow
from ..utils.logging import get_logger
from ..utils.text import clean_content, clean_text, word_count

LOGGER = get_logger(__name__)

MIN_BODY_CHARS = 200

NOISE_SELECTORS = (
    "script, style, nav, header, footer, iframe, noscript, aside, "
    ".advertisement, .ads, .sidebar, .comments"
)
CONTENT_SELECTORS = (
    "article",
    "main",
    ".article-content",
    ".post-content",
    ".entry-content",
    ".content",
    '[role="main"]',
)


@dataclass(slots=True)
class ExtractionBatch:
    """Outcome of a multi-URL extraction; failures never abort siblings."""

    success: list[ExtractedContent] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": [item.to_dict() for item in self.success],
            "errors": list(self.errors),
        }


class ContentExtractor:
    """Heuristic main-content extractor built on BeautifulSoup."""

    def __init__(self, http: HttpClient, *, parser: str = "html.parser") -> None:
        self._http = http
        self._parser = parser

    async def extract_one(self, url: str) -> ExtractedContent:
        LOGGER.info("Scraping %s", url, extra={"event": "extract.start", "url": url})
        html, final_url = await self._download(url)
        content = self.parse(html, url=url, base_url=final_url)
        LOGGER.info(
            "Scraped %d words from %s",
            content.word_count,
            url,
            extra={"event": "extract.done", "url": url, "word_count": content.word_count},
        )
        return content

    async def extract_many(self, urls: Iterable[str]) -> ExtractionBatch:
        targets = list(urls)
        settled = await asyncio.gather(*(self._settle(url) for url in targets))
        values, failures = partition(settled)
        batch = ExtractionBatch(
            success=values,
            errors=[{"url": failure.key or "", "error": str(failure.error)} for failure in failures],
        )
        LOGGER.info(
            "Scraped %d/%d reference pages",
            len(batch.success),
            len(targets),
            extra={
                "event": "extract.batch",
                "attempted": len(targets),
                "successful": len(batch.success),
                "failed": len(batch.errors),
            },
        )
        return batch

    async def _settle(self, url: str) -> Result[ExtractedContent, ExtractionError]:
        try:
            return Ok(await self.extract_one(url))
        except ExtractionError as exc:
            LOGGER.warning(
                "Extraction failed for %s: %s",
                url,
                exc.message,
                extra={"event": "extract.failed", "url": url, "error_type": type(exc).__name__},
            )
            return Err(exc, key=url)

    async def _download(self, url: str) -> tuple[str, str]:
        try:
            response = await self._http.fetch(HttpRequest(url=url))
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status in (401, 403):
                raise AccessDeniedError(f"Access denied to {url}", url=url) from exc
            if status == 404:
                raise PageNotFoundError(f"Page not found: {url}", url=url) from exc
            raise ExtractionError(
                f"Failed to scrape content: HTTP {status}", url=url, details={"status": status}
            ) from exc
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise FetchError(f"Unable to reach {url}: {exc}", url=url) from exc
        except httpx.InvalidURL as exc:
            raise ExtractionError(f"Invalid URL: {url}", url=url) from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(f"Failed to scrape content: {exc}", url=url) from exc
        return response.text, response.url

    def parse(self, html: str, *, url: str, base_url: str | None = None) -> ExtractedContent:
        """Extract title, body and metadata from an HTML document."""
        soup = BeautifulSoup(html, self._parser)
        for node in soup.select(NOISE_SELECTORS):
            node.decompose()

        body = clean_content(self._body_text(soup))
        return ExtractedContent(
            url=url,
            title=clean_text(self._title(soup)),
            content=body,
            author=clean_text(self._author(soup)),
            publish_date=clean_text(self._publish_date(soup)),
            description=clean_text(self._description(soup)),
            image=clean_text(self._image(soup, base_url or url)),
            word_count=word_count(body),
            scraped_at=utcnow(),
        )

    def _title(self, soup: BeautifulSoup) -> str:
        h1 = soup.find("h1")
        if h1 and h1.get_text(strip=True):
            return h1.get_text(" ", strip=True)
        if soup.title and soup.title.get_text(strip=True):
            return soup.title.get_text(" ", strip=True)
        return _meta(soup, property="og:title")

    def _body_text(self, soup: BeautifulSoup) -> str:
        # First container in document order, whichever selector it matches.
        container = soup.select_one(", ".join(CONTENT_SELECTORS))
        text = _block_text(container) if container is not None else ""

        if len(text) < MIN_BODY_CHARS:
            largest = ""
            for block in soup.find_all(["div", "section"]):
                candidate = _block_text(block)
                if len(candidate) > len(largest):
                    largest = candidate
            if len(largest) > len(text):
                text = largest

        if len(text) < MIN_BODY_CHARS:
            paragraphs = _paragraphs(soup)
            if paragraphs:
                text = "\n\n".join(paragraphs)
        return text

    def _author(self, soup: BeautifulSoup) -> str:
        return (
            _meta(soup, name="author")
            or _text_of(soup.select_one('[rel="author"]'))
            or _text_of(soup.select_one(".author"))
        )

    def _publish_date(self, soup: BeautifulSoup) -> str:
        time_tag = soup.find("time")
        return (
            _meta(soup, property="article:published_time")
            or (_attr(time_tag, "datetime") if isinstance(time_tag, Tag) else "")
            or _text_of(time_tag)
            or _text_of(soup.select_one(".date"))
        )

    def _description(self, soup: BeautifulSoup) -> str:
        return _meta(soup, name="description") or _meta(soup, property="og:description")

    def _image(self, soup: BeautifulSoup, base_url: str) -> str:
        src = (
            _meta(soup, property="og:image")
            or _attr(soup.select_one("article img"), "src")
            or _attr(soup.find("img"), "src")
        )
        return urljoin(base_url, src) if src else ""


def analyze_structure(content: str) -> dict[str, Any]:
    """Summarise the structural features of an HTML or text fragment."""
    soup = BeautifulSoup(f"<div>{content or ''}</div>", "html.parser")
    paragraph_count = len(soup.find_all("p"))
    words = word_count(content)
    return {
        "has_headings": bool(soup.find(["h1", "h2", "h3", "h4"])),
        "has_list": bool(soup.find(["ul", "ol"])),
        "has_images": bool(soup.find("img")),
        "has_links": bool(soup.find("a")),
        "has_blockquotes": bool(soup.find("blockquote")),
        "paragraph_count": paragraph_count,
        "word_count": words,
        "avg_words_per_paragraph": round(words / paragraph_count) if paragraph_count else 0,
        "structure": {
            "introduction": paragraph_count > 0,
            "body_paragraphs": paragraph_count > 2,
            "conclusion": paragraph_count > 3,
        },
    }


def _paragraphs(node: Tag) -> list[str]:
    texts = (p.get_text(" ", strip=True) for p in node.find_all("p"))
    return [text for text in texts if text]


def _block_text(node: Tag) -> str:
    paragraphs = _paragraphs(node)
    return "\n\n".join(paragraphs) if paragraphs else node.get_text("\n", strip=True)


def _meta(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    return _attr(tag, "content")


def _attr(tag: Any, name: str) -> str:
    if not isinstance(tag, Tag):
        return ""
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return str(value).strip() if value else ""


def _text_of(tag: Any) -> str:
    if not isinstance(tag, Tag):
        return ""
    return tag.get_text(" ", strip=True)


__all__: Sequence[str] = [
    "ContentExtractor",
    "ExtractionBatch",
    "analyze_structure",
]
