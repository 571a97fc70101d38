"""Data models shared by the enhancement pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

from ..utils.text import word_count

ENHANCEMENT_MARKER = "-enhanced-"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_dt(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def hostname(url: str) -> str:
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def enhanced_url(original_url: str, created_at: datetime) -> str:
    """Derive the URL of an enhanced copy: original URL, marker, epoch millis."""
    return f"{original_url}{ENHANCEMENT_MARKER}{int(created_at.timestamp() * 1000)}"


@dataclass(slots=True)
class Article:
    """A stored article; enhanced articles differ only by their derived URL."""

    id: str
    title: str
    url: str
    content: str
    image: str = ""
    date: datetime = field(default_factory=utcnow)
    scraped_at: datetime = field(default_factory=utcnow)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_enhanced(self) -> bool:
        return ENHANCEMENT_MARKER in self.url

    @property
    def word_count(self) -> int:
        return word_count(self.content)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "content": self.content,
            "image": self.image,
            "date": _iso(self.date),
            "scraped_at": _iso(self.scraped_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Article":
        now = utcnow()
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            url=str(data.get("url", "")),
            content=str(data.get("content", "")),
            image=str(data.get("image") or ""),
            date=_parse_dt(data.get("date")) or now,
            scraped_at=_parse_dt(data.get("scraped_at")) or now,
            created_at=_parse_dt(data.get("created_at")) or now,
            updated_at=_parse_dt(data.get("updated_at")) or now,
        )


@dataclass(slots=True, frozen=True)
class ArticleSummary:
    id: str
    title: str


@dataclass(slots=True, frozen=True)
class ReferenceCandidate:
    """A ranked search hit; transient, never persisted on its own."""

    title: str
    link: str
    snippet: str = ""
    display_link: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "link": self.link,
            "snippet": self.snippet,
            "display_link": self.display_link,
        }


@dataclass(slots=True)
class ExtractedContent:
    """Readable content pulled from one page."""

    url: str
    title: str
    content: str
    author: str = ""
    publish_date: str = ""
    description: str = ""
    image: str = ""
    word_count: int = 0
    scraped_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "content": self.content,
            "author": self.author,
            "publish_date": self.publish_date,
            "description": self.description,
            "image": self.image,
            "word_count": self.word_count,
            "scraped_at": _iso(self.scraped_at),
        }


@dataclass(slots=True)
class ReferenceArticle:
    """Extracted content joined with the search metadata that found it."""

    title: str
    url: str
    content: str
    display_link: str = ""
    snippet: str = ""
    word_count: int = 0

    @property
    def source(self) -> str:
        return self.display_link or hostname(self.url) or "Unknown"

    @classmethod
    def from_extracted(
        cls, extracted: ExtractedContent, candidate: ReferenceCandidate | None = None
    ) -> "ReferenceArticle":
        return cls(
            title=extracted.title or (candidate.title if candidate else ""),
            url=extracted.url,
            content=extracted.content,
            display_link=candidate.display_link if candidate else "",
            snippet=candidate.snippet if candidate else "",
            word_count=extracted.word_count,
        )


@dataclass(slots=True, frozen=True)
class Citation:
    title: str
    url: str
    source: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "url": self.url, "source": self.source}


@dataclass(slots=True)
class EnhancedContent:
    """Rewrite output ready to be persisted as a new article."""

    title: str
    content: str
    original_title: str
    word_count: int
    reading_time: str
    references: list[Citation] = field(default_factory=list)
    enhanced_at: datetime = field(default_factory=utcnow)
    ai_provider: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "original_title": self.original_title,
            "word_count": self.word_count,
            "reading_time": self.reading_time,
            "references": [ref.to_dict() for ref in self.references],
            "enhanced_at": _iso(self.enhanced_at),
            "ai_provider": self.ai_provider,
        }


__all__ = [
    "Article",
    "ArticleSummary",
    "Citation",
    "ENHANCEMENT_MARKER",
    "EnhancedContent",
    "ExtractedContent",
    "ReferenceArticle",
    "ReferenceCandidate",
    "enhanced_url",
    "hostname",
    "utcnow",
]
