"""Article persistence backed by a JSON document."""

from __future__ import annotations

import asyncio
import json
import math
import re
import secrets
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

from ..core.exceptions import DuplicateArticleError, ValidationError
from ..services.models import Article, ArticleSummary, utcnow
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

_URL_PATTERN = re.compile(r"^https?://.+")
_ID_PATTERN = re.compile(r"^[0-9a-f]{24}$")


def new_article_id() -> str:
    return secrets.token_hex(12)


def is_valid_id(value: str) -> bool:
    return bool(_ID_PATTERN.match(value or ""))


def validate_fields(fields: Mapping[str, Any]) -> None:
    problems: list[str] = []
    title = str(fields.get("title") or "").strip()
    url = str(fields.get("url") or "").strip()
    content = str(fields.get("content") or "")
    if not 3 <= len(title) <= 300:
        problems.append("title must be between 3 and 300 characters")
    if not _URL_PATTERN.match(url):
        problems.append("url must start with http:// or https://")
    if len(content) < 10:
        problems.append("content must be at least 10 characters")
    if problems:
        raise ValidationError("Invalid article: " + "; ".join(problems), details={"errors": problems})


class ArticleStore(Protocol):
    async def find_by_id(self, article_id: str) -> Article | None: ...

    async def list_ids(self) -> list[ArticleSummary]: ...

    async def create(self, fields: Mapping[str, Any]) -> Article: ...


class JsonArticleStore:
    """Keeps every article in one JSON file; writes are serialised by a lock."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def find_by_id(self, article_id: str) -> Article | None:
        for article in await self.all():
            if article.id == article_id:
                return article
        return None

    async def find_many(self, article_ids: Iterable[str]) -> list[Article]:
        wanted = set(article_ids)
        return [article for article in await self.all() if article.id in wanted]

    async def list_ids(self) -> list[ArticleSummary]:
        return [ArticleSummary(id=a.id, title=a.title) for a in await self.all()]

    async def all(self) -> list[Article]:
        async with self._lock:
            records = await asyncio.to_thread(self._read)
        return [Article.from_dict(record) for record in records]

    async def count(self) -> int:
        return len(await self.all())

    async def count_created_since(self, since: datetime) -> int:
        return sum(1 for article in await self.all() if article.created_at >= since)

    async def list_articles(self, *, page: int = 1, limit: int = 10) -> dict[str, Any]:
        page = max(1, page)
        limit = max(1, limit)
        articles = sorted(await self.all(), key=lambda a: a.created_at, reverse=True)
        window = articles[(page - 1) * limit : page * limit]
        return {
            "articles": [
                {
                    "id": article.id,
                    "title": article.title,
                    "url": article.url,
                    "date": article.date.isoformat(),
                    "created_at": article.created_at.isoformat(),
                }
                for article in window
            ],
            "pagination": {
                "current_page": page,
                "total_pages": math.ceil(len(articles) / limit),
                "total_articles": len(articles),
                "articles_per_page": limit,
            },
        }

    async def create(self, fields: Mapping[str, Any]) -> Article:
        validate_fields(fields)
        async with self._lock:
            records = await asyncio.to_thread(self._read)
            url = str(fields["url"]).strip()
            if any(record.get("url") == url for record in records):
                raise DuplicateArticleError(f"Article with URL {url} already exists", details={"url": url})
            article = self._build(fields)
            records.append(article.to_dict())
            await asyncio.to_thread(self._write, records)
        LOGGER.info(
            "Created article %s",
            article.id,
            extra={"event": "store.create", "article_id": article.id, "url": article.url},
        )
        return article

    async def upsert_by_url(self, items: Iterable[Mapping[str, Any]]) -> dict[str, int]:
        """Insert new articles and refresh existing ones matched by URL."""
        created = updated = 0
        async with self._lock:
            records = await asyncio.to_thread(self._read)
            by_url = {record.get("url"): index for index, record in enumerate(records)}
            for fields in items:
                validate_fields(fields)
                url = str(fields["url"]).strip()
                if url in by_url:
                    existing = records[by_url[url]]
                    merged = {**existing, **self._plain(fields), "updated_at": utcnow().isoformat()}
                    records[by_url[url]] = Article.from_dict(merged).to_dict()
                    updated += 1
                else:
                    article = self._build(fields)
                    by_url[url] = len(records)
                    records.append(article.to_dict())
                    created += 1
            await asyncio.to_thread(self._write, records)
        LOGGER.info(
            "Imported articles created=%d updated=%d",
            created,
            updated,
            extra={"event": "store.import", "inserted": created, "refreshed": updated},
        )
        return {"created": created, "updated": updated}

    def _build(self, fields: Mapping[str, Any]) -> Article:
        now = utcnow()
        data = {
            "id": new_article_id(),
            "created_at": now,
            "updated_at": now,
            "scraped_at": now,
            "date": now,
            **self._plain(fields),
        }
        data["url"] = str(data["url"]).strip()
        data["title"] = str(data["title"]).strip()
        return Article.from_dict(data)

    @staticmethod
    def _plain(fields: Mapping[str, Any]) -> dict[str, Any]:
        allowed = ("title", "url", "content", "image", "date", "scraped_at", "created_at")
        return {key: fields[key] for key in allowed if fields.get(key) is not None}

    def _read(self) -> list[dict[str, Any]]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except ValueError as exc:
            raise ValidationError(
                f"Article store is not valid JSON: {self._path}", details={"path": str(self._path)}
            ) from exc
        if isinstance(data, dict):
            data = data.get("articles", [])
        if not isinstance(data, list):
            raise ValidationError(f"Invalid article store: {self._path}", details={"path": str(self._path)})
        return data

    def _write(self, records: list[dict[str, Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(
            json.dumps({"articles": records}, ensure_ascii=False, indent=2, default=str),
            encoding="utf-8",
        )
        tmp_path.replace(self._path)


__all__ = ["ArticleStore", "JsonArticleStore", "is_valid_id", "new_article_id", "validate_fields"]
