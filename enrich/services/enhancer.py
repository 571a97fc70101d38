"""Service facade wiring the pipeline components together."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Any, AsyncIterator, Sequence

from ..ai.gemini_client import GeminiTextGenerator, TextGenerator
from ..ai.rewrite_engine import RewriteEngine
from ..core.events import EventStream
from ..core.exceptions import ArticleNotFoundError, EmptyDatasetError, ValidationError
from ..core.http_client import HttpClient
from ..extract.content_extractor import ContentExtractor, analyze_structure
from ..search.reference_finder import ReferenceFinder
from ..security import GEMINI_API_KEY, SEARCH_API_KEY, SecretProvider, default_secret_provider
from ..settings import AppConfig
from ..storage.article_store import JsonArticleStore
from ..utils.logging import get_logger
from .batch_coordinator import BatchCoordinator, BatchResult
from .enhancement_workflow import EnhancementWorkflow
from .models import utcnow
from .workflow_record import WorkflowRecord

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class EnhancementService:
    """Invocation surface used by the CLI."""

    config: AppConfig
    store: JsonArticleStore
    finder: ReferenceFinder
    extractor: ContentExtractor
    rewriter: RewriteEngine
    workflow: EnhancementWorkflow
    batch: BatchCoordinator

    @property
    def events(self) -> EventStream:
        return self.workflow.events

    async def enhance_one(self, article_id: str) -> WorkflowRecord:
        return await self.workflow.run(article_id)

    async def enhance_batch(
        self,
        article_ids: Sequence[str],
        *,
        parallel: bool = False,
        stop_on_error: bool = False,
    ) -> BatchResult:
        ids = list(article_ids)
        limit = self.config.batch.max_batch_size
        if not ids:
            raise ValidationError("At least one article id is required")
        if len(ids) > limit:
            raise ValidationError(
                f"Maximum {limit} articles can be enhanced in a single batch",
                details={"requested": len(ids)},
            )
        found = {article.id for article in await self.store.find_many(ids)}
        missing = [article_id for article_id in ids if article_id not in found]
        if missing:
            raise ArticleNotFoundError(
                "Some article IDs not found in database",
                details={"found": len(ids) - len(missing), "requested": len(ids), "missing": missing},
            )
        return await self.batch.run_many(ids, parallel=parallel, stop_on_error=stop_on_error)

    async def enhance_all(
        self,
        *,
        parallel: bool = False,
        stop_on_error: bool = False,
        force: bool = False,
    ) -> BatchResult:
        total = await self.store.count()
        if total == 0:
            raise EmptyDatasetError("No articles found in database")
        limit = self.config.batch.max_enhance_all
        if total > limit and not force:
            raise ValidationError(
                f"Too many articles ({total}). Use batch enhancement for large datasets "
                "or pass --force.",
                details={"total": total, "limit": limit},
            )
        return await self.batch.run_all(parallel=parallel, stop_on_error=stop_on_error)

    async def search_check(self, query: str) -> dict[str, Any]:
        candidates = await self.finder.find(query)
        return {
            "query": query,
            "results_found": len(candidates),
            "results": [candidate.to_dict() for candidate in candidates],
        }

    async def scrape_check(self, url: str) -> dict[str, Any]:
        content = await self.extractor.extract_one(url)
        return {**content.to_dict(), "structure": analyze_structure(content.content)}

    async def stats(self) -> dict[str, Any]:
        articles = await self.store.all()
        midnight = datetime.combine(utcnow().date(), time.min, tzinfo=timezone.utc)
        enhanced = [article for article in articles if article.is_enhanced]
        by_date = sorted(articles, key=lambda article: article.date)
        return {
            "total_articles": len(articles),
            "original_articles": len(articles) - len(enhanced),
            "enhanced_articles": len(enhanced),
            "created_today": await self.store.count_created_since(midnight),
            "available_for_enhancement": len(articles),
            "oldest_article": _headline(by_date[0]) if by_date else None,
            "newest_article": _headline(by_date[-1]) if by_date else None,
            "timestamp": utcnow().isoformat(),
        }

    async def insights(self, article_id: str) -> dict[str, Any]:
        """Summary, SEO metadata and structure analysis for one article."""
        article = await self.store.find_by_id(article_id)
        if article is None:
            raise ArticleNotFoundError(f"Article with ID {article_id} not found")
        return {
            "id": article.id,
            "title": article.title,
            "summary": await self.rewriter.summarize(article.content),
            "seo": await self.rewriter.seo_metadata(article.title, article.content),
            "structure": analyze_structure(article.content),
        }


def _headline(article: Any) -> dict[str, Any]:
    return {"title": article.title, "date": article.date.isoformat()}


@asynccontextmanager
async def build_service(
    config: AppConfig,
    *,
    secrets: SecretProvider | None = None,
    http: HttpClient | None = None,
    events: EventStream | None = None,
    generator: TextGenerator | None = None,
) -> AsyncIterator[EnhancementService]:
    """Construct every collaborator once and close the HTTP client on exit."""
    provider = secrets or default_secret_provider(config.paths.secrets_file)
    if generator is None:
        gemini_key = provider.lookup(GEMINI_API_KEY)
        if gemini_key:
            generator = GeminiTextGenerator.from_settings(config.rewrite, api_key=gemini_key)
    if generator is None:
        LOGGER.warning(
            "GEMINI_API_KEY is not configured; rewrites will fail",
            extra={"event": "service.config", "missing": "GEMINI_API_KEY"},
        )

    client = http or HttpClient(http_settings=config.http)
    store = JsonArticleStore(config.paths.store_path)
    finder = ReferenceFinder(client, config.search, api_key=provider.lookup(SEARCH_API_KEY))
    extractor = ContentExtractor(client)
    rewriter = RewriteEngine(generator, config.rewrite)
    workflow = EnhancementWorkflow(
        store=store,
        finder=finder,
        extractor=extractor,
        rewriter=rewriter,
        events=events,
    )
    service = EnhancementService(
        config=config,
        store=store,
        finder=finder,
        extractor=extractor,
        rewriter=rewriter,
        workflow=workflow,
        batch=BatchCoordinator(workflow, store),
    )
    try:
        yield service
    finally:
        if http is None:
            await client.aclose()


__all__ = ["EnhancementService", "build_service"]
