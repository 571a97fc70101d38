"""Five-step enhancement workflow for a single article."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Sequence

from ..core.events import (
    STEP_COMPLETED,
    STEP_FAILED,
    STEP_STARTED,
    WORKFLOW_COMPLETED,
    WORKFLOW_FAILED,
    WORKFLOW_STARTED,
    EventStream,
    WorkflowEvent,
)
from ..core.exceptions import (
    ArticleNotFoundError,
    EnrichError,
    NoContentExtractedError,
    NoReferencesError,
)
from ..utils.logging import get_logger
from .models import (
    Article,
    EnhancedContent,
    ReferenceArticle,
    ReferenceCandidate,
    enhanced_url,
    utcnow,
)
from .workflow_record import WorkflowRecord

if TYPE_CHECKING:  # pragma: no cover
    from ..ai.rewrite_engine import RewriteEngine
    from ..extract.content_extractor import ContentExtractor, ExtractionBatch
    from ..search.reference_finder import ReferenceFinder
    from ..storage.article_store import ArticleStore

LOGGER = get_logger(__name__)

STEP_FETCH = "Fetch Original Article"
STEP_SEARCH = "Google Search"
STEP_SCRAPE = "Scrape Content"
STEP_REWRITE = "AI Enhancement"
STEP_SAVE = "Save to Database"


@dataclass(slots=True)
class WorkflowContext:
    """Mutable state handed from one step to the next."""

    article_id: str
    record: WorkflowRecord
    original: Article | None = None
    candidates: list[ReferenceCandidate] = field(default_factory=list)
    extraction: ExtractionBatch | None = None
    references: list[ReferenceArticle] = field(default_factory=list)
    enhanced: EnhancedContent | None = None
    saved: Article | None = None

    def require_original(self) -> Article:
        if self.original is None:
            raise RuntimeError("Original article not loaded")
        return self.original


StepHandler = Callable[[WorkflowContext], Awaitable[dict[str, Any]]]


@dataclass(slots=True)
class WorkflowStep:
    name: str
    handler: StepHandler


class EnhancementWorkflow:
    """Load, search, scrape, rewrite and persist one article.

    Every step either completes or aborts the whole run; the failing error is
    recorded on the :class:`WorkflowRecord`, attached to the exception as
    ``exc.workflow`` when it is an :class:`EnrichError`, and re-raised.
    """

    def __init__(
        self,
        *,
        store: ArticleStore,
        finder: ReferenceFinder,
        extractor: ContentExtractor,
        rewriter: RewriteEngine,
        events: EventStream | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._finder = finder
        self._extractor = extractor
        self._rewriter = rewriter
        self._events = events or EventStream()
        self._clock = clock
        self._steps: Sequence[WorkflowStep] = (
            WorkflowStep(STEP_FETCH, self._load_original),
            WorkflowStep(STEP_SEARCH, self._find_references),
            WorkflowStep(STEP_SCRAPE, self._extract_references),
            WorkflowStep(STEP_REWRITE, self._rewrite),
            WorkflowStep(STEP_SAVE, self._persist),
        )

    @property
    def events(self) -> EventStream:
        return self._events

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self._steps]

    async def run(self, article_id: str) -> WorkflowRecord:
        record = WorkflowRecord(article_id=article_id, start_time=self._clock())
        context = WorkflowContext(article_id=article_id, record=record)
        self._emit(WORKFLOW_STARTED, article_id)
        LOGGER.info(
            "Starting enhancement workflow for %s",
            article_id,
            extra={"event": "workflow.start", "article_id": article_id},
        )

        for ordinal, step in enumerate(self._steps, start=1):
            self._emit(STEP_STARTED, article_id, step=ordinal, name=step.name)
            try:
                data = await step.handler(context)
            except Exception as exc:
                message = exc.message if isinstance(exc, EnrichError) else str(exc)
                record.fail(message, step=step.name)
                if isinstance(exc, EnrichError):
                    exc.workflow = record
                self._emit(STEP_FAILED, article_id, step=ordinal, name=step.name, error=message)
                self._emit(WORKFLOW_FAILED, article_id, step=ordinal, name=step.name, error=message)
                LOGGER.warning(
                    "Workflow for %s failed at step %d (%s): %s",
                    article_id,
                    ordinal,
                    step.name,
                    message,
                    extra={
                        "event": "workflow.failed",
                        "article_id": article_id,
                        "step": step.name,
                        "error_type": type(exc).__name__,
                    },
                )
                raise
            record.add_step(step.name, data)
            self._emit(STEP_COMPLETED, article_id, step=ordinal, name=step.name, data=data)
            LOGGER.info(
                "Step %d completed: %s",
                ordinal,
                step.name,
                extra={"event": "workflow.step", "article_id": article_id, "step": step.name},
            )

        record.complete(self._summary(context))
        self._emit(WORKFLOW_COMPLETED, article_id, data={"duration": record.duration})
        LOGGER.info(
            "Workflow for %s completed in %s",
            article_id,
            record.duration,
            extra={"event": "workflow.done", "article_id": article_id, "duration": record.duration},
        )
        return record

    async def _load_original(self, context: WorkflowContext) -> dict[str, Any]:
        article = await self._store.find_by_id(context.article_id)
        if article is None:
            raise ArticleNotFoundError(f"Article with ID {context.article_id} not found")
        context.original = article
        return {"title": article.title}

    async def _find_references(self, context: WorkflowContext) -> dict[str, Any]:
        query = context.require_original().title
        candidates = await self._finder.find(query)
        if not candidates:
            raise NoReferencesError(f"No reference articles found for {query!r}")
        context.candidates = list(candidates)
        return {
            "query": query,
            "results_found": len(candidates),
            "results": [{"title": c.title, "url": c.link} for c in candidates],
        }

    async def _extract_references(self, context: WorkflowContext) -> dict[str, Any]:
        by_link = {candidate.link: candidate for candidate in context.candidates}
        batch = await self._extractor.extract_many(by_link)
        context.extraction = batch
        if not batch.success:
            raise NoContentExtractedError(
                "Failed to scrape content from any reference article",
                details={"errors": batch.errors},
            )
        context.references = [
            ReferenceArticle.from_extracted(item, by_link.get(item.url)) for item in batch.success
        ]
        return {
            "attempted": len(by_link),
            "successful": len(batch.success),
            "failed": len(batch.errors),
            "references": [
                {"title": ref.title, "url": ref.url, "word_count": ref.word_count}
                for ref in context.references
            ],
        }

    async def _rewrite(self, context: WorkflowContext) -> dict[str, Any]:
        original = context.require_original()
        enhanced = await self._rewriter.rewrite(original, context.references)
        context.enhanced = enhanced
        return {
            "original_word_count": original.word_count,
            "enhanced_word_count": enhanced.word_count,
            "reading_time": enhanced.reading_time,
        }

    async def _persist(self, context: WorkflowContext) -> dict[str, Any]:
        original = context.require_original()
        enhanced = context.enhanced
        if enhanced is None:
            raise RuntimeError("Rewrite step produced no content")
        created_at = self._clock()
        saved = await self._store.create(
            {
                "title": enhanced.title,
                "url": enhanced_url(original.url, created_at),
                "content": enhanced.content,
                "image": original.image,
                "date": created_at,
                "scraped_at": created_at,
                "created_at": created_at,
            }
        )
        context.saved = saved
        return {"article_id": saved.id, "title": saved.title}

    def _summary(self, context: WorkflowContext) -> dict[str, Any]:
        original = context.require_original()
        saved = context.saved
        enhanced = context.enhanced
        if saved is None or enhanced is None:
            raise RuntimeError("Workflow finished without a saved article")
        return {
            "original_article": {
                "id": original.id,
                "title": original.title,
                "word_count": original.word_count,
            },
            "enhanced_article": {
                "id": saved.id,
                "title": saved.title,
                "url": saved.url,
                "word_count": enhanced.word_count,
                "reading_time": enhanced.reading_time,
            },
            "references": [ref.to_dict() for ref in enhanced.references],
            "search_results": len(context.candidates),
            "scraped_articles": len(context.references),
        }

    def _emit(
        self,
        kind: str,
        article_id: str,
        *,
        step: int | None = None,
        name: str | None = None,
        data: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        self._events.emit(
            WorkflowEvent(
                kind=kind,
                article_id=article_id,
                step=step,
                name=name,
                data=dict(data or {}),
                error=error,
            )
        )


__all__ = ["EnhancementWorkflow", "WorkflowContext", "WorkflowStep"]
