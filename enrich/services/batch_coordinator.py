"""Run the enhancement workflow over many articles."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Sequence

from ..core.exceptions import EmptyDatasetError, EnrichError
from ..core.results import Err, Ok, Result
from ..utils.logging import get_logger
from .models import utcnow
from .workflow_record import WorkflowRecord

if TYPE_CHECKING:  # pragma: no cover
    from ..storage.article_store import ArticleStore
    from .enhancement_workflow import EnhancementWorkflow

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class BatchOutcome:
    article_id: str
    workflow: WorkflowRecord | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"article_id": self.article_id}
        if self.workflow is not None:
            data["workflow"] = self.workflow.to_dict()
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(slots=True)
class BatchResult:
    """Aggregated outcome of a batch; ``skipped`` lists ids never started."""

    total: int
    successful: list[BatchOutcome] = field(default_factory=list)
    failed: list[BatchOutcome] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    start_time: datetime = field(default_factory=utcnow)
    end_time: datetime | None = None

    @property
    def duration(self) -> str | None:
        if self.end_time is None:
            return None
        return f"{(self.end_time - self.start_time).total_seconds():.2f}s"

    @property
    def success_rate(self) -> float:
        return round(len(self.successful) / self.total * 100, 1) if self.total else 0.0

    @property
    def message(self) -> str:
        return f"Enhanced {len(self.successful)}/{self.total} articles"

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "successful": [outcome.to_dict() for outcome in self.successful],
            "failed": [outcome.to_dict() for outcome in self.failed],
            "skipped": list(self.skipped),
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration": self.duration,
            "success_rate": self.success_rate,
        }


def _failure(article_id: str, exc: BaseException) -> BatchOutcome:
    if isinstance(exc, EnrichError):
        return BatchOutcome(article_id=article_id, workflow=exc.workflow, error=exc.message)
    return BatchOutcome(article_id=article_id, error=str(exc) or type(exc).__name__)


class BatchCoordinator:
    def __init__(self, workflow: EnhancementWorkflow, store: ArticleStore) -> None:
        self._workflow = workflow
        self._store = store

    async def run_many(
        self,
        article_ids: Sequence[str],
        *,
        parallel: bool = False,
        stop_on_error: bool = False,
    ) -> BatchResult:
        ids = list(article_ids)
        result = BatchResult(total=len(ids))
        LOGGER.info(
            "Starting batch of %d articles",
            len(ids),
            extra={
                "event": "batch.start",
                "total": len(ids),
                "parallel": parallel,
                "stop_on_error": stop_on_error,
            },
        )
        if parallel:
            if stop_on_error:
                LOGGER.warning(
                    "stop_on_error has no effect in parallel mode; all workflows run to completion",
                    extra={"event": "batch.option_ignored"},
                )
            await self._run_parallel(ids, result)
        else:
            await self._run_sequential(ids, result, stop_on_error=stop_on_error)

        result.end_time = utcnow()
        LOGGER.info(
            "Batch finished: %d successful, %d failed, %d skipped",
            len(result.successful),
            len(result.failed),
            len(result.skipped),
            extra={
                "event": "batch.done",
                "total": result.total,
                "successful": len(result.successful),
                "failed": len(result.failed),
                "skipped": len(result.skipped),
                "duration": result.duration,
            },
        )
        return result

    async def run_all(self, *, parallel: bool = False, stop_on_error: bool = False) -> BatchResult:
        summaries = await self._store.list_ids()
        if not summaries:
            raise EmptyDatasetError("No articles found in database")
        return await self.run_many(
            [summary.id for summary in summaries],
            parallel=parallel,
            stop_on_error=stop_on_error,
        )

    async def _run_sequential(
        self, ids: list[str], result: BatchResult, *, stop_on_error: bool
    ) -> None:
        for index, article_id in enumerate(ids):
            try:
                record = await self._workflow.run(article_id)
            except Exception as exc:
                result.failed.append(_failure(article_id, exc))
                self._log_failure(article_id, exc)
                if stop_on_error:
                    result.skipped = ids[index + 1 :]
                    break
                continue
            result.successful.append(BatchOutcome(article_id=article_id, workflow=record))

    async def _run_parallel(self, ids: list[str], result: BatchResult) -> None:
        settled = await asyncio.gather(*(self._settle(article_id) for article_id in ids))
        for article_id, outcome in zip(ids, settled):
            match outcome:
                case Ok(value=record):
                    result.successful.append(BatchOutcome(article_id=article_id, workflow=record))
                case Err(error=exc):
                    result.failed.append(_failure(article_id, exc))
                    self._log_failure(article_id, exc)

    async def _settle(self, article_id: str) -> Result[WorkflowRecord, Exception]:
        try:
            return Ok(await self._workflow.run(article_id))
        except Exception as exc:
            return Err(exc, key=article_id)

    @staticmethod
    def _log_failure(article_id: str, exc: BaseException) -> None:
        LOGGER.error(
            "Enhancement failed for %s: %s",
            article_id,
            exc,
            extra={"event": "batch.outcome", "article_id": article_id, "error_type": type(exc).__name__},
        )


__all__ = ["BatchCoordinator", "BatchOutcome", "BatchResult"]
