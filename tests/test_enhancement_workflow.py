"""Tests for the single-article enhancement workflow."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable

import pytest

from enrich.ai.rewrite_engine import RewriteEngine
from enrich.core.events import EventStream, WorkflowEvent
from enrich.core.exceptions import (
    ArticleNotFoundError,
    NoContentExtractedError,
    NoReferencesError,
    QuotaError,
)
from enrich.extract.content_extractor import ExtractionBatch
from enrich.services.enhancement_workflow import EnhancementWorkflow
from enrich.services.models import ExtractedContent, ReferenceCandidate
from enrich.settings import RewriteSettings
from enrich.storage.article_store import JsonArticleStore

ORIGINAL_URL = "https://beyondchats.example/blogs/chatbots"


class StubFinder:
    def __init__(self, candidates: list[ReferenceCandidate]) -> None:
        self.candidates = candidates
        self.queries: list[str] = []

    async def find(self, query: str) -> list[ReferenceCandidate]:
        self.queries.append(query)
        return list(self.candidates)


class StubExtractor:
    def __init__(self, failing: Iterable[str] = ()) -> None:
        self.failing = set(failing)
        self.requested: list[str] = []

    async def extract_many(self, urls: Iterable[str]) -> ExtractionBatch:
        batch = ExtractionBatch()
        for url in urls:
            self.requested.append(url)
            if url in self.failing:
                batch.errors.append({"url": url, "error": "HTTP 500"})
            else:
                batch.success.append(
                    ExtractedContent(
                        url=url,
                        title=f"Page at {url}",
                        content="Reference content " * 20,
                        word_count=40,
                    )
                )
        return batch


class StubGenerator:
    name = "Stub AI"

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls = 0

    async def generate(self, *, system_instruction: str, prompt: str, max_output_tokens: int | None = None) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return "# Enhanced Chatbots\n\n## Intro\n\nRewritten body text."


class TickingClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def _candidates() -> list[ReferenceCandidate]:
    return [
        ReferenceCandidate(title="First", link="https://one.example.com/a", snippet="s1", display_link="one.example.com"),
        ReferenceCandidate(title="Second", link="https://two.example.com/b", snippet="s2", display_link="two.example.com"),
    ]


async def _store_with_original(tmp_path: Path) -> tuple[JsonArticleStore, str]:
    store = JsonArticleStore(tmp_path / "articles.json")
    article = await store.create(
        {
            "title": "Chatbots for Small Business",
            "url": ORIGINAL_URL,
            "content": "Chatbots help small teams answer questions quickly.",
            "image": "https://cdn.example.com/lead.png",
        }
    )
    return store, article.id


def _workflow(
    store: JsonArticleStore,
    *,
    finder: StubFinder | None = None,
    extractor: StubExtractor | None = None,
    generator: StubGenerator | None = None,
    events: EventStream | None = None,
) -> EnhancementWorkflow:
    return EnhancementWorkflow(
        store=store,
        finder=finder or StubFinder(_candidates()),
        extractor=extractor or StubExtractor(),
        rewriter=RewriteEngine(generator or StubGenerator(), RewriteSettings()),
        events=events,
        clock=TickingClock(),
    )


@pytest.mark.asyncio
async def test_successful_run_persists_enhanced_article(tmp_path: Path) -> None:
    store, article_id = await _store_with_original(tmp_path)
    finder = StubFinder(_candidates())
    workflow = _workflow(store, finder=finder)

    record = await workflow.run(article_id)

    assert record.status == "completed"
    assert [step.name for step in record.steps] == [
        "Fetch Original Article",
        "Google Search",
        "Scrape Content",
        "AI Enhancement",
        "Save to Database",
    ]
    assert finder.queries == ["Chatbots for Small Business"]

    enhanced_id = record.result["enhanced_article"]["id"]
    saved = await store.find_by_id(enhanced_id)
    assert saved is not None
    assert saved.title == "Enhanced Chatbots"
    assert saved.url.startswith(ORIGINAL_URL + "-enhanced-")
    assert saved.image == "https://cdn.example.com/lead.png"
    assert "## References" in saved.content
    assert record.result["search_results"] == 2
    assert record.result["scraped_articles"] == 2
    assert record.steps[2].data["successful"] == 2
    assert record.steps[4].data == {"article_id": enhanced_id, "title": "Enhanced Chatbots"}


@pytest.mark.asyncio
async def test_events_follow_step_order(tmp_path: Path) -> None:
    store, article_id = await _store_with_original(tmp_path)
    events = EventStream()
    seen: list[WorkflowEvent] = []
    events.subscribe(seen.append)

    await _workflow(store, events=events).run(article_id)

    kinds = [(event.kind, event.step) for event in seen]
    assert kinds[0] == ("workflow-started", None)
    assert kinds[1:3] == [("step-started", 1), ("step-completed", 1)]
    assert kinds[-1] == ("workflow-completed", None)
    assert sum(1 for kind, _ in kinds if kind == "step-completed") == 5


@pytest.mark.asyncio
async def test_missing_article_fails_without_side_effects(tmp_path: Path) -> None:
    store, _ = await _store_with_original(tmp_path)
    events = EventStream()
    seen: list[str] = []
    events.subscribe(lambda event: seen.append(event.kind))

    with pytest.raises(ArticleNotFoundError) as excinfo:
        await _workflow(store, events=events).run("f" * 24)

    record = excinfo.value.workflow
    assert record is not None
    assert record.status == "failed"
    assert record.failed_step == "Fetch Original Article"
    assert record.steps == []
    assert await store.count() == 1
    assert seen[-2:] == ["step-failed", "workflow-failed"]


@pytest.mark.asyncio
async def test_no_references_aborts_after_search(tmp_path: Path) -> None:
    store, article_id = await _store_with_original(tmp_path)
    extractor = StubExtractor()
    with pytest.raises(NoReferencesError) as excinfo:
        await _workflow(store, finder=StubFinder([]), extractor=extractor).run(article_id)

    assert excinfo.value.workflow.failed_step == "Google Search"
    assert extractor.requested == []


@pytest.mark.asyncio
async def test_all_extractions_failing_skips_rewrite(tmp_path: Path) -> None:
    store, article_id = await _store_with_original(tmp_path)
    generator = StubGenerator()
    extractor = StubExtractor(failing=[c.link for c in _candidates()])

    with pytest.raises(NoContentExtractedError):
        await _workflow(store, extractor=extractor, generator=generator).run(article_id)

    assert generator.calls == 0
    assert await store.count() == 1


@pytest.mark.asyncio
async def test_partial_extraction_proceeds(tmp_path: Path) -> None:
    store, article_id = await _store_with_original(tmp_path)
    extractor = StubExtractor(failing=["https://two.example.com/b"])

    record = await _workflow(store, extractor=extractor).run(article_id)

    assert record.status == "completed"
    assert record.steps[2].data["failed"] == 1
    assert record.result["scraped_articles"] == 1
    assert [ref["url"] for ref in record.result["references"]] == ["https://one.example.com/a"]


@pytest.mark.asyncio
async def test_rewrite_failure_records_failed_step(tmp_path: Path) -> None:
    store, article_id = await _store_with_original(tmp_path)
    with pytest.raises(QuotaError) as excinfo:
        await _workflow(store, generator=StubGenerator(error=QuotaError("quota exceeded"))).run(article_id)

    record = excinfo.value.workflow
    assert record.failed_step == "AI Enhancement"
    assert record.error == "quota exceeded"
    assert len(record.steps) == 3
    assert await store.count() == 1


@pytest.mark.asyncio
async def test_repeated_enhancement_yields_distinct_urls(tmp_path: Path) -> None:
    store, article_id = await _store_with_original(tmp_path)
    workflow = _workflow(store)

    first = await workflow.run(article_id)
    second = await workflow.run(article_id)

    first_url = first.result["enhanced_article"]["url"]
    second_url = second.result["enhanced_article"]["url"]
    assert first_url != second_url
    assert int(second_url.rsplit("-", 1)[1]) > int(first_url.rsplit("-", 1)[1])
    assert await store.count() == 3
