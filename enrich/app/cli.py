"""Command-line interface for article import, enhancement and diagnostics."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Sequence

from ..core.events import STEP_COMPLETED, STEP_FAILED, WorkflowEvent
from ..core.exceptions import EnrichError, NotFoundError, ValidationError
from ..services.enhancer import EnhancementService, build_service
from ..settings import load_config
from ..utils.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)

Handler = Callable[[argparse.Namespace, EnhancementService], Awaitable[dict[str, Any]]]


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level, structured=not args.log_plain)

    handler: Handler | None = getattr(args, "handler", None)
    if handler is None:
        parser.print_help(sys.stderr)
        return 1
    return asyncio.run(_dispatch(args, handler))


def run() -> None:
    raise SystemExit(main())


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="enrich", description="Article enhancement CLI")
    parser.add_argument("--config", help="Path to configuration file", default=None)
    parser.add_argument(
        "--log-plain",
        action="store_true",
        help="Use plain-text logs instead of JSON",
    )
    parser.add_argument("--log-level", default=None, help="Override ENRICH_LOG_LEVEL")

    subparsers = parser.add_subparsers(dest="command")
    _add_article_commands(subparsers)
    _add_enhance_commands(subparsers)
    _add_check_commands(subparsers)
    return parser


def _add_article_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    articles_parser = subparsers.add_parser("articles", help="Inspect and import stored articles")
    articles_subparsers = articles_parser.add_subparsers(dest="articles_command", required=True)

    import_parser = articles_subparsers.add_parser("import", help="Import articles from a JSON file")
    import_parser.add_argument("path", type=Path, help="JSON list of {title, url, content, ...}")
    import_parser.set_defaults(handler=_handle_articles_import)

    list_parser = articles_subparsers.add_parser("list", help="List articles, newest first")
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--limit", type=int, default=10)
    list_parser.set_defaults(handler=_handle_articles_list)

    show_parser = articles_subparsers.add_parser("show", help="Show one article")
    show_parser.add_argument("article_id")
    show_parser.set_defaults(handler=_handle_articles_show)

    stats_parser = articles_subparsers.add_parser("stats", help="Article and enhancement statistics")
    stats_parser.set_defaults(handler=_handle_articles_stats)

    insights_parser = articles_subparsers.add_parser(
        "insights", help="AI summary, SEO metadata and structure analysis for one article"
    )
    insights_parser.add_argument("article_id")
    insights_parser.set_defaults(handler=_handle_articles_insights)


def _add_enhance_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    enhance_parser = subparsers.add_parser("enhance", help="Run the enhancement workflow")
    enhance_subparsers = enhance_parser.add_subparsers(dest="enhance_command", required=True)

    one_parser = enhance_subparsers.add_parser("one", help="Enhance a single article")
    one_parser.add_argument("article_id")
    one_parser.set_defaults(handler=_handle_enhance_one)

    batch_parser = enhance_subparsers.add_parser("batch", help="Enhance several articles")
    batch_parser.add_argument("article_ids", nargs="+", metavar="ARTICLE_ID")
    _add_batch_options(batch_parser)
    batch_parser.set_defaults(handler=_handle_enhance_batch)

    all_parser = enhance_subparsers.add_parser("all", help="Enhance every stored article")
    _add_batch_options(all_parser)
    all_parser.add_argument(
        "--force",
        action="store_true",
        help="Allow datasets above the configured enhance-all limit",
    )
    all_parser.set_defaults(handler=_handle_enhance_all)


def _add_batch_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--parallel", action="store_true", help="Run workflows concurrently")
    parser.add_argument(
        "--stop-on-error",
        action="store_true",
        help="Halt a sequential batch after the first failure",
    )


def _add_check_commands(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    check_parser = subparsers.add_parser("check", help="Diagnose external providers")
    check_subparsers = check_parser.add_subparsers(dest="check_command", required=True)

    search_parser = check_subparsers.add_parser("search", help="Run a search-only query")
    search_parser.add_argument("query", nargs="?", default="test search query")
    search_parser.set_defaults(handler=_handle_check_search)

    scrape_parser = check_subparsers.add_parser("scrape", help="Extract content from one URL")
    scrape_parser.add_argument("url")
    scrape_parser.set_defaults(handler=_handle_check_scrape)


async def _dispatch(args: argparse.Namespace, handler: Handler) -> int:
    config = load_config(args.config)
    async with build_service(config) as service:
        unsubscribe = service.events.subscribe(_log_progress)
        try:
            envelope = await handler(args, service)
        except EnrichError as exc:
            LOGGER.error(
                "Command failed: %s",
                exc.message,
                extra={"event": "cli.error", "command": args.command, "error_type": type(exc).__name__},
            )
            _emit(_failure_envelope(exc))
            return 2 if isinstance(exc, NotFoundError) else 1
        finally:
            unsubscribe()
    _emit(envelope)
    return 0 if envelope.get("success") else 1


def _log_progress(event: WorkflowEvent) -> None:
    if event.kind not in (STEP_COMPLETED, STEP_FAILED):
        return
    LOGGER.info(
        "Step %s %s: %s",
        event.step,
        "completed" if event.kind == STEP_COMPLETED else "failed",
        event.name,
        extra={"event": "cli.progress", "article_id": event.article_id, "kind": event.kind},
    )


def _envelope(message: str, data: Any = None, *, success: bool = True) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": success, "message": message}
    if data is not None:
        payload["data"] = data
    return payload


def _failure_envelope(exc: EnrichError) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": False, "message": exc.message, "error": str(exc)}
    if exc.details:
        payload["details"] = exc.details
    if exc.workflow is not None:
        payload["data"] = exc.workflow.to_dict()
    return payload


def _emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


async def _handle_articles_import(args: argparse.Namespace, service: EnhancementService) -> dict[str, Any]:
    path: Path = args.path
    if not path.exists():
        return _envelope(f"File not found: {path}", success=False)
    try:
        items = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ValidationError(f"Import file is not valid JSON: {path}", details={"path": str(path)}) from exc
    if isinstance(items, dict):
        items = items.get("articles", [])
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise ValidationError(
            "Import file must hold a list of article objects", details={"path": str(path)}
        )
    counts = await service.store.upsert_by_url(items)
    LOGGER.info(
        "Imported articles",
        extra={"event": "cli.command", "command": "articles.import", "counts": counts},
    )
    return _envelope(f"Imported {len(items)} articles", counts)


async def _handle_articles_list(args: argparse.Namespace, service: EnhancementService) -> dict[str, Any]:
    page = await service.store.list_articles(page=args.page, limit=args.limit)
    return _envelope("Articles retrieved", page)


async def _handle_articles_show(args: argparse.Namespace, service: EnhancementService) -> dict[str, Any]:
    article = await service.store.find_by_id(args.article_id)
    if article is None:
        return _envelope(f"Article with ID {args.article_id} not found", success=False)
    return _envelope("Article retrieved", {**article.to_dict(), "word_count": article.word_count})


async def _handle_articles_stats(args: argparse.Namespace, service: EnhancementService) -> dict[str, Any]:
    return _envelope("Statistics retrieved", await service.stats())


async def _handle_articles_insights(
    args: argparse.Namespace, service: EnhancementService
) -> dict[str, Any]:
    return _envelope("Insights generated", await service.insights(args.article_id))


async def _handle_enhance_one(args: argparse.Namespace, service: EnhancementService) -> dict[str, Any]:
    LOGGER.info(
        "Enhancing article",
        extra={"event": "cli.command", "command": "enhance.one", "article_id": args.article_id},
    )
    record = await service.enhance_one(args.article_id)
    return _envelope("Article enhanced successfully", record.to_dict())


async def _handle_enhance_batch(args: argparse.Namespace, service: EnhancementService) -> dict[str, Any]:
    LOGGER.info(
        "Enhancing batch",
        extra={
            "event": "cli.command",
            "command": "enhance.batch",
            "total": len(args.article_ids),
            "parallel": args.parallel,
        },
    )
    result = await service.enhance_batch(
        args.article_ids, parallel=args.parallel, stop_on_error=args.stop_on_error
    )
    return _envelope(
        f"Batch enhancement completed: {len(result.successful)}/{result.total} successful",
        result.to_dict(),
    )


async def _handle_enhance_all(args: argparse.Namespace, service: EnhancementService) -> dict[str, Any]:
    LOGGER.info(
        "Enhancing all articles",
        extra={"event": "cli.command", "command": "enhance.all", "parallel": args.parallel},
    )
    result = await service.enhance_all(
        parallel=args.parallel, stop_on_error=args.stop_on_error, force=args.force
    )
    return _envelope(result.message, result.to_dict())


async def _handle_check_search(args: argparse.Namespace, service: EnhancementService) -> dict[str, Any]:
    return _envelope("Search provider is working", await service.search_check(args.query))


async def _handle_check_scrape(args: argparse.Namespace, service: EnhancementService) -> dict[str, Any]:
    return _envelope("Content scraping is working", await service.scrape_check(args.url))


__all__ = ["main", "run"]
