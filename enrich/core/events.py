"""Structured progress events emitted by the enhancement workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

WORKFLOW_STARTED = "workflow-started"
STEP_STARTED = "step-started"
STEP_COMPLETED = "step-completed"
STEP_FAILED = "step-failed"
WORKFLOW_COMPLETED = "workflow-completed"
WORKFLOW_FAILED = "workflow-failed"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class WorkflowEvent:
    """A single progress notification for one article's workflow."""

    kind: str
    article_id: str
    step: int | None = None
    name: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "article_id": self.article_id,
            "step": self.step,
            "name": self.name,
            "data": self.data,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
        }


EventListener = Callable[[WorkflowEvent], None]


class EventStream:
    """Fan-out of workflow events to any number of subscribers.

    Listeners are called synchronously in subscription order. A listener that
    raises aborts the emitting workflow, so listeners should stay cheap.
    """

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: WorkflowEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def __len__(self) -> int:
        return len(self._listeners)


__all__ = [
    "EventListener",
    "EventStream",
    "STEP_COMPLETED",
    "STEP_FAILED",
    "STEP_STARTED",
    "WORKFLOW_COMPLETED",
    "WORKFLOW_FAILED",
    "WORKFLOW_STARTED",
    "WorkflowEvent",
]
