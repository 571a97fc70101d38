"""Step-by-step trace of one article's enhancement workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .models import utcnow


def _now() -> datetime:
    return utcnow()


@dataclass(slots=True)
class StepRecord:
    step: int
    name: str
    status: str
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "name": self.name,
            "status": self.status,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(slots=True)
class WorkflowRecord:
    """Mutable while in progress; frozen once completed or failed."""

    article_id: str
    start_time: datetime = field(default_factory=_now)
    end_time: datetime | None = None
    steps: list[StepRecord] = field(default_factory=list)
    status: str = "in-progress"
    result: dict[str, Any] | None = None
    error: str | None = None
    failed_step: str | None = None

    STATUS_IN_PROGRESS = "in-progress"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self.status != self.STATUS_IN_PROGRESS

    @property
    def duration_seconds(self) -> float | None:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def duration(self) -> str | None:
        seconds = self.duration_seconds
        return None if seconds is None else f"{seconds:.2f}s"

    def add_step(self, name: str, data: dict[str, Any] | None = None) -> StepRecord:
        self._ensure_open()
        record = StepRecord(
            step=len(self.steps) + 1,
            name=name,
            status=self.STATUS_COMPLETED,
            data=dict(data or {}),
        )
        self.steps.append(record)
        return record

    def complete(self, result: dict[str, Any]) -> None:
        self._ensure_open()
        self.result = result
        self.status = self.STATUS_COMPLETED
        self.end_time = _now()

    def fail(self, error: str, *, step: str | None = None) -> None:
        self._ensure_open()
        self.error = error
        self.failed_step = step
        self.status = self.STATUS_FAILED
        self.end_time = _now()

    def _ensure_open(self) -> None:
        if self.is_terminal:
            raise RuntimeError(f"Workflow for {self.article_id} is already {self.status}")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "article_id": self.article_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "status": self.status,
            "steps": [step.to_dict() for step in self.steps],
            "duration": self.duration,
        }
        if self.result is not None:
            data["result"] = self.result
        if self.error is not None:
            data["error"] = self.error
            data["failed_step"] = self.failed_step
        return data


__all__ = ["StepRecord", "WorkflowRecord"]
