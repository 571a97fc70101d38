"""Tests for the workflow trace record."""

from __future__ import annotations

from datetime import timedelta

import pytest

from enrich.services.workflow_record import WorkflowRecord


def test_steps_are_numbered_in_order() -> None:
    record = WorkflowRecord(article_id="abc")
    record.add_step("Fetch Original Article", {"title": "T"})
    record.add_step("Google Search")

    assert [step.step for step in record.steps] == [1, 2]
    assert all(step.status == "completed" for step in record.steps)
    assert record.status == "in-progress"
    assert record.duration is None


def test_complete_is_terminal() -> None:
    record = WorkflowRecord(article_id="abc")
    record.complete({"ok": True})

    assert record.status == "completed"
    assert record.end_time is not None
    with pytest.raises(RuntimeError):
        record.add_step("late")
    with pytest.raises(RuntimeError):
        record.fail("boom")


def test_fail_records_error_and_step() -> None:
    record = WorkflowRecord(article_id="abc")
    record.add_step("Fetch Original Article")
    record.fail("No search results", step="Google Search")

    data = record.to_dict()
    assert data["status"] == "failed"
    assert data["error"] == "No search results"
    assert data["failed_step"] == "Google Search"
    assert "result" not in data
    with pytest.raises(RuntimeError):
        record.complete({})


def test_duration_is_formatted_in_seconds() -> None:
    record = WorkflowRecord(article_id="abc")
    record.complete({})
    record.end_time = record.start_time + timedelta(seconds=3.5)
    assert record.duration_seconds == pytest.approx(3.5)
    assert record.duration == "3.50s"
