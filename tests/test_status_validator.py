"""Tests for the status validator."""

from __future__ import annotations

import pytest

from tasklint.config import TasklintConfig
from tasklint.models import Task
from tasklint.validators import StatusValidator


def _types(result) -> list[str]:
    return [e.type for e in result.errors]


class TestStatusAndPriority:
    """Tests for allowed status and priority values."""

    def test_valid_task(self, make_context) -> None:
        """Test a planned task with a known priority passes."""
        task = Task(id="OTP0001", status="Planned", priority="High")
        assert StatusValidator().validate(task, make_context([task])).valid

    def test_invalid_status(self, make_context) -> None:
        """Test unknown statuses are reported with the allowed values."""
        task = Task(id="OTP0001", status="Done", priority="High")
        result = StatusValidator().validate(task, make_context([task]))
        assert _types(result) == ["invalid_status"]
        assert "Completed" in result.errors[0].context["valid_statuses"]

    def test_invalid_priority(self, make_context) -> None:
        """Test unknown priorities are reported."""
        task = Task(id="OTP0001", status="Planned", priority="Urgent")
        result = StatusValidator().validate(task, make_context([task]))
        assert _types(result) == ["invalid_priority"]

    def test_status_is_case_sensitive(self, make_context) -> None:
        """Test values must match exactly."""
        task = Task(id="OTP0001", status="planned", priority="High")
        assert _types(StatusValidator().validate(task, make_context([task]))) == ["invalid_status"]

    def test_custom_statuses(self, make_context) -> None:
        """Test configured statuses replace the defaults."""
        config = TasklintConfig(valid_statuses=["Todo", "Done"])
        task = Task(id="OTP0001", status="Done", priority="High")
        result = StatusValidator().validate(task, make_context([task], config_override=config))
        assert result.valid


class TestInProgress:
    """Tests for the In Progress rule."""

    def test_in_progress_without_subtasks(self, make_context) -> None:
        """Test an In Progress main task needs subtasks."""
        task = Task(id="OTP0001", status="In Progress", priority="High")
        result = StatusValidator().validate(task, make_context([task]))
        assert _types(result) == ["missing_subtasks_for_in_progress"]

    def test_in_progress_with_subtasks(self, make_context) -> None:
        """Test one subtask is enough."""
        task = Task(
            id="OTP0001",
            status="In Progress",
            priority="High",
            subtasks=[Task(id="OTP0001-1", type="subtask", status="Planned", priority="High")],
        )
        assert StatusValidator().validate(task, make_context([task])).valid


class TestReviewRating:
    """Tests for completed subtask ratings."""

    def _completed(self, rating: str | None) -> Task:
        return Task(
            id="OTP0001-1",
            type="subtask",
            status="Completed",
            priority="High",
            review_rating=rating,
        )

    @pytest.mark.parametrize("rating", [None, "", "-"])
    def test_missing_rating(self, make_context, rating: str | None) -> None:
        """Test empty and dash ratings count as missing."""
        task = self._completed(rating)
        assert _types(StatusValidator().validate(task, make_context([task]))) == [
            "missing_review_rating"
        ]

    @pytest.mark.parametrize("rating", ["4.5", "3", "5.0 (partial)", "1.0"])
    def test_valid_rating(self, make_context, rating: str) -> None:
        """Test accepted rating shapes."""
        task = self._completed(rating)
        assert StatusValidator().validate(task, make_context([task])).valid

    @pytest.mark.parametrize("rating", ["6.0", "4.55", "great", "0.5"])
    def test_invalid_rating(self, make_context, rating: str) -> None:
        """Test rejected rating shapes."""
        task = self._completed(rating)
        result = StatusValidator().validate(task, make_context([task]))
        assert _types(result) == ["invalid_review_rating"]
        assert result.errors[0].context["invalid_rating"] == rating

    def test_main_task_rating_not_checked_here(self, make_context) -> None:
        """Test completed main tasks do not need a rating from this validator."""
        task = Task(id="OTP0001", status="Completed", priority="High")
        assert StatusValidator().validate(task, make_context([task])).valid


class TestNestedSubtasks:
    """Tests for subtasks nested under a main task."""

    def test_nested_subtask_is_skipped(self, make_context) -> None:
        """Test nested subtasks have no priority and leave status to the subtask validator."""
        subtask = Task(id="OTP0001-1", type="subtask", status="Completed")
        parent = Task(id="OTP0001", status="In Progress", priority="High", subtasks=[subtask])
        assert StatusValidator().validate(subtask, make_context([parent])).valid
