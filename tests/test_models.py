"""Tests for the task list document model."""

from __future__ import annotations

from tasklint.config import TasklintConfig
from tasklint.models import (
    Task,
    TaskList,
    extract_parent_id,
    extract_prefix,
    extract_task_number,
    is_subtask_id,
)


class TestIdHelpers:
    """Tests for ID parsing helpers."""

    def test_extract_prefix(self) -> None:
        """Test prefix extraction for plain and dash IDs."""
        assert extract_prefix("SSH0001") == "SSH"
        assert extract_prefix("PROJ-001") == "PROJ"
        assert extract_prefix("DB0301-2") == "DB"
        assert extract_prefix("ssh0001") is None
        assert extract_prefix("INVALID_FORMAT") is None

    def test_extract_parent_id(self) -> None:
        """Test all three subtask shapes resolve to a parent."""
        assert extract_parent_id("SSH0001-1") == "SSH0001"
        assert extract_parent_id("SSH0001a") == "SSH0001"
        assert extract_parent_id("PROJ-001-12") == "PROJ-001"
        assert extract_parent_id("SSH0001") is None
        assert extract_parent_id("PROJ-001") is None

    def test_extract_task_number_uses_parent_number(self) -> None:
        """Test subtask suffixes are ignored when extracting the number."""
        assert extract_task_number("PHX0101") == 101
        assert extract_task_number("PHX0101-2") == 101
        assert extract_task_number("PHX0101a") == 101
        assert extract_task_number("PROJ-0042") == 42
        assert extract_task_number("nope") is None

    def test_is_subtask_id(self) -> None:
        """Test subtask detection does not confuse dash main IDs."""
        assert is_subtask_id("SSH0001-1")
        assert is_subtask_id("SSH0001b")
        assert not is_subtask_id("PROJ-001")


class TestTask:
    """Tests for the Task dataclass."""

    def test_derived_properties(self) -> None:
        """Test prefix, parent and predicates are derived from fields."""
        task = Task(id="SSH0001-1", type="subtask", status="Completed")
        assert task.prefix == "SSH"
        assert task.parent_id == "SSH0001"
        assert task.is_subtask
        assert not task.is_main
        assert task.is_completed
        assert not task.is_in_progress

    def test_subtask_format(self) -> None:
        """Test letter suffixes are checkbox subtasks, everything else numbered."""
        assert Task(id="SSH0001a", type="subtask").subtask_format == "checkbox"
        assert Task(id="SSH0001-1", type="subtask").subtask_format == "numbered"

    def test_defaults(self) -> None:
        """Test a bare task has empty collections."""
        task = Task(id="SSH0001")
        assert task.is_main
        assert task.content == []
        assert task.subtasks == []
        assert task.review_rating is None


class TestTaskList:
    """Tests for the TaskList container."""

    def _task_list(self) -> TaskList:
        parent = Task(
            id="SSH0001",
            status="In Progress",
            subtasks=[
                Task(id="SSH0001-1", type="subtask", status="Completed"),
                Task(id="SSH0001a", type="subtask", status="Planned"),
            ],
        )
        other = Task(id="SSH0150", status="Planned")
        return TaskList(tasks=[parent, other], references={"error-handling": ["x"]})

    def test_all_tasks_flattens_in_document_order(self) -> None:
        """Test subtasks follow their parent."""
        ids = [t.id for t in self._task_list().all_tasks()]
        assert ids == ["SSH0001", "SSH0001-1", "SSH0001a", "SSH0150"]

    def test_lookup_helpers(self) -> None:
        """Test find/exists helpers cover subtasks."""
        task_list = self._task_list()
        assert task_list.find_task("SSH0001a") is not None
        assert task_list.task_exists("SSH0001-1")
        assert not task_list.task_exists("SSH9999")
        assert task_list.reference_exists("error-handling")
        assert task_list.task_count() == 4
        assert len(task_list.main_tasks()) == 2
        assert len(task_list.subtasks()) == 2

    def test_tasks_by_status(self) -> None:
        """Test status filtering spans main tasks and subtasks."""
        planned = self._task_list().tasks_by_status("Planned")
        assert [t.id for t in planned] == ["SSH0001a", "SSH0150"]

    def test_tasks_by_category(self) -> None:
        """Test categories are derived from the configured ranges."""
        task_list = self._task_list()
        config = TasklintConfig()
        assert [t.id for t in task_list.tasks_by_category("otp_genserver", config)] == [
            "SSH0001"
        ]
        assert [t.id for t in task_list.tasks_by_category("phoenix_web", config)] == [
            "SSH0150"
        ]

    def test_stats(self) -> None:
        """Test the summary counts."""
        stats = self._task_list().stats(TasklintConfig())
        assert stats["total"] == 4
        assert stats["main"] == 2
        assert stats["subtasks"] == 2
        assert stats["completed"] == 1
        assert stats["in_progress"] == 1
        assert stats["planned"] == 2
        assert stats["references"] == 1
        assert stats["categories"] == {"otp_genserver": 1, "phoenix_web": 1}

    def test_stats_uncategorized(self) -> None:
        """Test tasks outside every range are counted as uncategorized."""
        task_list = TaskList(tasks=[Task(id="SSH0900", status="Planned")])
        assert task_list.stats(TasklintConfig())["categories"] == {"uncategorized": 1}
