"""Document model for parsed task lists.

A ``TaskList`` is produced once per run by the parser and is treated as
read-only afterwards. Tasks never store their category; it is derived from
the ID number through the active configuration so it cannot drift.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from tasklint.config import TasklintConfig

TaskType = Literal["main", "subtask"]
SubtaskFormat = Literal["numbered", "checkbox"]

_PREFIX_PATTERNS = (
    re.compile(r"^([A-Z]{2,4})\d"),
    re.compile(r"^([A-Z]{2,4})-\d"),
)

# Subtask ID shapes, each capturing the parent ID.
_PARENT_PATTERNS = (
    re.compile(r"^([A-Z]{2,4}\d{3,4})-\d+$"),
    re.compile(r"^([A-Z]{2,4}\d{3,4})[a-z]$"),
    re.compile(r"^([A-Z]{2,4}-\d{3,4})-\d+$"),
)

_NUMBER_PATTERNS = (
    re.compile(r"^[A-Z]{2,4}(\d{3,4})"),
    re.compile(r"^[A-Z]{2,4}-(\d{3,4})"),
)

_CHECKBOX_ID_PATTERN = re.compile(r"^[A-Z]{2,4}\d{3,4}[a-z]$")


def extract_prefix(task_id: str) -> str | None:
    """Extract the leading letter prefix of a task ID.

    Args:
        task_id: Task identifier (e.g., "SSH0001", "PRJ-0001-2").

    Returns:
        The 2-4 uppercase letters before the first digit or dash, or None.
    """
    for pattern in _PREFIX_PATTERNS:
        match = pattern.match(task_id)
        if match:
            return match.group(1)
    return None


def extract_parent_id(task_id: str) -> str | None:
    """Derive the parent task ID from a subtask ID.

    Supports ``PARENT-N``, ``PARENTx`` and ``XXX-###-N`` forms.

    Args:
        task_id: Subtask identifier.

    Returns:
        Parent task ID, or None if the ID has no subtask suffix.
    """
    for pattern in _PARENT_PATTERNS:
        match = pattern.match(task_id)
        if match:
            return match.group(1)
    return None


def extract_task_number(task_id: str) -> int | None:
    """Extract the numeric portion of a task ID.

    Subtask suffixes are ignored, so "PHX0101-2" and "PHX0101a" both
    yield the parent's number.

    Args:
        task_id: Task or subtask identifier.

    Returns:
        The task number, or None if the ID has no recognizable number.
    """
    for pattern in _NUMBER_PATTERNS:
        match = pattern.match(task_id)
        if match:
            return int(match.group(1))
    return None


def is_subtask_id(task_id: str) -> bool:
    """Return True if the ID has one of the subtask shapes."""
    return extract_parent_id(task_id) is not None


@dataclass
class Task:
    """A main task or subtask extracted from a task list document.

    Attributes:
        id: Task identifier, unique within the document.
        type: "main" or "subtask"; selects the rule set applied.
        description: Short description from the table or detail section.
        status: Free-text status, validated against configured values.
        priority: Free-text priority, validated against configured values.
        content: Raw lines of the task's detail section.
        subtasks: Child tasks (populated on main tasks only).
        line_number: 1-based source line, for reporting only.
        review_rating: Review rating such as "4.5" or "3.0 (partial)".
    """

    id: str
    type: TaskType = "main"
    description: str = ""
    status: str = ""
    priority: str = ""
    content: list[str] = field(default_factory=list)
    subtasks: list[Task] = field(default_factory=list)
    line_number: int | None = None
    review_rating: str | None = None

    @property
    def prefix(self) -> str | None:
        """Leading letter prefix of the ID."""
        return extract_prefix(self.id)

    @property
    def parent_id(self) -> str | None:
        """Parent ID derived from a subtask ID (None for main task IDs)."""
        return extract_parent_id(self.id)

    @property
    def is_main(self) -> bool:
        return self.type == "main"

    @property
    def is_subtask(self) -> bool:
        return self.type == "subtask"

    @property
    def is_completed(self) -> bool:
        return self.status == "Completed"

    @property
    def is_in_progress(self) -> bool:
        return self.status == "In Progress"

    @property
    def subtask_format(self) -> SubtaskFormat:
        """Checkbox for letter-suffixed IDs, numbered otherwise."""
        if _CHECKBOX_ID_PATTERN.match(self.id):
            return "checkbox"
        return "numbered"


@dataclass
class TaskList:
    """A parsed task list document.

    Attributes:
        tasks: Top-level tasks in document order (subtasks nested inside).
        references: Reference definitions keyed by bare name.
        file_path: Source path, if parsed from a file.
        total_lines: Number of lines in the source document.
        parsed_at: When the document was parsed.
    """

    tasks: list[Task] = field(default_factory=list)
    references: dict[str, list[str]] = field(default_factory=dict)
    file_path: str | None = None
    total_lines: int = 0
    parsed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def main_tasks(self) -> list[Task]:
        return [task for task in self.tasks if task.is_main]

    def subtasks(self) -> list[Task]:
        """All nested subtasks, in document order."""
        return [subtask for task in self.tasks for subtask in task.subtasks]

    def all_tasks(self) -> list[Task]:
        """Flatten top-level tasks and their subtasks, in document order."""
        flattened: list[Task] = []
        for task in self.tasks:
            flattened.append(task)
            flattened.extend(task.subtasks)
        return flattened

    def tasks_by_status(self, status: str) -> list[Task]:
        return [task for task in self.all_tasks() if task.status == status]

    def tasks_by_category(self, category: str, config: TasklintConfig) -> list[Task]:
        return [task for task in self.tasks if config.category_for(task.id) == category]

    def find_task(self, task_id: str) -> Task | None:
        for task in self.all_tasks():
            if task.id == task_id:
                return task
        return None

    def task_exists(self, task_id: str) -> bool:
        return self.find_task(task_id) is not None

    def task_ids(self) -> list[str]:
        return [task.id for task in self.all_tasks()]

    def reference_exists(self, name: str) -> bool:
        return name in self.references

    def task_count(self) -> int:
        return len(self.all_tasks())

    def stats(self, config: TasklintConfig) -> dict[str, Any]:
        """Summarize the document.

        Args:
            config: Configuration used to derive categories.

        Returns:
            Dictionary of task counts and per-category main task counts.
        """
        all_tasks = self.all_tasks()
        categories = Counter(
            config.category_for(task.id) or "uncategorized" for task in self.main_tasks()
        )
        return {
            "total": len(all_tasks),
            "main": len(self.main_tasks()),
            "subtasks": len(all_tasks) - len(self.main_tasks()),
            "completed": sum(1 for task in all_tasks if task.is_completed),
            "in_progress": sum(1 for task in all_tasks if task.is_in_progress),
            "planned": sum(1 for task in all_tasks if task.status == "Planned"),
            "references": len(self.references),
            "categories": dict(sorted(categories.items())),
        }
