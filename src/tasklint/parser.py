"""Markdown parser for task list documents.

Builds a ``TaskList`` from a Markdown document made of:

- task tables under ``## Current Tasks`` and ``## Completed Tasks``;
- detailed sections headed ``### PRJ0001: Title``, holding numbered
  subtasks (``#### 1. Title (PRJ0001-1)``) and checkbox subtasks
  (``- [x] Title [PRJ0001a]``);
- reference definitions headed ``## {{name}}``.

Uses only regex and line scanning; Markdown structure is never validated.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from pathlib import Path

from tasklint.models import Task, TaskList, is_subtask_id
from tasklint.references import ReferenceResolver

logger = logging.getLogger(__name__)

CURRENT_TASKS_HEADER = "## Current Tasks"
COMPLETED_TASKS_HEADER = "## Completed Tasks"

INVALID_SUBTASK_ID = "INVALID_FORMAT"


class ParseError(ValueError):
    """Raised when a document cannot be turned into a task list."""


class TaskListParser:
    """Parse task list Markdown into the document model.

    All methods are stateless; one parser can be reused for many documents.
    """

    _TASK_HEADING_PATTERN = re.compile(r"^### ([A-Z-]{2,9}\d{3,4}):")
    _NUMBERED_SUBTASK_PATTERN = re.compile(r"^#### \d+\.")
    _NUMBERED_ID_PATTERN = re.compile(r"\(([A-Z]{2,4}\d{3,4}-\d+)\)")
    _NUMBERED_TITLE_PATTERN = re.compile(
        r"^#### \d+\.\s*(.+?)(?:\s*\([A-Z]{2,4}\d{3,4}-\d+\))?$"
    )
    _CHECKBOX_PATTERN = re.compile(r"^- \[([x ])\]")
    _CHECKBOX_ID_PATTERN = re.compile(r"\[([A-Z]{2,4}\d{3,4}[a-z]?)\]$")
    _BOLD_ID_PATTERN = re.compile(r"\*\*([A-Z]{2,4}\d{3,4}[a-z]?)\*\*")
    _SEPARATOR_PATTERN = re.compile(r"^[|\-:\s]*$")

    def parse(self, text: str, file_path: str | None = None) -> TaskList:
        """Parse a document.

        Args:
            text: Markdown content.
            file_path: Source path recorded on the result.

        Returns:
            The parsed TaskList.

        Raises:
            ParseError: If the document contains no tasks.
        """
        lines = text.replace("\r\n", "\n").split("\n")
        references = ReferenceResolver.extract_references(lines)

        table_tasks = self.extract_table_tasks(lines, CURRENT_TASKS_HEADER, completed=False)
        table_tasks += self.extract_table_tasks(lines, COMPLETED_TASKS_HEADER, completed=True)
        detailed = self.extract_detailed_tasks(lines)
        tasks = self.merge_tasks(table_tasks, detailed)

        if not tasks:
            raise ParseError("No tasks found in the document")

        task_list = TaskList(
            tasks=tasks,
            references=references,
            file_path=file_path,
            total_lines=len(lines),
        )
        logger.debug(
            "Parsed %d top-level task(s), %d subtask(s), %d reference(s)",
            len(tasks),
            len(task_list.subtasks()),
            len(references),
        )
        return task_list

    def parse_file(self, path: Path) -> TaskList:
        """Read and parse a document from disk.

        Raises:
            OSError: If the file cannot be read.
            ParseError: If the document contains no tasks.
        """
        return self.parse(path.read_text(encoding="utf-8"), file_path=str(path))

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def extract_table_tasks(self, lines: list[str], header: str, completed: bool) -> list[Task]:
        """Extract tasks from the table following ``header``.

        Rows start three lines below the header and end at the first blank
        line or ``##`` heading. Separator rows are skipped.

        Args:
            lines: Document lines.
            header: Exact section header line.
            completed: Force the Completed status on every row.

        Returns:
            One task per data row with at least two cells.
        """
        try:
            start = lines.index(header) + 3
        except ValueError:
            return []

        tasks: list[Task] = []
        for index in range(start, len(lines)):
            line = lines[index]
            if line.startswith("##") or line == "":
                break
            if not line.startswith("|") or self._SEPARATOR_PATTERN.match(line):
                continue
            task = self._parse_table_row(line, index + 1, completed)
            if task is not None:
                tasks.append(task)
        return tasks

    def _parse_table_row(self, line: str, line_number: int, completed: bool) -> Task | None:
        stripped = line.strip()
        if stripped.startswith("|"):
            stripped = stripped[1:]
        if stripped.endswith("|"):
            stripped = stripped[:-1]
        cells = [cell.strip() for cell in stripped.split("|")]
        if len(cells) < 2:
            return None

        task_id = cells[0]
        status = cells[2] if len(cells) >= 3 else ""
        if completed:
            status = "Completed"
        elif not status:
            status = "Planned"

        rating = None
        if len(cells) >= 6 and cells[-1] not in ("", "-"):
            rating = cells[-1]

        return Task(
            id=task_id,
            type="subtask" if is_subtask_id(task_id) else "main",
            description=cells[1],
            status=status,
            priority=cells[3] if len(cells) >= 4 else "",
            line_number=line_number,
            review_rating=rating,
        )

    # -------------------------------------------------------------------------
    # Detailed sections
    # -------------------------------------------------------------------------

    def extract_detailed_tasks(self, lines: list[str]) -> list[Task]:
        """Extract ``### ID:`` sections with their subtasks.

        A section runs to the next ``### `` or ``## `` heading. Numbered
        subtask blocks are moved out of the main task's content into their
        own task; checkbox lines stay in the main content as well.

        Args:
            lines: Document lines.

        Returns:
            Tasks in document order. Fields absent from a section are left
            empty so table values can fill them during merging.
        """
        tasks: list[Task] = []
        for index, line in enumerate(lines):
            match = self._TASK_HEADING_PATTERN.match(line)
            if not match:
                continue
            end = index + 1
            while end < len(lines) and not lines[end].startswith(("### ", "## ")):
                end += 1

            content, subtasks = self._split_subtasks(lines[index:end], index + 1)
            tasks.append(
                Task(
                    id=match.group(1),
                    description=self._field(content, "**Description**") or "",
                    status=self._field(content, "**Status**") or "",
                    priority=self._field(content, "**Priority**") or "",
                    content=content,
                    subtasks=subtasks,
                    line_number=index + 1,
                    review_rating=self._field(content, "**Review Rating**"),
                )
            )
        return tasks

    def _split_subtasks(self, block: list[str], first_line: int) -> tuple[list[str], list[Task]]:
        """Separate a task section into main content and subtasks.

        Args:
            block: Lines of the section, heading included.
            first_line: Source line number of the heading.

        Returns:
            Main task content lines and subtasks in document order.
        """
        content: list[str] = []
        subtasks: list[Task] = []
        index = 0
        while index < len(block):
            line = block[index]
            if self._NUMBERED_SUBTASK_PATTERN.match(line):
                end = index + 1
                while end < len(block) and not block[end].startswith("#### "):
                    end += 1
                subtasks.append(self._numbered_subtask(block[index:end], first_line + index))
                index = end
                continue
            checkbox = self._CHECKBOX_PATTERN.match(line)
            if checkbox:
                subtasks.append(
                    self._checkbox_subtask(line, checkbox.group(1) == "x", first_line + index)
                )
            content.append(line)
            index += 1
        return content, subtasks

    def _numbered_subtask(self, block: list[str], line_number: int) -> Task:
        heading = block[0]
        match = self._NUMBERED_ID_PATTERN.search(heading)
        title = self._NUMBERED_TITLE_PATTERN.match(heading)
        return Task(
            id=match.group(1) if match else INVALID_SUBTASK_ID,
            type="subtask",
            description=self._field(block, "**Description**")
            or (title.group(1).strip() if title else heading),
            status=self._field(block, "**Status**") or "",
            content=list(block),
            line_number=line_number,
            review_rating=self._field(block, "**Review Rating**"),
        )

    def _checkbox_subtask(self, line: str, checked: bool, line_number: int) -> Task:
        stripped = line.rstrip()
        match = self._CHECKBOX_ID_PATTERN.search(stripped) or self._BOLD_ID_PATTERN.search(
            stripped
        )
        description = self._CHECKBOX_PATTERN.sub("", stripped)
        description = self._CHECKBOX_ID_PATTERN.sub("", description)
        description = re.sub(r"\*\*[A-Z]{2,4}\d{3,4}[a-z]?\*\*:?\s*", "", description)
        return Task(
            id=match.group(1) if match else INVALID_SUBTASK_ID,
            type="subtask",
            description=description.strip(),
            status="Completed" if checked else "Planned",
            content=[line],
            line_number=line_number,
        )

    @staticmethod
    def _field(content: list[str], name: str) -> str | None:
        """Read a ``**Field**: value`` line, or the line after a bare ``**Field**``.

        Returns:
            The stripped value, or None when the field is absent or empty.
        """
        for index, line in enumerate(content):
            if not line.startswith(name):
                continue
            rest = line[len(name):]
            if ":" in rest:
                value = rest.split(":", 1)[1].strip()
            elif index + 1 < len(content):
                value = content[index + 1].strip()
            else:
                value = ""
            return value or None
        return None

    # -------------------------------------------------------------------------
    # Merging
    # -------------------------------------------------------------------------

    def merge_tasks(self, table_tasks: list[Task], detailed: list[Task]) -> list[Task]:
        """Merge table rows with detailed sections by ID.

        Detail values win where set. Subtask rows that match a nested
        subtask fill in its unset fields; other subtask rows stay top-level.
        Detail-only tasks follow the table tasks and default to
        Planned/Medium.

        Args:
            table_tasks: Tasks from the tables, in order.
            detailed: Tasks from detailed sections, in order.

        Returns:
            Top-level tasks.
        """
        pending: dict[str, list[Task]] = {}
        nested: dict[str, Task] = {}
        for task in detailed:
            pending.setdefault(task.id, []).append(task)
            for subtask in task.subtasks:
                nested.setdefault(subtask.id, subtask)

        merged: list[Task] = []
        used: set[int] = set()
        for row in table_tasks:
            if row.is_subtask and row.id in nested:
                self._fill_subtask(nested[row.id], row)
                continue
            candidates = pending.get(row.id)
            if not candidates:
                merged.append(row)
                continue
            detail = candidates.pop(0)
            used.add(id(detail))
            merged.append(
                replace(
                    detail,
                    description=detail.description or row.description,
                    status=detail.status or row.status,
                    priority=detail.priority or row.priority,
                    review_rating=detail.review_rating or row.review_rating,
                )
            )

        for detail in detailed:
            if id(detail) in used:
                continue
            merged.append(
                replace(
                    detail,
                    status=detail.status or "Planned",
                    priority=detail.priority or "Medium",
                )
            )
        return merged

    @staticmethod
    def _fill_subtask(subtask: Task, row: Task) -> None:
        if not subtask.status:
            subtask.status = row.status
        if subtask.review_rating is None:
            subtask.review_rating = row.review_rating
        if not subtask.description:
            subtask.description = row.description
