"""Base validator classes and result models for task list validation.

Rule violations are values: every validator returns a ``ValidationResult``
holding ``ValidationError`` findings and never raises for an expected
problem in the document.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, ClassVar, Literal

from tasklint.config import TasklintConfig
from tasklint.models import Task

Severity = Literal["error", "warning"]

DEFAULT_PRIORITY = 50


@dataclass(frozen=True)
class ValidationError:
    """A single finding produced by a validator.

    Attributes:
        type: Machine-readable finding tag (e.g., "invalid_status").
        message: Human-readable description of the problem.
        task_id: ID of the task the finding belongs to, if any.
        severity: "error" fails validation; "warning" never does.
        context: Diagnostic payload (expected vs actual values, etc.).
        line_number: Optional source line of the task.
        section: Optional section marker the finding relates to.
    """

    type: str
    message: str
    task_id: str | None = None
    severity: Severity = "error"
    context: Mapping[str, Any] = field(default_factory=dict)
    line_number: int | None = None
    section: str | None = None

    def format(self) -> str:
        """Render as a single report line, e.g. ``ERROR (SSH0001, line 12): ...``."""
        location = [self.task_id] if self.task_id else []
        if self.line_number is not None:
            location.append(f"line {self.line_number}")
        where = f" ({', '.join(location)})" if location else ""
        return f"{self.severity.upper()}{where}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "message": self.message,
            "task_id": self.task_id,
            "severity": self.severity,
            "line_number": self.line_number,
            "section": self.section,
            "context": dict(self.context),
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one or more validator runs.

    ``valid`` is derived from ``errors`` so warnings can never affect it.

    Attributes:
        errors: Error-severity findings.
        warnings: Warning-severity findings.
        task_count: Number of tasks the result covers.
    """

    errors: tuple[ValidationError, ...] = ()
    warnings: tuple[ValidationError, ...] = ()
    task_count: int = 0

    @property
    def valid(self) -> bool:
        return not self.errors

    @classmethod
    def success(
        cls,
        warnings: Iterable[ValidationError] = (),
        task_count: int = 0,
    ) -> ValidationResult:
        return cls(errors=(), warnings=tuple(warnings), task_count=task_count)

    @classmethod
    def failure(
        cls,
        errors: ValidationError | Iterable[ValidationError],
        warnings: Iterable[ValidationError] = (),
        task_count: int = 0,
    ) -> ValidationResult:
        if isinstance(errors, ValidationError):
            errors = (errors,)
        return cls(errors=tuple(errors), warnings=tuple(warnings), task_count=task_count)

    @classmethod
    def combine(cls, results: Iterable[ValidationResult]) -> ValidationResult:
        """Concatenate findings from several results, preserving order.

        Args:
            results: Results to merge.

        Returns:
            A result that is valid iff none of the inputs has errors.
        """
        errors: list[ValidationError] = []
        warnings: list[ValidationError] = []
        task_count = 0
        for result in results:
            errors.extend(result.errors)
            warnings.extend(result.warnings)
            task_count += result.task_count
        return cls(errors=tuple(errors), warnings=tuple(warnings), task_count=task_count)

    def with_errors(self, *errors: ValidationError) -> ValidationResult:
        return ValidationResult(self.errors + errors, self.warnings, self.task_count)

    def with_warnings(self, *warnings: ValidationError) -> ValidationResult:
        return ValidationResult(self.errors, self.warnings + warnings, self.task_count)

    def with_task_count(self, task_count: int) -> ValidationResult:
        return ValidationResult(self.errors, self.warnings, task_count)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    @property
    def issue_count(self) -> int:
        return len(self.errors) + len(self.warnings)

    @property
    def has_issues(self) -> bool:
        return self.issue_count > 0

    def errors_by_type(self) -> dict[str, list[ValidationError]]:
        grouped: dict[str, list[ValidationError]] = {}
        for error in self.errors:
            grouped.setdefault(error.type, []).append(error)
        return grouped

    def errors_for_task(self, task_id: str) -> list[ValidationError]:
        return [error for error in self.errors if error.task_id == task_id]

    def has_error_type(self, error_type: str) -> bool:
        return any(error.type == error_type for error in self.errors)

    def format(self) -> str:
        """Render a human-readable report of the result."""
        count = self.task_count
        if self.valid and not self.warnings:
            return f"✓ TaskList validation passed! ({count} tasks validated)"

        if self.valid:
            lines = [
                f"✓ TaskList validation passed with {self.warning_count} warning(s)! "
                f"({count} tasks validated)",
            ]
        else:
            summary = f"✗ TaskList validation failed with {self.error_count} error(s)"
            if self.warnings:
                summary += f" and {self.warning_count} warning(s)"
            lines = [f"{summary} ({count} tasks processed)", "", "Errors:"]
            lines.extend(f"  {error.format()}" for error in self.errors)

        if self.warnings:
            lines.extend(["", "Warnings:"])
            lines.extend(f"  {warning.format()}" for warning in self.warnings)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "task_count": self.task_count,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


@dataclass(frozen=True)
class ValidationContext:
    """Read-only document-wide data shared by every validator call.

    Attributes:
        config: Configuration snapshot for the run.
        all_tasks: Every task in the document, main tasks and subtasks.
        references: Reference definitions keyed by bare name.
    """

    config: TasklintConfig
    all_tasks: Sequence[Task] = ()
    references: Mapping[str, Sequence[str]] = field(default_factory=dict)

    @cached_property
    def id_counts(self) -> Counter[str]:
        """Occurrences of each ID across the document."""
        return Counter(task.id for task in self.all_tasks)

    @cached_property
    def tasks_by_id(self) -> dict[str, Task]:
        """First task for each ID."""
        index: dict[str, Task] = {}
        for task in self.all_tasks:
            index.setdefault(task.id, task)
        return index

    @cached_property
    def nested_subtask_ids(self) -> frozenset[str]:
        """IDs of subtasks that sit under a main task in the document."""
        return frozenset(sub.id for task in self.all_tasks for sub in task.subtasks)

    def is_nested(self, task: Task) -> bool:
        """Return True for subtasks the subtask validator reaches through their parent."""
        return task.is_subtask and task.id in self.nested_subtask_ids


class BaseValidator(ABC):
    """Abstract base class for all task validators.

    Subclasses implement ``validate`` as a pure function of the task and
    context. Validators with a higher ``priority()`` run first.

    Attributes:
        name: Registry name of the validator.
        options: Per-validator options from the pipeline configuration.
    """

    name: ClassVar[str] = "base"
    PRIORITY: ClassVar[int] = DEFAULT_PRIORITY

    def __init__(self, **options: Any) -> None:
        """Initialize validator.

        Args:
            **options: Validator-specific options.
        """
        self.options = options

    def priority(self) -> int:
        return self.PRIORITY

    @abstractmethod
    def validate(self, task: Task, context: ValidationContext) -> ValidationResult:
        """Run validation checks on a single task.

        Must be implemented by subclasses to perform specific validation logic.

        Args:
            task: Task to check.
            context: Shared document-wide context.

        Returns:
            ValidationResult containing the findings for this task.
        """

    def make_error(
        self,
        task: Task,
        error_type: str,
        message: str,
        severity: Severity = "error",
        section: str | None = None,
        **context: Any,
    ) -> ValidationError:
        """Build a finding attached to ``task``."""
        return ValidationError(
            type=error_type,
            message=message,
            task_id=task.id,
            severity=severity,
            context=context,
            line_number=task.line_number,
            section=section,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(priority={self.priority()})"
