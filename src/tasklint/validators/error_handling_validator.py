"""Error handling documentation validation.

Main tasks and subtasks have different required shapes. Either shape can be
written out literally or supplied through a recognized reference
placeholder. Nested subtasks are only checked here when they write the
section out; whether one has any error handling is a subtask validator rule.
Completed-task implementation notes are checked by the section validator.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from tasklint.models import Task
from tasklint.validators.base import BaseValidator, ValidationContext, ValidationResult
from tasklint.validators.content import has_line_starting, uses_placeholder

ERROR_HANDLING_MARKER = "**Error Handling**"

MAIN_ERROR_HANDLING_SECTIONS = [
    "**Error Handling**",
    "**Core Principles**",
    "- Pass raw errors",
    "- Use {:ok, result} | {:error, reason}",
    "- Let it crash",
    "**Error Implementation**",
    "- No wrapping",
    "- Minimal rescue",
    "- function/1 & /! versions",
    "**Error Examples**",
    "- Raw error passthrough",
    "- Simple rescue case",
    "- Supervisor handling",
    "**GenServer Specifics**",
    "- Handle_call/3 error pattern",
    "- Terminate/2 proper usage",
    "- Process linking considerations",
]

SUBTASK_ERROR_HANDLING_SECTIONS = [
    "**Error Handling**",
    "**Task-Specific Approach**",
    "- Error pattern for this task",
    "**Error Reporting**",
    "- Monitoring approach",
]

MAIN_ERROR_HANDLING_REFERENCES = ["error-handling", "error-handling-main", "def-error-handling"]
SUBTASK_ERROR_HANDLING_REFERENCES = [
    "error-handling-subtask",
    "subtask-error-handling",
    "def-error-handling-subtask",
]


def has_subtask_error_handling(task: Task, references: Mapping[str, Sequence[str]]) -> bool:
    """Return True if a subtask has a literal section or a defined recognized reference."""
    return has_line_starting(task.content, ERROR_HANDLING_MARKER) or any(
        uses_placeholder(task.content, name) and name in references
        for name in SUBTASK_ERROR_HANDLING_REFERENCES
    )


class ErrorHandlingValidator(BaseValidator):
    """Validates presence and completeness of error handling documentation."""

    name = "error_handling"
    PRIORITY = 55

    def validate(self, task: Task, context: ValidationContext) -> ValidationResult:
        if task.is_main:
            required = MAIN_ERROR_HANDLING_SECTIONS
            recognized = MAIN_ERROR_HANDLING_REFERENCES
        else:
            required = SUBTASK_ERROR_HANDLING_SECTIONS
            recognized = SUBTASK_ERROR_HANDLING_REFERENCES

        if has_line_starting(task.content, ERROR_HANDLING_MARKER):
            return self._check_structure(task, required)

        if context.is_nested(task):
            # Checkbox subtasks need none; numbered ones are checked for a
            # section or defined reference by the subtask validator
            return ValidationResult.success()

        used = [name for name in recognized if uses_placeholder(task.content, name)]
        if used:
            undefined = [name for name in used if name not in context.references]
            if not undefined:
                return ValidationResult.success()
            return ValidationResult.failure(
                self.make_error(
                    task,
                    "missing_error_handling",
                    f"Task '{task.id}' references undefined error handling: "
                    f"{', '.join(undefined)}",
                    section=ERROR_HANDLING_MARKER,
                    missing_references=undefined,
                    available_references=sorted(context.references),
                )
            )

        label = "Main task" if task.is_main else "Subtask"
        return ValidationResult.failure(
            self.make_error(
                task,
                "missing_error_handling",
                f"{label} '{task.id}' is missing error handling section. Must have "
                f"explicit {ERROR_HANDLING_MARKER} section or use {{{{{recognized[0]}}}}} "
                "reference.",
                section=ERROR_HANDLING_MARKER,
                task_type=task.type,
                available_references=sorted(context.references),
                expected_section=ERROR_HANDLING_MARKER,
            )
        )

    def _check_structure(self, task: Task, required: list[str]) -> ValidationResult:
        missing = [
            fragment for fragment in required if not has_line_starting(task.content, fragment)
        ]
        if not missing:
            return ValidationResult.success()
        return ValidationResult.failure(
            self.make_error(
                task,
                "incomplete_error_handling",
                f"Task '{task.id}' has incomplete error handling documentation. "
                f"Missing sections: {', '.join(missing)}",
                section=ERROR_HANDLING_MARKER,
                task_type=task.type,
                missing_sections=missing,
                required_sections=list(required),
            )
        )
