"""Required section validation.

Markers are found by substring search over the joined task content, or
inside a reference the task points to. Category sections and error handling
structure have their own validators so each gap is reported once. Checkbox
subtasks under a main task need no sections.
"""

from __future__ import annotations

from tasklint.models import Task
from tasklint.validators.base import (
    BaseValidator,
    ValidationContext,
    ValidationError,
    ValidationResult,
)
from tasklint.validators.content import missing_markers

MAIN_TASK_SECTIONS = ["**Description**", "**Status**", "**Priority**"]
SUBTASK_SECTIONS = ["**Description**", "**Status**"]
# The subtask validator owns the status marker of nested numbered subtasks
NESTED_SUBTASK_SECTIONS = ["**Description**"]
COMPLETED_TASK_SECTIONS = [
    "**Implementation Notes**",
    "**Complexity Assessment**",
    "**Maintenance Impact**",
    "**Error Handling Implementation**",
]


class SectionValidator(BaseValidator):
    """Validates that tasks carry the sections their type and status require."""

    name = "section"
    PRIORITY = 50

    def validate(self, task: Task, context: ValidationContext) -> ValidationResult:
        errors: list[ValidationError] = []
        references = context.references

        if task.is_main:
            required = MAIN_TASK_SECTIONS
        elif not context.is_nested(task):
            required = SUBTASK_SECTIONS
        elif task.subtask_format == "numbered":
            required = NESTED_SUBTASK_SECTIONS
        else:
            return ValidationResult.success()

        missing = missing_markers(task.content, references, required)
        if missing:
            label = "Task" if task.is_main else "Subtask"
            errors.append(
                self.make_error(
                    task,
                    "missing_required_section",
                    f"{label} '{task.id}' is missing required sections: {', '.join(missing)}",
                    missing_sections=missing,
                    task_type=task.type,
                )
            )

        if task.is_main and task.is_completed:
            missing = missing_markers(task.content, references, COMPLETED_TASK_SECTIONS)
            if missing:
                errors.append(
                    self.make_error(
                        task,
                        "incomplete_completed_task",
                        f"Completed task '{task.id}' is missing required completion "
                        f"sections: {', '.join(missing)}",
                        missing_sections=missing,
                        status="Completed",
                    )
                )

        return ValidationResult(errors=tuple(errors))
