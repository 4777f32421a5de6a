"""Subtask validation, run on main tasks over their nested subtasks.

Numbered subtasks (``PARENT-N``) carry full sections and a review rating
once completed. Checkbox subtasks (``PARENTx``) are lightweight: their
status comes from the checkbox state and no sections are required.
"""

from __future__ import annotations

from tasklint.models import Task
from tasklint.validators.base import (
    BaseValidator,
    ValidationContext,
    ValidationError,
    ValidationResult,
)
from tasklint.validators.content import has_line_starting
from tasklint.validators.error_handling_validator import (
    ERROR_HANDLING_MARKER,
    has_subtask_error_handling,
)
from tasklint.validators.status_validator import review_rating_errors

STATUS_MARKER = "**Status**"


def subtask_status(subtask: Task) -> str:
    """Resolve a subtask's effective status.

    Checkbox subtasks default to Planned. Numbered subtasks fall back to
    their ``**Status**`` line, or "MISSING" when there is none.
    """
    if subtask.status:
        return subtask.status
    if subtask.subtask_format == "checkbox":
        return "Planned"
    for line in subtask.content:
        if line.startswith(STATUS_MARKER):
            return line.replace(f"{STATUS_MARKER}:", "").replace(STATUS_MARKER, "").strip()
    return "MISSING"


class SubtaskValidator(BaseValidator):
    """Validates the subtasks of a main task."""

    name = "subtask"
    PRIORITY = 45

    def validate(self, task: Task, context: ValidationContext) -> ValidationResult:
        if not task.is_main or not task.subtasks:
            return ValidationResult.success()

        errors: list[ValidationError] = []
        for subtask in task.subtasks:
            errors.extend(self._check_subtask(subtask, task, context))
        return ValidationResult(errors=tuple(errors))

    def _check_subtask(
        self, subtask: Task, parent: Task, context: ValidationContext
    ) -> list[ValidationError]:
        config = context.config
        errors: list[ValidationError] = []
        status = subtask_status(subtask)
        subtask_format = subtask.subtask_format

        if status not in config.valid_statuses:
            errors.append(
                self.make_error(
                    subtask,
                    "invalid_subtask_status",
                    f"Subtask '{subtask.id}' has invalid status '{status}'. "
                    f"Valid statuses: {', '.join(config.valid_statuses)}",
                    invalid_status=status,
                    valid_statuses=list(config.valid_statuses),
                    subtask_format=subtask_format,
                )
            )

        if subtask_format == "numbered":
            missing: list[str] = []
            if not has_line_starting(subtask.content, STATUS_MARKER):
                missing.append(STATUS_MARKER)
            if not has_subtask_error_handling(subtask, context.references):
                missing.append(ERROR_HANDLING_MARKER)
            if missing:
                errors.append(
                    self.make_error(
                        subtask,
                        "missing_subtask_sections",
                        f"Subtask '{subtask.id}' is missing required sections: "
                        f"{', '.join(missing)}",
                        missing_sections=missing,
                        subtask_format=subtask_format,
                    )
                )

            if status == "Completed":
                errors.extend(review_rating_errors(self, subtask, config))

        if subtask.prefix != parent.prefix:
            errors.append(
                self.make_error(
                    subtask,
                    "inconsistent_subtask_prefix",
                    f"Subtask '{subtask.id}' has prefix '{subtask.prefix}' which doesn't "
                    f"match parent task '{parent.id}' prefix '{parent.prefix}'",
                    subtask_prefix=subtask.prefix,
                    parent_prefix=parent.prefix,
                    parent_task_id=parent.id,
                )
            )

        return errors
