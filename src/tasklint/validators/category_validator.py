"""Category assignment and category-specific section validation.

A task's category is derived from the number in its ID (subtasks use the
parent's number) by looking it up in the configured ranges. Each category
may require extra sections, which can also come from a referenced block.
"""

from __future__ import annotations

from tasklint.config import TasklintConfig
from tasklint.models import Task, extract_task_number
from tasklint.validators.base import BaseValidator, ValidationContext, ValidationResult
from tasklint.validators.content import missing_markers


def format_ranges(config: TasklintConfig) -> str:
    """Render ranges as ``name (min-max), ...`` for messages."""
    return ", ".join(
        f"{name} ({low}-{high})" for name, (low, high) in config.category_ranges.items()
    )


class CategoryValidator(BaseValidator):
    """Validates category ranges and required category sections."""

    name = "category"
    PRIORITY = 35

    def validate(self, task: Task, context: ValidationContext) -> ValidationResult:
        # A nested subtask shares its parent's number, so its category is checked there
        if context.is_nested(task):
            return ValidationResult.success()

        config = context.config
        number = extract_task_number(task.id)
        if number is None:
            return ValidationResult.failure(
                self.make_error(
                    task,
                    "invalid_id_for_categorization",
                    f"Cannot categorize task '{task.id}': "
                    "Task ID format not recognized for categorization",
                    categorization_error="Task ID format not recognized for categorization",
                )
            )

        category = config.category_for(task.id)
        if category is None:
            return ValidationResult.failure(
                self.make_error(
                    task,
                    "invalid_category_range",
                    f"Task '{task.id}' number {number} doesn't fit any defined category "
                    f"range. Available ranges: {format_ranges(config)}",
                    task_number=number,
                    available_ranges={
                        name: list(bounds) for name, bounds in config.category_ranges.items()
                    },
                )
            )

        if not config.enforce_category_sections:
            return ValidationResult.success()

        required = config.category_sections.get(category, [])
        missing = missing_markers(task.content, context.references, required, line_start=True)
        if not missing:
            return ValidationResult.success()
        return ValidationResult.failure(
            self.make_error(
                task,
                "missing_category_sections",
                f"Task '{task.id}' ({category} category) is missing required sections: "
                f"{', '.join(missing)}",
                category=category,
                missing_sections=missing,
                required_sections=list(required),
            )
        )
