"""Status, priority and review rating validation."""

from __future__ import annotations

from tasklint.config import TasklintConfig
from tasklint.models import Task
from tasklint.validators.base import (
    BaseValidator,
    ValidationContext,
    ValidationError,
    ValidationResult,
)

RATING_EXAMPLES = ["4.5", "3.0", "5.0 (partial)"]


def review_rating_errors(
    validator: BaseValidator, task: Task, config: TasklintConfig
) -> list[ValidationError]:
    """Check the review rating of a completed task.

    Args:
        validator: Validator the findings are attributed to.
        task: Completed task or subtask.
        config: Configuration providing the rating pattern.

    Returns:
        A missing or invalid rating finding, or an empty list.
    """
    rating = (task.review_rating or "").strip()
    if rating in ("", "-"):
        return [
            validator.make_error(
                task,
                "missing_review_rating",
                f"Completed subtask '{task.id}' is missing a review rating. "
                "Completed subtasks must have a review rating.",
                status="Completed",
                review_rating=task.review_rating,
            )
        ]

    if config.rating_pattern.match(rating):
        return []
    return [
        validator.make_error(
            task,
            "invalid_review_rating",
            f"Invalid review rating '{rating}' for task '{task.id}'. "
            "Expected format: N.N (1.0-5.0) with optional (partial) suffix",
            invalid_rating=rating,
            expected_pattern=config.rating_regex,
            examples=RATING_EXAMPLES,
        )
    ]


class StatusValidator(BaseValidator):
    """Validates status and priority values and status-dependent rules."""

    name = "status"
    PRIORITY = 60

    def validate(self, task: Task, context: ValidationContext) -> ValidationResult:
        # Status and rating of nested subtasks are checked by the subtask validator
        if context.is_nested(task):
            return ValidationResult.success()

        config = context.config
        errors: list[ValidationError] = []

        if task.status not in config.valid_statuses:
            errors.append(
                self.make_error(
                    task,
                    "invalid_status",
                    f"Invalid status '{task.status}' for task '{task.id}'. "
                    f"Valid statuses: {', '.join(config.valid_statuses)}",
                    invalid_status=task.status,
                    valid_statuses=list(config.valid_statuses),
                )
            )

        if task.priority not in config.valid_priorities:
            errors.append(
                self.make_error(
                    task,
                    "invalid_priority",
                    f"Invalid priority '{task.priority}' for task '{task.id}'. "
                    f"Valid priorities: {', '.join(config.valid_priorities)}",
                    invalid_priority=task.priority,
                    valid_priorities=list(config.valid_priorities),
                )
            )

        if task.is_main and task.is_in_progress and not task.subtasks:
            errors.append(
                self.make_error(
                    task,
                    "missing_subtasks_for_in_progress",
                    f"Task '{task.id}' has status 'In Progress' but no subtasks. "
                    "In Progress tasks should have defined subtasks to track progress.",
                    status="In Progress",
                    subtask_count=0,
                )
            )

        if task.is_subtask and task.is_completed:
            errors.extend(review_rating_errors(self, task, config))

        return ValidationResult(errors=tuple(errors))
