"""Task ID validation.

Runs first: format, uniqueness, subtask-to-parent linkage, prefix
consistency across the document and semantic prefix hints.
"""

from __future__ import annotations

import re

from tasklint.models import Task, extract_parent_id, extract_prefix
from tasklint.validators.base import (
    BaseValidator,
    ValidationContext,
    ValidationError,
    ValidationResult,
)

_DASH_MAIN_PATTERN = re.compile(r"^[A-Z]{2,4}-\d{3,4}$")

_SUBTASK_PATTERNS = (
    re.compile(r"^[A-Z]{2,4}\d{3,4}-\d+$"),
    re.compile(r"^[A-Z]{2,4}\d{3,4}[a-z]$"),
    re.compile(r"^[A-Z]{2,4}-\d{3,4}-\d+$"),
)

SUBTASK_ID_FORMS = ["PARENT-N", "PARENTx", "XXX-###-N"]

# Prefixes treated as semantic even when shorter than three letters
KNOWN_SEMANTIC_PREFIXES = frozenset(
    "OTP GEN SUP APP PHX WEB LV LVC CTX BIZ DOM DB ECT MIG SCH "
    "INF DEP ENV REL TST TES INT E2E".split()
)


class IdValidator(BaseValidator):
    """Validates task ID format, uniqueness and parent linkage."""

    name = "id"
    PRIORITY = 90

    def validate(self, task: Task, context: ValidationContext) -> ValidationResult:
        checks = [
            self._check_format,
            self._check_uniqueness,
            self._check_parent,
            self._check_prefix_consistency,
            self._check_semantic_prefix,
        ]
        return ValidationResult.combine(check(task, context) for check in checks)

    def _check_format(self, task: Task, context: ValidationContext) -> ValidationResult:
        if task.is_main:
            pattern = context.config.id_pattern
            if pattern.match(task.id) or _DASH_MAIN_PATTERN.match(task.id):
                return ValidationResult.success()
            return ValidationResult.failure(
                self.make_error(
                    task,
                    "invalid_id_format",
                    f"Task ID '{task.id}' does not match expected format. "
                    f"Expected pattern: {pattern.pattern} or XXX-### format",
                    pattern=pattern.pattern,
                    actual_id=task.id,
                    task_type="main",
                )
            )

        if any(p.match(task.id) for p in _SUBTASK_PATTERNS):
            return ValidationResult.success()
        return ValidationResult.failure(
            self.make_error(
                task,
                "invalid_id_format",
                f"Subtask ID '{task.id}' does not match expected subtask format. "
                f"Expected: {', '.join(SUBTASK_ID_FORMS)}",
                expected_patterns=SUBTASK_ID_FORMS,
                actual_id=task.id,
                task_type="subtask",
            )
        )

    def _check_uniqueness(self, task: Task, context: ValidationContext) -> ValidationResult:
        count = context.id_counts.get(task.id, 0)
        if count <= 1:
            return ValidationResult.success()
        return ValidationResult.failure(
            self.make_error(
                task,
                "duplicate_task_id",
                f"Duplicate task ID '{task.id}' found {count} times",
                duplicate_count=count,
            )
        )

    def _check_parent(self, task: Task, context: ValidationContext) -> ValidationResult:
        if not task.is_subtask:
            return ValidationResult.success()

        parent_id = extract_parent_id(task.id)
        if parent_id is None:
            return ValidationResult.failure(
                self.make_error(
                    task,
                    "invalid_subtask_id",
                    f"Could not extract parent ID from subtask '{task.id}'",
                    subtask_id=task.id,
                )
            )

        if any(t.id == parent_id and t.is_main for t in context.all_tasks):
            return ValidationResult.success()
        return ValidationResult.failure(
            self.make_error(
                task,
                "invalid_subtask_id",
                f"Subtask '{task.id}' references non-existent parent task '{parent_id}'",
                parent_id=parent_id,
                subtask_id=task.id,
            )
        )

    def _check_prefix_consistency(
        self, task: Task, context: ValidationContext
    ) -> ValidationResult:
        all_prefixes = list(
            dict.fromkeys(extract_prefix(t.id) or "UNKNOWN" for t in context.all_tasks)
        )
        if len(all_prefixes) <= 1:
            return ValidationResult.success()

        warning = self.make_error(
            task,
            "mixed_prefixes",
            f"Multiple task prefixes detected: {', '.join(all_prefixes)}. "
            "Consider using consistent prefixes for better organization.",
            severity="warning",
            current_prefix=task.prefix or "UNKNOWN",
            all_prefixes=all_prefixes,
            prefix_count=len(all_prefixes),
        )
        return ValidationResult.success(warnings=[warning])

    def _check_semantic_prefix(self, task: Task, context: ValidationContext) -> ValidationResult:
        config = context.config
        if not config.enable_semantic_prefixes or not config.semantic_prefixes:
            return ValidationResult.success()

        prefix = task.prefix or "UNKNOWN"
        suggested = config.semantic_prefixes.get(prefix)
        current = config.category_for(task.id)

        if suggested is not None and suggested != current:
            return ValidationResult.success(
                warnings=[self._mismatch_warning(task, prefix, suggested, current)]
            )

        if suggested is None and (prefix in KNOWN_SEMANTIC_PREFIXES or len(prefix) >= 3):
            return ValidationResult.success(
                warnings=[
                    self.make_error(
                        task,
                        "unrecognized_semantic_prefix",
                        f"Task '{task.id}' uses prefix '{prefix}' which appears to be "
                        "semantic but is not recognized. Consider adding it to "
                        "semantic_prefixes configuration.",
                        severity="warning",
                        prefix=prefix,
                        suggestion=f"Add '{prefix}' to semantic_prefixes configuration",
                    )
                ]
            )

        return ValidationResult.success()

    def _mismatch_warning(
        self, task: Task, prefix: str, suggested: str, current: str | None
    ) -> ValidationError:
        if current is None:
            detail = "but task has no category assigned"
        else:
            detail = f"but task is categorized as '{current}'"
        return self.make_error(
            task,
            "semantic_prefix_mismatch",
            f"Task '{task.id}' uses semantic prefix '{prefix}' which suggests "
            f"category '{suggested}', {detail}",
            severity="warning",
            prefix=prefix,
            suggested_category=suggested,
            current_category=current,
        )
