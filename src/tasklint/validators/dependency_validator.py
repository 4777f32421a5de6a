"""Dependency declaration, existence and cycle validation."""

from __future__ import annotations

from collections.abc import Sequence

from tasklint.models import Task
from tasklint.validators.base import (
    BaseValidator,
    ValidationContext,
    ValidationError,
    ValidationResult,
)
from tasklint.validators.content import uses_placeholder

DEPENDENCIES_MARKER = "**Dependencies**"
NO_DEPENDENCY_REFERENCES = ["def-no-dependencies", "no-dependencies", "DEF:no-dependencies"]


def parse_dependencies(content: Sequence[str]) -> list[str] | None:
    """Parse the ``**Dependencies**`` line of a task.

    Args:
        content: Task content lines.

    Returns:
        Declared dependency IDs (empty for "None"), or None when the task
        has no dependencies line to parse.
    """
    for line in content:
        if line.startswith(DEPENDENCIES_MARKER):
            value = (
                line.replace(f"{DEPENDENCIES_MARKER}:", "").replace(DEPENDENCIES_MARKER, "").strip()
            )
            if value in ("None", ""):
                return []
            return [item.strip() for item in value.split(",") if item.strip()]
    return None


class DependencyValidator(BaseValidator):
    """Validates dependency declarations and detects circular dependencies."""

    name = "dependency"
    PRIORITY = 40

    def validate(self, task: Task, context: ValidationContext) -> ValidationResult:
        errors: list[ValidationError] = []
        dependencies = parse_dependencies(task.content)

        if dependencies is None:
            # Nested subtasks may leave their dependencies to the parent
            if context.is_nested(task):
                return ValidationResult.success()
            errors.extend(self._check_reference(task, context))
            return ValidationResult(errors=tuple(errors))

        unresolved = [dep for dep in dependencies if dep not in context.id_counts]
        if unresolved:
            errors.append(
                self.make_error(
                    task,
                    "invalid_dependency_reference",
                    f"Task '{task.id}' references non-existent dependencies: "
                    f"{', '.join(unresolved)}",
                    section=DEPENDENCIES_MARKER,
                    invalid_dependencies=unresolved,
                    valid_task_ids=[t.id for t in context.all_tasks],
                )
            )

        if task.id in dependencies:
            errors.append(
                self.make_error(
                    task,
                    "circular_dependency",
                    f"Task '{task.id}' has a circular dependency on itself.",
                    section=DEPENDENCIES_MARKER,
                    dependency_type="direct",
                    circular_task=task.id,
                )
            )
        else:
            cycle = self._find_cycle(dependencies, context, [task.id], set())
            if cycle is not None:
                errors.append(
                    self.make_error(
                        task,
                        "circular_dependency",
                        f"Circular dependency detected: {' -> '.join(cycle)}",
                        section=DEPENDENCIES_MARKER,
                        dependency_type="indirect",
                        cycle_path=cycle,
                        cycle_length=len(cycle),
                    )
                )

        return ValidationResult(errors=tuple(errors))

    def _check_reference(self, task: Task, context: ValidationContext) -> list[ValidationError]:
        used = [name for name in NO_DEPENDENCY_REFERENCES if uses_placeholder(task.content, name)]
        if not used:
            return [
                self.make_error(
                    task,
                    "missing_dependencies_section",
                    f"Task '{task.id}' is missing {DEPENDENCIES_MARKER} section. All tasks "
                    "must declare their dependencies or use {{def-no-dependencies}} reference.",
                    section=DEPENDENCIES_MARKER,
                    available_references=sorted(context.references),
                    expected_section=DEPENDENCIES_MARKER,
                )
            ]

        undefined = [name for name in used if name not in context.references]
        if not undefined:
            return []
        return [
            self.make_error(
                task,
                "missing_dependency_reference",
                f"Task '{task.id}' references undefined dependency definitions: "
                f"{', '.join(undefined)}",
                section=DEPENDENCIES_MARKER,
                missing_references=undefined,
                available_references=sorted(context.references),
            )
        ]

    def _find_cycle(
        self,
        dependencies: list[str],
        context: ValidationContext,
        path: list[str],
        acyclic: set[str],
    ) -> list[str] | None:
        """Depth-first search for a dependency that re-enters ``path``.

        Args:
            dependencies: Dependencies of the last task on ``path``.
            context: Validation context used to look up tasks.
            path: Task IDs visited so far, in traversal order.
            acyclic: IDs already fully explored without reaching a cycle.

        Returns:
            The cycle path closed by the repeated ID, or None.
        """
        for dep_id in dependencies:
            if dep_id in path:
                return [*path, dep_id]
            if dep_id in acyclic:
                continue

            dep_task = context.tasks_by_id.get(dep_id)
            if dep_task is None:
                continue
            dep_dependencies = parse_dependencies(dep_task.content)
            if dep_dependencies is not None:
                cycle = self._find_cycle(dep_dependencies, context, [*path, dep_id], acyclic)
                if cycle is not None:
                    return cycle
            acyclic.add(dep_id)
        return None
