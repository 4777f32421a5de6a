"""Validation pipeline for running validators over a task list.

Validators run in descending priority order on every task, nested subtasks
included, and all findings are kept: no validator stops another from
running. Per-task results are combined in document order into one
document-level result. Tasks can be validated in parallel, which never
changes the output.
"""

from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from tasklint.config import ConfigError, TasklintConfig
from tasklint.models import Task, TaskList
from tasklint.references import ReferenceResolver
from tasklint.validators import (
    BaseValidator,
    CategoryValidator,
    DependencyValidator,
    ErrorHandlingValidator,
    IdValidator,
    KpiValidator,
    SectionValidator,
    StatusValidator,
    SubtaskValidator,
    ValidationContext,
    ValidationError,
    ValidationResult,
)

logger = logging.getLogger(__name__)

# Available validator classes
VALIDATORS: dict[str, type[BaseValidator]] = {
    "id": IdValidator,
    "status": StatusValidator,
    "error_handling": ErrorHandlingValidator,
    "section": SectionValidator,
    "subtask": SubtaskValidator,
    "dependency": DependencyValidator,
    "category": CategoryValidator,
    "kpi": KpiValidator,
}

DEFAULT_VALIDATORS = list(VALIDATORS)

MINIMAL_VALIDATORS = ["id", "status"]

STRICT_KPI_LIMITS: dict[str, int] = {
    "max_functions_per_module": 5,
    "max_lines_per_function": 10,
    "max_call_depth": 3,
}


def build_validators(validator_configs: Mapping[str, Mapping[str, Any]]) -> list[BaseValidator]:
    """Create validator instances from a ``{name: options}`` mapping.

    Args:
        validator_configs: Registry names mapped to validator options.

    Returns:
        Validator instances, in mapping order.

    Raises:
        KeyError: If a name is not in the registry.
    """
    validators: list[BaseValidator] = []
    for name, options in validator_configs.items():
        if name not in VALIDATORS:
            raise KeyError(f"Unknown validator '{name}'. Available: {', '.join(VALIDATORS)}")
        validators.append(VALIDATORS[name](**dict(options)))
    return validators


def default_validators() -> list[BaseValidator]:
    """All validators with default options."""
    return build_validators({name: {} for name in DEFAULT_VALIDATORS})


def minimal_validators() -> list[BaseValidator]:
    """ID and status checks only."""
    return build_validators({name: {} for name in MINIMAL_VALIDATORS})


def strict_validators(options: Mapping[str, Any] | None = None) -> list[BaseValidator]:
    """All validators with tightened KPI ceilings.

    Args:
        options: KPI limit overrides applied on top of the strict limits.
    """
    configs: dict[str, Mapping[str, Any]] = {name: {} for name in DEFAULT_VALIDATORS}
    configs["kpi"] = {**STRICT_KPI_LIMITS, **(options or {})}
    return build_validators(configs)


class ValidationPipeline:
    """Runs a set of validators over tasks and folds their results.

    Attributes:
        config: Configuration snapshot shared by every validator call.
        validators: Validators sorted by descending priority.
        parallel: Whether tasks are validated in a thread pool.
        max_workers: Thread pool size for parallel runs.
    """

    def __init__(
        self,
        config: TasklintConfig,
        validators: Iterable[BaseValidator] | None = None,
        parallel: bool = False,
        max_workers: int | None = None,
    ) -> None:
        """Initialize validation pipeline.

        Args:
            config: Configuration snapshot for the run.
            validators: Validators to run. Defaults to all validators.
            parallel: Whether to validate tasks in parallel.
            max_workers: Maximum worker threads for parallel runs.
        """
        self.config = config
        chosen = list(validators) if validators is not None else default_validators()
        # Stable sort keeps registration order among equal priorities
        self.validators = sorted(chosen, key=lambda v: v.priority(), reverse=True)
        self.parallel = parallel
        self.max_workers = max_workers
        logger.debug(
            "Validator order: %s", ", ".join(f"{v.name}({v.priority()})" for v in self.validators)
        )

    @property
    def validator_names(self) -> list[str]:
        return [validator.name for validator in self.validators]

    def build_context(self, task_list: TaskList) -> ValidationContext:
        """Build the shared context for a document."""
        return ValidationContext(
            config=self.config,
            all_tasks=tuple(task_list.all_tasks()),
            references=task_list.references,
        )

    def run(self, task: Task, context: ValidationContext) -> ValidationResult:
        """Run every validator on one task.

        Args:
            task: Task to validate.
            context: Shared document context.

        Returns:
            Combined result counting one task.
        """
        results = [self._run_validator(validator, task, context) for validator in self.validators]
        combined = ValidationResult.combine(results).with_task_count(1)
        logger.debug(
            "Task %s: %d error(s), %d warning(s)",
            task.id,
            combined.error_count,
            combined.warning_count,
        )
        return combined

    def run_many(self, tasks: Sequence[Task], context: ValidationContext) -> ValidationResult:
        """Run the pipeline on several tasks, combining in the given order."""
        if self.parallel and len(tasks) > 1:
            results = self._run_parallel(tasks, context)
        else:
            results = [self.run(task, context) for task in tasks]
        return ValidationResult.combine(results)

    def validate_task_list(self, task_list: TaskList) -> ValidationResult:
        """Validate every task of a document, each subtask right after its parent."""
        context = self.build_context(task_list)
        logger.debug(
            "Validating %d task(s) with %d validator(s)",
            len(context.all_tasks),
            len(self.validators),
        )
        return self.run_many(context.all_tasks, context)

    def validate_document(self, task_list: TaskList) -> ValidationResult:
        """Validate reference integrity and then every task."""
        references = ReferenceResolver.validate_references(task_list)
        return ValidationResult.combine([references, self.validate_task_list(task_list)])

    def _run_validator(
        self, validator: BaseValidator, task: Task, context: ValidationContext
    ) -> ValidationResult:
        try:
            return validator.validate(task, context)
        except ConfigError:
            raise
        except Exception as e:
            logger.exception("Validator %s failed on task %s", validator.name, task.id)
            return ValidationResult.failure(
                ValidationError(
                    type="validator_error",
                    message=f"Validator {validator.name} failed: {e!s}",
                    task_id=task.id,
                    line_number=task.line_number,
                    context={"validator": validator.name, "exception": type(e).__name__},
                )
            )

    def _run_parallel(
        self, tasks: Sequence[Task], context: ValidationContext
    ) -> list[ValidationResult]:
        """Run tasks in a ThreadPoolExecutor, keeping document order.

        Args:
            tasks: Tasks to validate.
            context: Shared document context.

        Returns:
            Per-task results in the same order as ``tasks``.
        """
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            return list(executor.map(lambda task: self.run(task, context), tasks))


def validate_task_list(
    task_list: TaskList,
    config: TasklintConfig | None = None,
    validators: Iterable[BaseValidator] | None = None,
) -> ValidationResult:
    """Validate a parsed document, including reference integrity.

    Args:
        task_list: Parsed document.
        config: Configuration snapshot. Defaults to built-in defaults.
        validators: Validators to run. Defaults to all validators.

    Returns:
        Document-level validation result.
    """
    pipeline = ValidationPipeline(config or TasklintConfig(), validators)
    return pipeline.validate_document(task_list)
