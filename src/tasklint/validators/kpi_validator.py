"""Code quality KPI validation.

Metrics are read from ``<Label>: <number>`` lines under the
``**Code Quality KPIs**`` header and checked against configured limits.
Ceiling limits scale with the task's complexity; the Credo floor and the
Dialyzer zero-tolerance limit never do.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence

from tasklint.config import TasklintConfig
from tasklint.models import Task
from tasklint.validators.base import (
    BaseValidator,
    ValidationContext,
    ValidationError,
    ValidationResult,
)

KPI_MARKER = "**Code Quality KPIs**"

KPI_NAMES: dict[str, str] = {
    "functions_per_module": "Functions per module",
    "lines_per_function": "Lines per function",
    "call_depth": "Call depth",
    "cyclomatic_complexity": "Cyclomatic complexity",
    "pattern_match_depth": "Pattern match depth",
    "dialyzer_warnings": "Dialyzer warnings",
    "credo_score": "Credo score",
    "genserver_state_complexity": "GenServer state complexity",
    "phoenix_context_boundaries": "Phoenix context boundaries",
    "ecto_query_complexity": "Ecto query complexity",
}

REQUIRED_KPIS = ["functions_per_module", "lines_per_function", "call_depth"]

# Metric -> config field holding its base limit. Cyclomatic complexity is
# recognized but has no configured limit.
KPI_LIMIT_FIELDS: dict[str, str] = {
    "functions_per_module": "max_functions_per_module",
    "lines_per_function": "max_lines_per_function",
    "call_depth": "max_call_depth",
    "pattern_match_depth": "max_pattern_match_depth",
    "dialyzer_warnings": "max_dialyzer_warnings",
    "credo_score": "min_credo_score",
    "genserver_state_complexity": "max_genserver_state_complexity",
    "phoenix_context_boundaries": "max_phoenix_context_boundaries",
    "ecto_query_complexity": "max_ecto_query_complexity",
}

UNSCALED_KPIS = frozenset({"credo_score", "dialyzer_warnings"})
MINIMUM_KPIS = frozenset({"credo_score"})

_KPI_PATTERNS: dict[str, re.Pattern[str]] = {
    key: re.compile(
        re.escape(label.lower()) + (r":\s*(\d+(?:\.\d+)?)" if key == "credo_score" else r":\s*(\d+)"),
        re.IGNORECASE,
    )
    for key, label in KPI_NAMES.items()
}

_KPI_REFERENCE_PATTERN = re.compile(r"\{\{([^}]*kpis?[^}]*)\}\}")
_SECTION_HEADER_PATTERN = re.compile(r"^\*\*[^*]+\*\*")
_COMPLEXITY_PATTERN = re.compile(
    r"\*\*Complexity Assessment\*\*:\s*(Simple|Medium|Complex|Critical)", re.IGNORECASE
)


def extract_kpi_lines(content: Sequence[str]) -> list[str]:
    """Collect the lines of the KPI section.

    The section starts at the ``**Code Quality KPIs**`` header (including any
    text after the marker on the same line) and ends at the next bold header
    or blank line.
    """
    for index, line in enumerate(content):
        if not line.startswith(KPI_MARKER):
            continue
        lines = [line[len(KPI_MARKER):]]
        for following in content[index + 1:]:
            if not following.strip() or _SECTION_HEADER_PATTERN.match(following):
                break
            lines.append(following)
        return [entry for entry in lines if entry.strip()]
    return []


def parse_kpi_metrics(lines: Sequence[str]) -> dict[str, float]:
    """Extract KPI values from section lines.

    Returns:
        Metric key to value; the first matching line wins.
    """
    metrics: dict[str, float] = {}
    for key, pattern in _KPI_PATTERNS.items():
        for line in lines:
            match = pattern.search(line)
            if match:
                raw = match.group(1)
                metrics[key] = float(raw) if "." in raw else int(raw)
                break
    return metrics


def task_complexity(task: Task, config: TasklintConfig) -> str:
    """Determine the complexity level used to scale KPI ceilings.

    An explicit ``**Complexity Assessment**: <Level>`` line wins; otherwise
    the default for the task's category applies.
    """
    for line in task.content:
        match = _COMPLEXITY_PATTERN.search(line)
        if match:
            return match.group(1).lower()
    return config.complexity_for_category(config.category_for(task.id))


def scaled_limit(base: float, multiplier: float) -> int:
    """Scale a ceiling, rounding halves up (22.5 -> 23)."""
    return math.floor(base * multiplier + 0.5)


class KpiValidator(BaseValidator):
    """Validates KPI presence and values.

    Options:
        Any KPI limit field (e.g. ``max_functions_per_module=5``) overrides
        the configured base limit for this validator instance.
    """

    name = "kpi"
    PRIORITY = 30

    def validate(self, task: Task, context: ValidationContext) -> ValidationResult:
        referenced = list(dict.fromkeys(
            name for line in task.content for name in _KPI_REFERENCE_PATTERN.findall(line)
        ))
        if referenced:
            return self._check_references(task, referenced, context)

        if not any(line.startswith(KPI_MARKER) for line in task.content):
            # Nested subtasks fall under their parent's KPIs unless they declare their own
            if context.is_nested(task):
                return ValidationResult.success()
            return ValidationResult.failure(
                self.make_error(
                    task,
                    "missing_kpi_section",
                    f"Task '{task.id}' is missing {KPI_MARKER} section. All tasks must "
                    "declare code quality metrics or use {{standard-kpis}} reference.",
                    section=KPI_MARKER,
                    available_references=sorted(context.references),
                    expected_section=KPI_MARKER,
                )
            )

        metrics = parse_kpi_metrics(extract_kpi_lines(task.content))
        errors: list[ValidationError] = []

        missing = [key for key in REQUIRED_KPIS if key not in metrics]
        if missing:
            errors.append(
                self.make_error(
                    task,
                    "missing_kpi_metrics",
                    f"Task '{task.id}' is missing required KPI metrics: "
                    f"{', '.join(KPI_NAMES[key] for key in missing)}",
                    section=KPI_MARKER,
                    missing_metrics=missing,
                    required_metrics=list(REQUIRED_KPIS),
                    available_metrics=sorted(metrics),
                )
            )

        complexity = task_complexity(task, context.config)
        multiplier = context.config.complexity_multipliers[complexity]
        for key, value in metrics.items():
            error = self._check_limit(task, key, value, context.config, complexity, multiplier)
            if error is not None:
                errors.append(error)

        return ValidationResult(errors=tuple(errors))

    def base_limit(self, key: str, config: TasklintConfig) -> float:
        field_name = KPI_LIMIT_FIELDS[key]
        return self.options.get(field_name, getattr(config, field_name))

    def _check_limit(
        self,
        task: Task,
        key: str,
        value: float,
        config: TasklintConfig,
        complexity: str,
        multiplier: float,
    ) -> ValidationError | None:
        if key not in KPI_LIMIT_FIELDS:
            return None

        base = self.base_limit(key, config)
        limit = base if key in UNSCALED_KPIS else scaled_limit(base, multiplier)
        is_minimum = key in MINIMUM_KPIS
        if (value >= limit) if is_minimum else (value <= limit):
            return None

        kpi_name = KPI_NAMES[key]
        if is_minimum:
            message = f"Task '{task.id}' has {kpi_name} below minimum: {value} < {limit}"
        else:
            message = f"Task '{task.id}' exceeds {kpi_name} limit: {value} > {limit}"
        return self.make_error(
            task,
            "invalid_kpi_value",
            message,
            section=KPI_MARKER,
            kpi_metric=key,
            actual_value=value,
            limit_value=limit,
            base_limit=base,
            complexity=complexity,
            kpi_name=kpi_name,
            is_minimum_threshold=is_minimum,
        )

    def _check_references(
        self, task: Task, referenced: list[str], context: ValidationContext
    ) -> ValidationResult:
        undefined = [name for name in referenced if name not in context.references]
        if not undefined:
            return ValidationResult.success()
        return ValidationResult.failure(
            self.make_error(
                task,
                "missing_kpi_reference",
                f"Task '{task.id}' references undefined KPI definitions: {', '.join(undefined)}",
                section=KPI_MARKER,
                missing_references=undefined,
                available_references=sorted(context.references),
            )
        )
