"""Configuration management for tasklint.

Handles configuration loading from multiple sources with precedence:
CLI args > environment variables > .tasklintrc > pyproject.toml > defaults

The resolved ``TasklintConfig`` is an immutable snapshot that is passed
explicitly to every validator; nothing in the core reads the environment.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import dataclass, field, fields
from functools import cached_property
from pathlib import Path
from typing import Any, Callable

from tasklint.models import extract_task_number

# tomllib is only available in Python 3.11+
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found]

logger = logging.getLogger(__name__)

ENV_PREFIX = "TASKLINT_"
RC_FILENAME = ".tasklintrc"

COMPLEXITY_LEVELS = ("simple", "medium", "complex", "critical")

DEFAULT_CATEGORY_RANGES: dict[str, tuple[int, int]] = {
    "otp_genserver": (1, 99),
    "phoenix_web": (100, 199),
    "business_logic": (200, 299),
    "data_layer": (300, 399),
    "infrastructure": (400, 499),
    "testing": (500, 599),
}

DEFAULT_CATEGORY_SECTIONS: dict[str, list[str]] = {
    "core": ["**Architecture Notes**", "**Complexity Assessment**"],
    "features": ["**Abstraction Evaluation**", "**Simplicity Progression Plan**"],
    "documentation": ["**Content Strategy**", "**Audience Analysis**"],
    "testing": ["**Test Strategy**", "**Coverage Requirements**"],
    "otp_genserver": [
        "**Process Design**",
        "**State Management**",
        "**Supervision Strategy**",
    ],
    "phoenix_web": [
        "**Route Design**",
        "**Context Integration**",
        "**Template/Component Strategy**",
    ],
    "business_logic": [
        "**API Design**",
        "**Data Access**",
        "**Validation Strategy**",
    ],
    "data_layer": [
        "**Schema Design**",
        "**Migration Strategy**",
        "**Query Optimization**",
    ],
    "infrastructure": [
        "**Release Configuration**",
        "**Environment Variables**",
        "**Deployment Strategy**",
    ],
    "elixir_testing": [
        "**Test Strategy**",
        "**Coverage Requirements**",
        "**Property-Based Testing**",
    ],
}

DEFAULT_SEMANTIC_PREFIXES: dict[str, str] = {
    "OTP": "otp_genserver",
    "GEN": "otp_genserver",
    "SUP": "otp_genserver",
    "APP": "otp_genserver",
    "PHX": "phoenix_web",
    "WEB": "phoenix_web",
    "LV": "phoenix_web",
    "LVC": "phoenix_web",
    "CTX": "business_logic",
    "BIZ": "business_logic",
    "DOM": "business_logic",
    "DB": "data_layer",
    "ECT": "data_layer",
    "MIG": "data_layer",
    "SCH": "data_layer",
    "INF": "infrastructure",
    "DEP": "infrastructure",
    "ENV": "infrastructure",
    "REL": "infrastructure",
    "TST": "testing",
    "TES": "testing",
    "INT": "testing",
    "E2E": "testing",
}

DEFAULT_COMPLEXITY_MULTIPLIERS: dict[str, float] = {
    "simple": 1.0,
    "medium": 1.5,
    "complex": 2.0,
    "critical": 3.0,
}

DEFAULT_CATEGORY_COMPLEXITY: dict[str, str] = {
    "otp_genserver": "medium",
    "phoenix_web": "simple",
    "business_logic": "medium",
    "data_layer": "simple",
    "infrastructure": "complex",
    "testing": "complex",
}

# Integer ceilings that must be non-negative
_LIMIT_FIELDS = (
    "max_functions_per_module",
    "max_lines_per_function",
    "max_call_depth",
    "max_pattern_match_depth",
    "max_dialyzer_warnings",
    "max_genserver_state_complexity",
    "max_phoenix_context_boundaries",
    "max_ecto_query_complexity",
)


class ConfigError(ValueError):
    """Raised when configuration values are invalid.

    This is a fatal condition that aborts a validation run, distinct from
    the rule violations reported as validation findings.
    """


@dataclass(frozen=True)
class TasklintConfig:
    """Configuration snapshot for a validation run.

    Attributes:
        valid_statuses: Allowed task status values.
        valid_priorities: Allowed task priority values.
        id_regex: Pattern main task IDs must match.
        rating_regex: Pattern review ratings must match.
        max_functions_per_module: Base KPI ceiling.
        max_lines_per_function: Base KPI ceiling.
        max_call_depth: Base KPI ceiling.
        max_pattern_match_depth: Base KPI ceiling.
        max_dialyzer_warnings: Zero-tolerance KPI ceiling (never multiplied).
        min_credo_score: KPI floor between 0 and 10 (never multiplied).
        max_genserver_state_complexity: Base KPI ceiling.
        max_phoenix_context_boundaries: Base KPI ceiling.
        max_ecto_query_complexity: Base KPI ceiling.
        category_ranges: Category name to inclusive (min, max) task number range.
        category_sections: Category name to required section markers.
        enforce_category_sections: Whether category sections are required.
        enable_semantic_prefixes: Whether semantic prefix hints are emitted.
        semantic_prefixes: Prefix to suggested category.
        complexity_multipliers: Complexity level to KPI ceiling multiplier.
        category_complexity: Default complexity level per category.
        default_complexity: Complexity used when a category has no default.
    """

    valid_statuses: list[str] = field(
        default_factory=lambda: ["Planned", "In Progress", "Review", "Completed", "Blocked"]
    )
    valid_priorities: list[str] = field(
        default_factory=lambda: ["Critical", "High", "Medium", "Low"]
    )
    id_regex: str = r"^[A-Z]{2,4}\d{3,4}(-\d+|[a-z])?$"
    rating_regex: str = r"^([1-5](\.\d)?)\s*(\(partial\))?$"
    max_functions_per_module: int = 8
    max_lines_per_function: int = 15
    max_call_depth: int = 3
    max_pattern_match_depth: int = 4
    max_dialyzer_warnings: int = 0
    min_credo_score: float = 8.0
    max_genserver_state_complexity: int = 5
    max_phoenix_context_boundaries: int = 3
    max_ecto_query_complexity: int = 4
    category_ranges: dict[str, tuple[int, int]] = field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_RANGES)
    )
    category_sections: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_CATEGORY_SECTIONS.items()}
    )
    enforce_category_sections: bool = True
    enable_semantic_prefixes: bool = True
    semantic_prefixes: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_SEMANTIC_PREFIXES)
    )
    complexity_multipliers: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_COMPLEXITY_MULTIPLIERS)
    )
    category_complexity: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_COMPLEXITY)
    )
    default_complexity: str = "simple"

    def __post_init__(self) -> None:
        """Normalize and validate configuration after initialization."""
        if isinstance(self.category_ranges, dict):
            # TOML gives arrays; the snapshot stores tuples
            normalized = {
                name: tuple(bounds) if isinstance(bounds, (list, tuple)) else bounds
                for name, bounds in self.category_ranges.items()
            }
            object.__setattr__(self, "category_ranges", normalized)
        self._validate()

    def _validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigError: If any configuration value is invalid.
        """
        for name in ("valid_statuses", "valid_priorities"):
            value = getattr(self, name)
            if not isinstance(value, list) or not value:
                raise ConfigError(f"{name} must be a non-empty list of strings")
            if not all(isinstance(item, str) and item for item in value):
                raise ConfigError(f"{name} must contain only non-empty strings")

        for name in ("id_regex", "rating_regex"):
            pattern = getattr(self, name)
            if not isinstance(pattern, str) or not pattern:
                raise ConfigError(f"{name} must be a non-empty string")
            try:
                re.compile(pattern)
            except re.error as e:
                raise ConfigError(f"{name} is not a valid regular expression: {e}") from e

        for name in _LIMIT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ConfigError(f"{name} must be a non-negative integer")

        if isinstance(self.min_credo_score, bool) or not isinstance(
            self.min_credo_score, (int, float)
        ):
            raise ConfigError("min_credo_score must be a number")
        if not 0 <= self.min_credo_score <= 10:
            raise ConfigError("min_credo_score must be between 0 and 10")

        if not isinstance(self.category_ranges, dict):
            raise ConfigError("category_ranges must be a mapping of category to [min, max]")
        for name, bounds in self.category_ranges.items():
            if (
                not isinstance(bounds, tuple)
                or len(bounds) != 2
                or not all(isinstance(b, int) and not isinstance(b, bool) for b in bounds)
            ):
                raise ConfigError(f"category_ranges.{name} must be a pair of integers")
            if bounds[0] > bounds[1]:
                raise ConfigError(
                    f"category_ranges.{name} has min greater than max ({bounds[0]} > {bounds[1]})"
                )

        if not isinstance(self.category_sections, dict):
            raise ConfigError("category_sections must be a mapping of category to section list")
        for name, sections in self.category_sections.items():
            if not isinstance(sections, list) or not all(isinstance(s, str) for s in sections):
                raise ConfigError(f"category_sections.{name} must be a list of strings")

        if not isinstance(self.semantic_prefixes, dict):
            raise ConfigError("semantic_prefixes must be a mapping of prefix to category")

        if not isinstance(self.complexity_multipliers, dict):
            raise ConfigError("complexity_multipliers must be a mapping")
        for level in COMPLEXITY_LEVELS:
            multiplier = self.complexity_multipliers.get(level)
            if multiplier is None:
                raise ConfigError(f"complexity_multipliers is missing '{level}'")
            if isinstance(multiplier, bool) or not isinstance(multiplier, (int, float)):
                raise ConfigError(f"complexity_multipliers.{level} must be a number")
            if multiplier <= 0:
                raise ConfigError(f"complexity_multipliers.{level} must be positive")

        for category, level in self.category_complexity.items():
            if level not in COMPLEXITY_LEVELS:
                raise ConfigError(
                    f"category_complexity.{category} must be one of {', '.join(COMPLEXITY_LEVELS)}"
                )
        if self.default_complexity not in COMPLEXITY_LEVELS:
            raise ConfigError(
                f"default_complexity must be one of {', '.join(COMPLEXITY_LEVELS)}"
            )

    @cached_property
    def id_pattern(self) -> re.Pattern[str]:
        """Compiled main task ID pattern."""
        return re.compile(self.id_regex)

    @cached_property
    def rating_pattern(self) -> re.Pattern[str]:
        """Compiled review rating pattern."""
        return re.compile(self.rating_regex)

    def category_for(self, task_id: str) -> str | None:
        """Derive a task's category from the number in its ID.

        Args:
            task_id: Task or subtask identifier.

        Returns:
            The first category whose range contains the number, or None.
        """
        number = extract_task_number(task_id)
        if number is None:
            return None
        for name, (low, high) in self.category_ranges.items():
            if low <= number <= high:
                return name
        return None

    def complexity_for_category(self, category: str | None) -> str:
        """Default complexity level for a category."""
        if category is None:
            return self.default_complexity
        return self.category_complexity.get(category, self.default_complexity)

    def kpi_limits(self) -> dict[str, float]:
        """Base KPI limits keyed by field name."""
        limits: dict[str, float] = {name: getattr(self, name) for name in _LIMIT_FIELDS}
        limits["min_credo_score"] = self.min_credo_score
        return limits

    def to_dict(self) -> dict[str, Any]:
        """Return configuration values as a plain dictionary."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "category_ranges":
                value = {name: list(bounds) for name, bounds in value.items()}
            result[f.name] = value
        return result


def _get_config_field_names() -> set[str]:
    """Get the set of valid configuration field names.

    Returns:
        Set of field names from TasklintConfig.
    """
    return {f.name for f in fields(TasklintConfig)}


def find_config_file(filename: str = RC_FILENAME, start_dir: Path | None = None) -> Path | None:
    """Find a configuration file by traversing up the directory tree.

    Searches for the specified file starting from start_dir (or current directory)
    and traversing up to the filesystem root.

    Args:
        filename: Name of the config file to find.
        start_dir: Directory to start searching from. Defaults to current directory.

    Returns:
        Path to the config file if found, None otherwise.
    """
    current = start_dir or Path.cwd()
    current = current.resolve()

    while True:
        config_path = current / filename
        if config_path.is_file():
            return config_path

        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load a TOML file and return its contents.

    Args:
        path: Path to the TOML file.

    Returns:
        Dictionary containing the parsed TOML content.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    with open(path, "rb") as f:
        result: dict[str, Any] = tomllib.load(f)
        return result


def _filter_fields(data: dict[str, Any]) -> dict[str, Any]:
    valid_fields = _get_config_field_names()
    return {k: v for k, v in data.items() if k in valid_fields}


def _load_from_rc(start_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from a .tasklintrc file.

    Args:
        start_dir: Directory to start searching from.

    Returns:
        Dictionary containing configuration from .tasklintrc, or empty dict if not found.
    """
    config_path = find_config_file(RC_FILENAME, start_dir)
    if config_path is None:
        return {}

    try:
        return _filter_fields(_load_toml_file(config_path))
    except (tomllib.TOMLDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable config file %s: %s", config_path, e)
        return {}


def _load_from_pyproject(start_dir: Path | None = None) -> dict[str, Any]:
    """Load configuration from pyproject.toml [tool.tasklint] section.

    Args:
        start_dir: Directory to start searching from.

    Returns:
        Dictionary containing configuration from pyproject.toml, or empty dict if not found.
    """
    config_path = find_config_file("pyproject.toml", start_dir)
    if config_path is None:
        return {}

    try:
        data = _load_toml_file(config_path)
    except (tomllib.TOMLDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable pyproject.toml %s: %s", config_path, e)
        return {}

    section = data.get("tool", {}).get("tasklint", {})
    if section:
        logger.debug("Loaded [tool.tasklint] from %s", config_path)
    return _filter_fields(section)


def _to_int(value: str) -> int:
    return int(value)


def _to_float(value: str) -> float:
    return float(value)


def _to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _to_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _to_str(value: str) -> str:
    return value


_ENV_CONVERTERS: dict[str, Callable[[str], Any]] = {
    "valid_statuses": _to_list,
    "valid_priorities": _to_list,
    "id_regex": _to_str,
    "rating_regex": _to_str,
    "min_credo_score": _to_float,
    "enforce_category_sections": _to_bool,
    "enable_semantic_prefixes": _to_bool,
    "default_complexity": _to_str,
    **{name: _to_int for name in _LIMIT_FIELDS},
}


def _load_from_env() -> dict[str, Any]:
    """Load configuration from environment variables.

    Environment variables are prefixed with TASKLINT_ and use uppercase names.
    For example: TASKLINT_MAX_CALL_DEPTH, TASKLINT_VALID_STATUSES (comma-separated).
    Mapping-valued settings can only be set from files.

    Returns:
        Dictionary containing configuration from environment variables.

    Raises:
        ConfigError: If a variable cannot be converted to the field's type.
    """
    result: dict[str, Any] = {}
    for config_key, convert in _ENV_CONVERTERS.items():
        env_var = f"{ENV_PREFIX}{config_key.upper()}"
        value = os.environ.get(env_var)
        if value is None:
            continue
        try:
            result[config_key] = convert(value)
        except ValueError as e:
            raise ConfigError(f"Invalid value for {env_var}: {e}") from e

    return result


def _merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Merge multiple configuration dictionaries.

    Later dictionaries take precedence over earlier ones.

    Args:
        *configs: Configuration dictionaries to merge, in order of increasing precedence.

    Returns:
        Merged configuration dictionary.
    """
    result: dict[str, Any] = {}
    for config in configs:
        for key, value in config.items():
            if value is not None:
                result[key] = value
    return result


def load_config(
    cli_overrides: dict[str, Any] | None = None,
    start_dir: Path | None = None,
) -> TasklintConfig:
    """Load configuration with full precedence chain.

    Loads configuration from multiple sources and merges them with the following
    precedence (highest to lowest):
    1. CLI arguments (cli_overrides)
    2. Environment variables (TASKLINT_*)
    3. .tasklintrc file
    4. pyproject.toml [tool.tasklint] section
    5. Default values

    Args:
        cli_overrides: Configuration overrides from CLI arguments.
        start_dir: Directory to start searching for config files.

    Returns:
        Fully resolved TasklintConfig instance.

    Raises:
        ConfigError: If the resulting configuration is invalid.
    """
    pyproject_config = _load_from_pyproject(start_dir)
    rc_config = _load_from_rc(start_dir)
    env_config = _load_from_env()
    cli_config = {
        k: v for k, v in _filter_fields(cli_overrides or {}).items() if v is not None
    }

    merged = _merge_configs(
        pyproject_config,
        rc_config,
        env_config,
        cli_config,
    )

    try:
        return TasklintConfig(**merged)
    except TypeError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
