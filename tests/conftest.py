"""Pytest configuration and fixtures for tasklint tests."""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence

import pytest

# Set a fixed terminal width to prevent line wrapping issues in CI
# This must be set before any Rich imports
os.environ.setdefault("COLUMNS", "200")
os.environ.setdefault("LINES", "50")
# Disable Rich's terminal detection to ensure consistent output
os.environ.setdefault("TERM", "dumb")

from tasklint.config import TasklintConfig  # noqa: E402
from tasklint.models import Task  # noqa: E402
from tasklint.validators.base import ValidationContext  # noqa: E402

ContextFactory = Callable[..., ValidationContext]


@pytest.fixture(autouse=True)
def _clean_tasklint_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep TASKLINT_* variables from the outer environment out of tests."""
    for key in list(os.environ):
        if key.startswith("TASKLINT_"):
            monkeypatch.delenv(key)


@pytest.fixture
def config() -> TasklintConfig:
    """Default configuration."""
    return TasklintConfig()


@pytest.fixture
def make_context(config: TasklintConfig) -> ContextFactory:
    """Build a ValidationContext over tasks and their nested subtasks."""

    def factory(
        tasks: Sequence[Task],
        references: dict[str, list[str]] | None = None,
        config_override: TasklintConfig | None = None,
    ) -> ValidationContext:
        all_tasks: list[Task] = []
        for task in tasks:
            all_tasks.append(task)
            all_tasks.extend(task.subtasks)
        return ValidationContext(
            config=config_override or config,
            all_tasks=tuple(all_tasks),
            references=references or {},
        )

    return factory
