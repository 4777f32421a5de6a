"""Reference definitions and placeholder integrity.

A reference is a reusable block declared as ``## {{name}}`` (or
``## #{{name}}``) and used from task content as ``{{name}}``. References
are only looked up, never expanded into the document.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Mapping, Sequence
from typing import Any

from tasklint.models import TaskList
from tasklint.validators.base import ValidationError, ValidationResult
from tasklint.validators.content import PLACEHOLDER_PATTERN

logger = logging.getLogger(__name__)

REFERENCE_HEADER_PATTERN = re.compile(r"^## #?\{\{([^}]+)\}\}$")


class ReferenceResolver:
    """Extracts reference definitions and checks that every placeholder resolves."""

    @staticmethod
    def extract_references(lines: Sequence[str]) -> dict[str, list[str]]:
        """Collect reference definitions from document lines.

        Args:
            lines: All lines of the document.

        Returns:
            Reference name to definition lines. A definition runs until the
            next line starting with ``## ``. Later definitions of the same
            name replace earlier ones.
        """
        references: dict[str, list[str]] = {}
        for index, line in enumerate(lines):
            match = REFERENCE_HEADER_PATTERN.match(line)
            if not match:
                continue
            content: list[str] = []
            for following in lines[index + 1:]:
                if following.startswith("## "):
                    break
                content.append(following)
            references[match.group(1)] = content
        logger.debug("Extracted %d reference definitions", len(references))
        return references

    @staticmethod
    def find_reference_usages(lines: Sequence[str]) -> list[tuple[str, int]]:
        """List every placeholder occurrence as ``(name, 1-based line number)``."""
        return [
            (name, line_number)
            for line_number, line in enumerate(lines, start=1)
            for name in PLACEHOLDER_PATTERN.findall(line)
        ]

    @staticmethod
    def resolve(references: Mapping[str, Sequence[str]], name: str) -> str | None:
        """Return the definition text of ``name``, or None if undefined."""
        content = references.get(name)
        if content is None:
            return None
        if isinstance(content, str):
            return content
        return "\n".join(content)

    @classmethod
    def validate_references(cls, task_list: TaskList) -> ValidationResult:
        """Check that every placeholder used in task content is defined.

        Args:
            task_list: Parsed document.

        Returns:
            One ``missing_reference`` error per distinct undefined name,
            attributed to the first task using it.
        """
        errors: list[ValidationError] = []
        reported: set[str] = set()
        for task in task_list.all_tasks():
            for name, _ in cls.find_reference_usages(task.content):
                if name in task_list.references or name in reported:
                    continue
                reported.add(name)
                errors.append(
                    ValidationError(
                        type="missing_reference",
                        message=f"Missing reference definition: '{{{{{name}}}}}'",
                        task_id=task.id,
                        line_number=task.line_number,
                        context={"reference_name": name},
                    )
                )
        if errors:
            logger.debug("Found %d undefined references", len(errors))
        return ValidationResult(errors=tuple(errors))

    @classmethod
    def reference_stats(cls, task_list: TaskList) -> dict[str, Any]:
        """Summarize reference definitions and their usage.

        Returns:
            Dictionary with total_references, total_usages, usage_counts,
            unused_references and most_used (``{"name", "count"}`` or None).
        """
        usages = cls.find_reference_usages(_content_lines(task_list))
        usage_counts = Counter(name for name, _ in usages)
        most_used = None
        if usage_counts:
            name, count = usage_counts.most_common(1)[0]
            most_used = {"name": name, "count": count}
        return {
            "total_references": len(task_list.references),
            "total_usages": len(usages),
            "usage_counts": dict(usage_counts),
            "unused_references": [
                name for name in task_list.references if name not in usage_counts
            ],
            "most_used": most_used,
        }


def _content_lines(task_list: TaskList) -> list[str]:
    return [line for task in task_list.all_tasks() for line in task.content]
