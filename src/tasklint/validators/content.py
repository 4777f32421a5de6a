"""Content search helpers shared by the validators.

Section detection is plain text search over task lines, not Markdown
structure. A marker also counts as present when a ``{{name}}`` placeholder
in the task resolves to a reference whose text contains it. Resolution is a
single read-only lookup; references are never expanded into the task.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

References = Mapping[str, Sequence[str]]


def joined(lines: Sequence[str]) -> str:
    return "\n".join(lines)


def has_line_starting(lines: Sequence[str], marker: str) -> bool:
    """Return True if any line starts with ``marker``."""
    return any(line.startswith(marker) for line in lines)


def has_text(lines: Sequence[str], marker: str) -> bool:
    """Return True if ``marker`` appears anywhere in the joined lines."""
    return marker in joined(lines)


def placeholders(lines: Sequence[str]) -> list[str]:
    """List the distinct placeholder names used in ``lines``, in order of appearance."""
    seen: dict[str, None] = {}
    for line in lines:
        for name in PLACEHOLDER_PATTERN.findall(line):
            seen.setdefault(name, None)
    return list(seen)


def uses_placeholder(lines: Sequence[str], name: str) -> bool:
    token = "{{" + name + "}}"
    return any(token in line for line in lines)


def resolve(references: References, name: str) -> list[str] | None:
    """Look up a reference definition without expanding it.

    Args:
        references: Reference definitions keyed by bare name.
        name: Placeholder name, without braces.

    Returns:
        The definition's lines, or None if it is not defined.
    """
    content = references.get(name)
    if content is None:
        return None
    if isinstance(content, str):
        return content.split("\n")
    return list(content)


def _resolved_blocks(lines: Sequence[str], references: References) -> list[list[str]]:
    blocks: list[list[str]] = []
    for name in placeholders(lines):
        block = resolve(references, name)
        if block is not None:
            blocks.append(block)
    return blocks


def missing_markers(
    lines: Sequence[str],
    references: References,
    markers: Iterable[str],
    line_start: bool = False,
) -> list[str]:
    """Find required markers absent from a task, honouring references.

    Args:
        lines: Task content lines.
        references: Reference definitions available to the task.
        markers: Required section markers, in reporting order.
        line_start: Match markers at line starts instead of anywhere.

    Returns:
        Markers that appear neither literally nor inside a referenced block.
    """
    check = has_line_starting if line_start else has_text
    blocks = _resolved_blocks(lines, references)
    return [
        marker
        for marker in markers
        if not check(lines, marker) and not any(check(block, marker) for block in blocks)
    ]
