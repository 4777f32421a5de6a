"""Template management for generating starter task lists."""

from __future__ import annotations

import importlib.resources
import re
from datetime import date
from string import Template

from tasklint.config import DEFAULT_CATEGORY_SECTIONS, TasklintConfig

TEMPLATE_NAMES = [
    "tasklist",
]

# First task number generated for each category
CATEGORY_NUMBERS: dict[str, int] = {
    "otp_genserver": 1,
    "phoenix_web": 101,
    "business_logic": 201,
    "data_layer": 301,
    "infrastructure": 401,
    "testing": 501,
}

CATEGORY_PREFIXES: dict[str, str] = {
    "otp_genserver": "OTP",
    "phoenix_web": "PHX",
    "business_logic": "CTX",
    "data_layer": "DB",
    "infrastructure": "INF",
    "testing": "TST",
}

DEFAULT_PREFIX = "PRJ"
DEFAULT_CATEGORY = "phoenix_web"

_PREFIX_PATTERN = re.compile(r"^[A-Z]{2,4}$")


def _get_template_path(name: str) -> str:
    """Get the filename for a template by name.

    Raises:
        ValueError: If template name is invalid
    """
    if name not in TEMPLATE_NAMES:
        raise ValueError(f"Unknown template: {name}")
    return f"{name}.template.md"


def get_template(name: str) -> str:
    """Load a template file from package resources.

    Args:
        name: Template name (e.g., 'tasklist')

    Returns:
        The template content as a string

    Raises:
        ValueError: If template name is invalid
        FileNotFoundError: If template file cannot be loaded
    """
    template_file = _get_template_path(name)
    try:
        templates = importlib.resources.files("tasklint").joinpath("templates")
        return templates.joinpath(template_file).read_text(encoding="utf-8")
    except (FileNotFoundError, AttributeError, TypeError) as e:
        raise FileNotFoundError(f"Cannot load template '{name}': {e}") from e


def list_templates() -> list[str]:
    return TEMPLATE_NAMES.copy()


def render_template(name: str, **variables: str) -> str:
    """Render a template with ``$var`` substitution.

    Unknown placeholders are left in place.

    Raises:
        ValueError: If template name is invalid
        FileNotFoundError: If template file cannot be loaded
    """
    return Template(get_template(name)).safe_substitute(variables)


def category_sections_block(category: str, config: TasklintConfig | None = None) -> str:
    """Render one placeholder paragraph per required section of ``category``."""
    sections = (config.category_sections if config else DEFAULT_CATEGORY_SECTIONS).get(
        category, []
    )
    paragraphs = [
        f"{marker}\nDescribe the {marker.strip('*').lower()} for this task."
        for marker in sections
    ]
    return "\n\n".join(paragraphs)


def render_task_list(
    prefix: str = DEFAULT_PREFIX,
    category: str = DEFAULT_CATEGORY,
    semantic: bool = False,
    config: TasklintConfig | None = None,
    today: date | None = None,
) -> str:
    """Render a starter task list for a category.

    Args:
        prefix: Task ID prefix (2-4 uppercase letters).
        category: One of the categories in CATEGORY_NUMBERS.
        semantic: Use the category's semantic prefix instead of ``prefix``.
        config: Configuration providing category sections.
        today: Date stamped into the document.

    Returns:
        Markdown content that passes the default validators.

    Raises:
        ValueError: If the category or prefix is invalid.
    """
    if category not in CATEGORY_NUMBERS:
        raise ValueError(
            f"Unknown category '{category}'. Available: {', '.join(CATEGORY_NUMBERS)}"
        )
    if semantic:
        prefix = CATEGORY_PREFIXES[category]
    if not _PREFIX_PATTERN.match(prefix):
        raise ValueError(f"Invalid prefix '{prefix}': expected 2-4 uppercase letters")

    base = CATEGORY_NUMBERS[category]
    return render_template(
        "tasklist",
        title=f"{prefix} Task List",
        date=(today or date.today()).isoformat(),
        category=category,
        prefix=prefix,
        number1=f"{base:04d}",
        number2=f"{base + 1:04d}",
        number3=f"{base + 2:04d}",
        category_sections=category_sections_block(category, config),
    )
