"""Tests for the template system."""

from __future__ import annotations

from datetime import date

import pytest

from tasklint.config import TasklintConfig
from tasklint.parser import TaskListParser
from tasklint.pipeline import validate_task_list
from tasklint.template_manager import (
    CATEGORY_NUMBERS,
    CATEGORY_PREFIXES,
    category_sections_block,
    get_template,
    list_templates,
    render_task_list,
    render_template,
)


class TestTemplateLoading:
    """Tests for loading templates."""

    def test_get_tasklist_template(self) -> None:
        """Test loading the task list template."""
        content = get_template("tasklist")
        assert "## Current Tasks" in content
        assert "## Completed Tasks" in content
        assert "## {{error-handling}}" in content
        assert "$category_sections" in content

    def test_get_invalid_template(self) -> None:
        """Test loading an invalid template raises ValueError."""
        with pytest.raises(ValueError, match="Unknown template"):
            get_template("nonexistent")

    def test_list_templates(self) -> None:
        """Test listing available templates returns a copy."""
        templates = list_templates()
        assert templates == ["tasklist"]
        templates.append("other")
        assert list_templates() == ["tasklist"]

    def test_render_leaves_unknown_placeholders(self) -> None:
        """Test safe substitution keeps unset variables."""
        content = render_template("tasklist", title="My List")
        assert content.startswith("# My List")
        assert "${prefix}" in content


class TestCategorySections:
    """Tests for category section blocks."""

    def test_block_for_category(self) -> None:
        """Test one paragraph per required section."""
        block = category_sections_block("data_layer")
        assert block.split("\n\n") == [
            "**Schema Design**\nDescribe the schema design for this task.",
            "**Migration Strategy**\nDescribe the migration strategy for this task.",
            "**Query Optimization**\nDescribe the query optimization for this task.",
        ]

    def test_block_uses_config(self) -> None:
        """Test configured sections replace the defaults."""
        config = TasklintConfig(category_sections={"testing": ["**Fixtures**"]})
        assert category_sections_block("testing", config) == (
            "**Fixtures**\nDescribe the fixtures for this task."
        )

    def test_unknown_category_block_is_empty(self) -> None:
        """Test categories without sections render nothing."""
        assert category_sections_block("nothing") == ""


class TestRenderTaskList:
    """Tests for rendering starter task lists."""

    def test_numbers_and_date(self) -> None:
        """Test IDs start at the category base and the date is stamped."""
        content = render_task_list(
            prefix="APP", category="business_logic", today=date(2024, 3, 1)
        )
        assert "### APP0201: Implement core workflow" in content
        assert "#### 1. Define data structures (APP0201-1)" in content
        assert "[APP0202a]" in content
        assert "| APP0203 | Project setup |" in content
        assert "Generated on 2024-03-01 for the business_logic category." in content
        assert "$" not in content

    def test_semantic_prefix(self) -> None:
        """Test the category prefix replaces the given one."""
        content = render_task_list(prefix="XYZ", category="data_layer", semantic=True)
        assert "### DB0301:" in content
        assert "XYZ" not in content

    def test_unknown_category(self) -> None:
        """Test unknown categories are rejected."""
        with pytest.raises(ValueError, match="Unknown category"):
            render_task_list(category="mobile")

    @pytest.mark.parametrize("prefix", ["P", "TOOLONG", "ab", "A1"])
    def test_invalid_prefix(self, prefix: str) -> None:
        """Test prefixes must be 2-4 uppercase letters."""
        with pytest.raises(ValueError, match="Invalid prefix"):
            render_task_list(prefix=prefix)

    @pytest.mark.parametrize("category", sorted(CATEGORY_NUMBERS))
    @pytest.mark.parametrize("semantic", [False, True])
    def test_rendered_document_validates(self, category: str, semantic: bool) -> None:
        """Test every generated document passes the default validators."""
        content = render_task_list(category=category, semantic=semantic)
        task_list = TaskListParser().parse(content)
        result = validate_task_list(task_list, TasklintConfig())
        assert result.valid, result.format()
        assert task_list.task_count() == 7
        if semantic:
            assert all(t.prefix == CATEGORY_PREFIXES[category] for t in task_list.all_tasks())
            assert result.warnings == ()
