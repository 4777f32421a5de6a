"""tasklint CLI - Main entry point."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tasklint import __version__
from tasklint.cli_utils import (
    EXIT_VALIDATION_FAILURE,
    configure_logging,
    err_console,
    error,
    json_option,
    max_call_depth_option,
    max_functions_per_module_option,
    max_lines_per_function_option,
    no_category_sections_option,
    no_semantic_prefixes_option,
    output_error,
    parse_validator_names,
    wire_config,
    yaml_option,
)
from tasklint.models import TaskList
from tasklint.parser import ParseError, TaskListParser
from tasklint.pipeline import (
    VALIDATORS,
    ValidationPipeline,
    build_validators,
    strict_validators,
    validate_task_list,
)
from tasklint.references import ReferenceResolver
from tasklint.template_manager import (
    CATEGORY_NUMBERS,
    DEFAULT_CATEGORY,
    DEFAULT_PREFIX,
    render_task_list,
)
from tasklint.validators import BaseValidator, ValidationResult

app = typer.Typer(
    name="tasklint",
    help="tasklint - Validate Markdown task lists against a structured schema.",
    add_completion=False,
)

# Rich console for output
console = Console()


# -----------------------------------------------------------------------------
# Output Helpers
# -----------------------------------------------------------------------------


def _output_success(message: str, quiet: bool = False) -> None:
    """Print a success message."""
    if not quiet:
        console.print(f"[green]Success:[/green] {escape(message)}")


def _output_warning(message: str, quiet: bool = False) -> None:
    """Print a warning message."""
    if not quiet:
        err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")


def _emit(payload: dict[str, Any], json_output: bool, yaml_output: bool) -> bool:
    """Print a machine-readable payload if requested.

    Returns:
        True if the payload was printed.
    """
    if json_output:
        console.print_json(json.dumps(payload))
        return True
    if yaml_output:
        typer.echo(yaml.safe_dump(payload, sort_keys=False, allow_unicode=True), nl=False)
        return True
    return False


def _print_report(result: ValidationResult, quiet: bool) -> None:
    """Print errors, then warnings, then the summary."""
    summary, *_ = result.format().split("\n", 1)
    if not quiet:
        for issue in result.errors:
            output_error(issue.format())
        for issue in result.warnings:
            _output_warning(issue.format())
    if result.valid and quiet:
        return
    console.print(escape(summary), style="green" if result.valid else "red")


def _load_task_list(path: Path) -> TaskList:
    """Parse a document, exiting with a user error when it cannot be read."""
    if not path.is_file():
        error(f"File not found: {path}")
    try:
        return TaskListParser().parse_file(path)
    except ParseError as e:
        error(f"Could not parse {path}: {e}")
    except OSError as e:
        error(f"Could not read {path}: {e}")


# -----------------------------------------------------------------------------
# Version and Main Callbacks
# -----------------------------------------------------------------------------


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"tasklint version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """tasklint - Validate Markdown task lists against a structured schema."""
    pass


# -----------------------------------------------------------------------------
# Validate Command
# -----------------------------------------------------------------------------


@app.command()
def validate(
    path: Path = typer.Argument(
        Path("docs/TaskList.md"),
        help="Task list to validate.",
    ),
    validators: str | None = typer.Option(
        None,
        "--validators",
        help=f"Comma-separated validators to run (default: all). Available: {', '.join(VALIDATORS)}.",
        envvar="TASKLINT_VALIDATORS",
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Tighten KPI limits (5 functions/module, 10 lines/function, call depth 3). Explicit --max-* limits still apply.",
    ),
    parallel: bool = typer.Option(
        False,
        "--parallel",
        help="Validate tasks in parallel threads.",
    ),
    max_functions_per_module: int | None = max_functions_per_module_option(),
    max_lines_per_function: int | None = max_lines_per_function_option(),
    max_call_depth: int | None = max_call_depth_option(),
    no_category_sections: bool = no_category_sections_option(),
    no_semantic_prefixes: bool = no_semantic_prefixes_option(),
    json_output: bool = json_option(),
    yaml_output: bool = yaml_option(),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Minimal output for CI.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Log parsing and validation details to stderr.",
    ),
) -> None:
    """Validate a task list document.

    Runs every validator on every task and reports all errors and warnings
    together. Warnings never cause a failure.

    Exits with code 2 if validation fails (errors found).
    """
    configure_logging(verbose)
    if json_output and yaml_output:
        error("--json and --yaml cannot be used together")

    config = wire_config(
        max_functions_per_module=max_functions_per_module,
        max_lines_per_function=max_lines_per_function,
        max_call_depth=max_call_depth,
        no_category_sections=no_category_sections,
        no_semantic_prefixes=no_semantic_prefixes,
        start_dir=path.parent if path.parent.is_dir() else None,
    )

    limits = {
        "max_functions_per_module": max_functions_per_module,
        "max_lines_per_function": max_lines_per_function,
        "max_call_depth": max_call_depth,
    }
    selected = _select_validators(
        parse_validator_names(validators),
        strict,
        {name: value for name, value in limits.items() if value is not None},
    )
    task_list = _load_task_list(path)

    pipeline = ValidationPipeline(config, selected, parallel=parallel)
    result = pipeline.validate_document(task_list)

    payload = {"file": str(path), "validators": pipeline.validator_names, **result.to_dict()}
    if not _emit(payload, json_output, yaml_output):
        _print_report(result, quiet)

    if not result.valid:
        raise typer.Exit(code=EXIT_VALIDATION_FAILURE)


def _select_validators(
    names: list[str] | None, strict: bool, limits: dict[str, int] | None = None
) -> list[BaseValidator] | None:
    """Resolve ``--validators`` and ``--strict`` into validator instances.

    Args:
        names: Requested validator names, or None for all.
        strict: Whether to tighten KPI limits.
        limits: KPI limits given explicitly; they win over the strict ones.

    Returns:
        Validators to run, or None for the default set.
    """
    if names is not None:
        unknown = [name for name in names if name not in VALIDATORS]
        if unknown:
            error(
                f"Unknown validator(s): {', '.join(unknown)}. "
                f"Available: {', '.join(VALIDATORS)}"
            )
        if not names:
            error("--validators requires at least one validator name")

    if strict:
        chosen = strict_validators(limits)
        if names is not None:
            chosen = [validator for validator in chosen if validator.name in names]
        return chosen
    if names is not None:
        return build_validators({name: {} for name in names})
    return None


# -----------------------------------------------------------------------------
# Create Template Command
# -----------------------------------------------------------------------------


@app.command("create-template")
def create_template(
    path: Path = typer.Argument(
        Path("TaskList.md"),
        help="Where to write the task list.",
    ),
    prefix: str = typer.Option(
        DEFAULT_PREFIX,
        "--prefix",
        "-p",
        help="Task ID prefix (2-4 uppercase letters).",
    ),
    category: str = typer.Option(
        DEFAULT_CATEGORY,
        "--category",
        "-c",
        help=f"Task category. Available: {', '.join(CATEGORY_NUMBERS)}.",
    ),
    semantic: bool = typer.Option(
        False,
        "--semantic",
        help="Use the category's semantic prefix (OTP, PHX, CTX, DB, INF, TST).",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing file.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Minimal output for CI.",
    ),
) -> None:
    """Generate a starter task list that passes validation.

    The written document is validated immediately; exits with code 2 if it
    does not pass under the active configuration.
    """
    if path.exists() and not force:
        error(f"File already exists: {path}. Use --force to overwrite.")

    config = wire_config()
    try:
        content = render_task_list(prefix=prefix, category=category, semantic=semantic, config=config)
    except ValueError as e:
        error(str(e))

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        error(f"Could not write {path}: {e}")

    result = validate_task_list(TaskListParser().parse(content, file_path=str(path)), config)
    if not result.valid:
        output_error(f"Generated task list does not pass validation: {path}")
        for issue in result.errors:
            output_error(issue.format())
        raise typer.Exit(code=EXIT_VALIDATION_FAILURE)

    _output_success(f"Created {category} task list at {path}", quiet)


# -----------------------------------------------------------------------------
# Stats Command
# -----------------------------------------------------------------------------


@app.command()
def stats(
    path: Path = typer.Argument(
        Path("docs/TaskList.md"),
        help="Task list to summarize.",
    ),
    json_output: bool = json_option(),
    yaml_output: bool = yaml_option(),
) -> None:
    """Show task and reference statistics for a task list."""
    if json_output and yaml_output:
        error("--json and --yaml cannot be used together")

    config = wire_config(start_dir=path.parent if path.parent.is_dir() else None)
    task_list = _load_task_list(path)

    task_stats = task_list.stats(config)
    reference_stats = ReferenceResolver.reference_stats(task_list)
    payload = {"file": str(path), "tasks": task_stats, "references": reference_stats}
    if _emit(payload, json_output, yaml_output):
        return

    table = Table(title=f"Task List Statistics: {escape(str(path))}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    for key in ("total", "main", "subtasks", "completed", "in_progress", "planned"):
        table.add_row(key.replace("_", " ").capitalize(), str(task_stats[key]))
    for category, count in task_stats["categories"].items():
        table.add_row(f"Category: {category}", str(count))

    table.add_row("References defined", str(reference_stats["total_references"]))
    table.add_row("Reference usages", str(reference_stats["total_usages"]))
    if reference_stats["unused_references"]:
        table.add_row("Unused references", escape(", ".join(reference_stats["unused_references"])))
    if reference_stats["most_used"]:
        most_used = reference_stats["most_used"]
        table.add_row("Most used reference", escape(f"{most_used['name']} ({most_used['count']})"))

    console.print(table)


if __name__ == "__main__":
    app()
