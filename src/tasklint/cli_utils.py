"""CLI utility functions for tasklint.

Provides helper functions for:
- Config wiring: Extracting Typer CLI options and passing to load_config
- Error reporting: user-friendly error messages with exit codes
- Logging setup for the --verbose flag
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape

from tasklint.config import ENV_PREFIX, ConfigError, TasklintConfig, load_config

# Exit code conventions
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1  # Bad input, missing file, invalid config, parse error
EXIT_VALIDATION_FAILURE = 2  # Document was checked and has errors

LOG_FORMAT = "%(levelname)s: %(message)s"

# Rich console for error output
err_console = Console(stderr=True)


# -----------------------------------------------------------------------------
# Error Formatting Helpers
# -----------------------------------------------------------------------------


def output_error(msg: str) -> None:
    """Print an error message to stderr without exiting."""
    err_console.print(f"[red]Error:[/red] {escape(msg)}")


def error(msg: str, *, exit_code: int = EXIT_USER_ERROR) -> NoReturn:
    """Print an error message and exit with the given exit code.

    Args:
        msg: The error message to display.
        exit_code: Exit code to use (default: EXIT_USER_ERROR=1).

    Raises:
        typer.Exit: Always raises to exit the program.
    """
    output_error(msg)
    raise typer.Exit(code=exit_code)


def configure_logging(verbose: bool) -> None:
    """Route library log records to stderr; DEBUG when verbose, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        force=True,
    )


def parse_validator_names(value: str | None) -> list[str] | None:
    """Split a comma-separated ``--validators`` value.

    Returns:
        Validator names, or None when the option was not given.
    """
    if value is None:
        return None
    return [name.strip() for name in value.split(",") if name.strip()]


# -----------------------------------------------------------------------------
# Config Wiring Helper
# -----------------------------------------------------------------------------


def wire_config(
    max_functions_per_module: int | None = None,
    max_lines_per_function: int | None = None,
    max_call_depth: int | None = None,
    no_category_sections: bool = False,
    no_semantic_prefixes: bool = False,
    start_dir: Path | None = None,
) -> TasklintConfig:
    """Wire CLI options to load_config with appropriate overrides.

    Args:
        max_functions_per_module: Override for the functions-per-module ceiling.
        max_lines_per_function: Override for the lines-per-function ceiling.
        max_call_depth: Override for the call depth ceiling.
        no_category_sections: Disable category section requirements.
        no_semantic_prefixes: Disable semantic prefix hints.
        start_dir: Directory to start searching for config files.

    Returns:
        Fully resolved TasklintConfig instance.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    cli_overrides: dict[str, Any] = {}

    if max_functions_per_module is not None:
        cli_overrides["max_functions_per_module"] = max_functions_per_module
    if max_lines_per_function is not None:
        cli_overrides["max_lines_per_function"] = max_lines_per_function
    if max_call_depth is not None:
        cli_overrides["max_call_depth"] = max_call_depth
    if no_category_sections:
        cli_overrides["enforce_category_sections"] = False
    if no_semantic_prefixes:
        cli_overrides["enable_semantic_prefixes"] = False

    try:
        return load_config(cli_overrides=cli_overrides, start_dir=start_dir)
    except ConfigError as e:
        error(f"Invalid configuration: {e}", exit_code=EXIT_USER_ERROR)


# -----------------------------------------------------------------------------
# Typer Option Factory Functions
# -----------------------------------------------------------------------------
# Typer consumes Option objects when decorating commands, so each command
# needs fresh instances.


def max_functions_per_module_option() -> Any:
    return typer.Option(
        None,
        "--max-functions-per-module",
        help="Override the base functions-per-module KPI limit (default: 8).",
        envvar=f"{ENV_PREFIX}MAX_FUNCTIONS_PER_MODULE",
        min=0,
    )


def max_lines_per_function_option() -> Any:
    return typer.Option(
        None,
        "--max-lines-per-function",
        help="Override the base lines-per-function KPI limit (default: 15).",
        envvar=f"{ENV_PREFIX}MAX_LINES_PER_FUNCTION",
        min=0,
    )


def max_call_depth_option() -> Any:
    return typer.Option(
        None,
        "--max-call-depth",
        help="Override the base call depth KPI limit (default: 3).",
        envvar=f"{ENV_PREFIX}MAX_CALL_DEPTH",
        min=0,
    )


def no_category_sections_option() -> Any:
    return typer.Option(
        False,
        "--no-category-sections",
        help="Do not require category-specific sections.",
    )


def no_semantic_prefixes_option() -> Any:
    return typer.Option(
        False,
        "--no-semantic-prefixes",
        help="Do not emit semantic prefix warnings.",
    )


def json_option() -> Any:
    return typer.Option(False, "--json", help="Output as JSON.")


def yaml_option() -> Any:
    return typer.Option(False, "--yaml", help="Output as YAML.")
