"""Common CLI option factories and helpers.

Provides:
- `run_async_command`: Unified async execution with error handling for CLI commands
- Shared option type aliases (output format, query parameters)
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from enum import StrEnum
from typing import Annotated, TypeVar

import typer
from rich.console import Console

from kentaa_api.api.resources import RESOURCES

# Shared console instance for CLI output
console = Console()

T = TypeVar("T")


class OutputFormat(StrEnum):
    """Output format for CLI commands."""

    TEXT = "text"
    JSON = "json"


def run_async_command(
    coro: Coroutine[object, object, T],
    *,
    error_prefix: str = "Error",
) -> T:
    """Execute async code from synchronous CLI command with unified error handling.

    Uses asyncio.run() for clean event loop management. Catches exceptions,
    prints user-friendly error messages, and exits with code 1.

    Args:
        coro: Async coroutine to execute
        error_prefix: Prefix for error messages (default: "Error")

    Returns:
        Result from the coroutine

    Raises:
        typer.Exit: Re-raised from deliberate exits, or raised with code 1 on error
    """
    try:
        return asyncio.run(coro)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]{error_prefix}:[/red] {e}")
        raise typer.Exit(1) from None


# Shared option declarations, reused through Annotated aliases.

OutputFormatOption = Annotated[
    OutputFormat,
    typer.Option(
        "--format",
        "-f",
        help="Output format",
    ),
]
"""Output format option type for CLI commands.

Usage:
    def command(output_format: OutputFormatOption = OutputFormat.TEXT):
"""

ParamOption = Annotated[
    list[str] | None,
    typer.Option(
        "--param",
        "-p",
        help="Query parameter as key=value (repeatable)",
    ),
]
"""Repeatable key=value query parameter option."""


def validate_resource(name: str) -> str:
    """Check that ``name`` is a known resource family.

    Raises:
        typer.Exit(1): If the resource is unknown
    """
    if name not in RESOURCES:
        known = ", ".join(sorted(RESOURCES))
        console.print(f"[red]Error:[/red] Unknown resource '{name}'. Choose from: {known}")
        raise typer.Exit(1)
    return name


def parse_params(raw: list[str] | None) -> dict[str, str]:
    """Parse repeated key=value options into a dict.

    Raises:
        typer.Exit(1): If an entry has no '='
    """
    params: dict[str, str] = {}
    for entry in raw or []:
        key, sep, value = entry.partition("=")
        if not sep or not key.strip():
            console.print(f"[red]Error:[/red] Parameter '{entry}' must be in key=value format")
            raise typer.Exit(1)
        params[key.strip()] = value.strip()
    return params
