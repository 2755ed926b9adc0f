"""Kentaa API query commands."""

import json
from typing import Any

import typer
from rich.table import Table

from kentaa_api.api import (
    KentaaAuthenticationError,
    KentaaClient,
    KentaaNotFoundError,
    RateLimitWindow,
    WindowStatus,
)
from kentaa_api.api.resources import ResourceClient
from kentaa_api.cli.common import (
    OutputFormat,
    OutputFormatOption,
    ParamOption,
    console,
    parse_params,
    run_async_command,
    validate_resource,
)
from kentaa_api.config import get_settings

app = typer.Typer(help="Kentaa API commands")

# Columns shown in list tables, when present on the items
_TABLE_COLUMNS = ("id", "slug", "title", "name", "first_name", "last_name", "amount", "created_at")


def _require_api_key() -> None:
    if not get_settings().kentaa_api_key:
        console.print("[red]Error:[/red] KENTAA_API_KEY not set in environment")
        raise typer.Exit(1)


def _resource(client: KentaaClient, name: str) -> ResourceClient:
    resource: ResourceClient = getattr(client, name)
    return resource


def _print_items(name: str, items: list[dict[str, Any]], limit: int) -> None:
    if not items:
        console.print(f"No {name} found")
        return

    columns = [c for c in _TABLE_COLUMNS if c in items[0]] or list(items[0])[:5]
    table = Table(title=f"{name} ({len(items)})")
    for column in columns:
        table.add_column(column, style="cyan" if column == "id" else None)

    for item in items[:limit]:
        table.add_row(*(str(item.get(column, "")) for column in columns))

    console.print(table)
    if len(items) > limit:
        console.print(f"  ... and {len(items) - limit} more")


@app.command("list")
def list_resource(
    resource: str = typer.Argument(help="Resource family, e.g. actions or donation_forms"),
    params: ParamOption = None,
    output_format: OutputFormatOption = OutputFormat.TEXT,
    limit: int = typer.Option(20, "--limit", "-n", help="Rows to show in text output"),
) -> None:
    """List every item of a resource (all pages).

    Examples:
        kentaa api list actions
        kentaa api list donations --param created_after=2024-01-01 --format json
    """
    validate_resource(resource)
    query = parse_params(params)
    _require_api_key()

    async def _list() -> list[dict[str, Any]]:
        async with KentaaClient() as client:
            return await _resource(client, resource).list(query)

    items = run_async_command(_list(), error_prefix=f"Listing {resource} failed")

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(items))
    else:
        _print_items(resource, items, limit)


@app.command("get")
def get_resource(
    resource: str = typer.Argument(help="Resource family, e.g. actions"),
    item_id: str = typer.Argument(help="Id or slug of the item"),
    output_format: OutputFormatOption = OutputFormat.JSON,
) -> None:
    """Fetch a single item.

    Examples:
        kentaa api get actions 123
        kentaa api get projects my-project-slug
    """
    validate_resource(resource)
    _require_api_key()

    async def _get() -> Any:
        async with KentaaClient() as client:
            try:
                return await _resource(client, resource).get(item_id)
            except KentaaNotFoundError:
                console.print(f"[red]Error:[/red] {resource} '{item_id}' not found")
                raise typer.Exit(1) from None

    item = run_async_command(_get(), error_prefix=f"Fetching {resource} failed")

    if output_format == OutputFormat.JSON or not isinstance(item, dict):
        console.print_json(json.dumps(item))
    else:
        for key, value in item.items():
            console.print(f"[bold]{key}[/bold]: {value}")


def _get_status_style(status: WindowStatus) -> str:
    """Get rich style for status."""
    match status:
        case WindowStatus.FULL:
            return "[green]FULL[/green]"
        case WindowStatus.DRAINING:
            return "[yellow]DRAINING[/yellow]"
        case WindowStatus.EXHAUSTED:
            return "[bold red]EXHAUSTED[/bold red]"
        case _:
            return str(status)


@app.command("rate-limit")
def show_rate_limit() -> None:
    """Show the current Kentaa API rate limit budget.

    Issues one request (GET /sites/current) and reports the remaining
    per-minute and per-hour counts the service returned.

    Examples:
        kentaa api rate-limit
    """
    _require_api_key()

    async def _check() -> None:
        try:
            async with KentaaClient() as client:
                await client.get_current_site()
                status = client.rate_limit_status()
        except KentaaAuthenticationError:
            console.print("[red]Error:[/red] Invalid Kentaa API key")
            raise typer.Exit(1) from None

        table = Table(title="Kentaa API Rate Limits")
        table.add_column("Window", style="bold")
        table.add_column("Status")
        table.add_column("Remaining", justify="right")
        table.add_column("Limit", justify="right")
        table.add_column("Used %", justify="right")

        for window in RateLimitWindow:
            counter = status[window]
            table.add_row(
                window.value,
                _get_status_style(counter.status),
                str(counter.remaining),
                str(counter.limit),
                f"{counter.usage_percent:.1f}%",
            )

        console.print(table)

        if status[RateLimitWindow.HOUR].status == WindowStatus.EXHAUSTED:
            console.print(
                "\n[red]Hourly budget exhausted![/red] Requests will wait for the next hour."
            )
        elif status[RateLimitWindow.MINUTE].status == WindowStatus.EXHAUSTED:
            console.print(
                "\n[yellow]Minute budget exhausted.[/yellow] Requests will wait for the next minute."
            )

    run_async_command(_check())
