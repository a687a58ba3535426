# ABOUTME: Shared Click options and rendering helpers for ShelfHelp CLI commands.
# ABOUTME: Provides the --json flag and consistent confidence/availability formatting.

import json
from typing import Any

import click

json_option = click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Print machine-readable JSON instead of tables.",
)


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def format_available(available: bool | None) -> str:
    if available is None:
        return "[dim]?[/dim]"
    return "[green]yes[/green]" if available else "[red]no[/red]"


def format_confidence(confidence: Any) -> str:
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return "[dim]-[/dim]"
    if confidence >= 0.7:
        style = "green"
    elif confidence >= 0.4:
        style = "yellow"
    else:
        style = "red"
    return f"[{style}]{confidence:.2f}[/{style}]"
