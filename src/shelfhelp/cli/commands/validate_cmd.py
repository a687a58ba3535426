# ABOUTME: The `shelfhelp validate` command for re-scoring a saved scraper result.
# ABOUTME: Runs one service validator over a JSON result and shows its factors.

import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shelfhelp.availability.types import Book
from shelfhelp.cli.options import echo_json, format_confidence, json_option
from shelfhelp.validation.factory import available_validators, create_validator


@click.command("validate")
@click.argument("result_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--service",
    required=True,
    help=f"Validator to use ({', '.join(available_validators())}).",
)
@click.option("--title", default=None, help="Title of the book the result describes.")
@click.option("--author", default=None, help="Author of the book the result describes.")
@json_option
def validate(
    result_file: Path,
    service: str,
    title: str | None,
    author: str | None,
    as_json: bool,
) -> None:
    """Validate the availability result stored in RESULT_FILE."""
    console = Console()

    try:
        data = json.loads(result_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON in {result_file}: {exc}[/red]")
        raise SystemExit(1) from exc

    validator = create_validator(service)
    validation = validator.validate(data, Book(title=title, author_name=author))

    if as_json:
        echo_json(validation.to_dict())
        return

    status = "[green]valid[/green]" if validation.valid else "[red]invalid[/red]"
    console.print(
        f"[bold]{validator.service}[/bold] validation {status}: "
        f"{format_confidence(validation.confidence)} -> "
        f"{format_confidence(validation.adjusted_confidence)}"
    )

    if validation.factors:
        table = Table()
        table.add_column("Type", width=9)
        table.add_column("Value", justify="right")
        table.add_column("Reason")
        for factor in validation.factors:
            table.add_row(factor.type, f"{factor.value:g}", factor.reason)
        console.print(table)

    for warning in validation.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")
    for error in validation.errors:
        console.print(f"[red]Error: {error}[/red]")

    if validator.is_confident(validation):
        console.print("[green]Meets the minimum confidence for this service.[/green]")
    else:
        console.print(f"[dim]Below minimum confidence {validator.min_confidence:.2f}.[/dim]")
