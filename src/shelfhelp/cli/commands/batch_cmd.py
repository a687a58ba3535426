# ABOUTME: The `shelfhelp batch` command for checking a reading list from a JSON file.
# ABOUTME: Runs the orchestrator's paced batch mode and reports run statistics.

import asyncio
import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from shelfhelp.availability.types import Book, BookAvailability
from shelfhelp.scrapers import BatchReport, ScraperOrchestrator, create_orchestrator


def _create_orchestrator() -> ScraperOrchestrator:
    """Create the default orchestrator over the live services."""
    return create_orchestrator()


def load_books(path: Path) -> list[Book]:
    """Read book records from a JSON list or a ``{"books": [...]}`` document.

    Raises:
        ValueError: If the file is not valid JSON or holds no book list.
    """
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("books")
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of books in {path}")
    return [Book.from_dict(record) for record in data if isinstance(record, dict)]


async def _run(
    books: Sequence[Book],
    batch_size: int | None,
    max_concurrent: int | None,
    batch_delay_ms: int | None,
) -> BatchReport:
    async with _create_orchestrator() as orchestrator:
        return await orchestrator.check_books_in_batch(
            books,
            batch_size=batch_size,
            batch_delay_ms=batch_delay_ms,
            max_concurrent=max_concurrent,
        )


def _available_sources(availability: BookAvailability) -> str:
    names = [
        name
        for name, result in availability.sources.items()
        if result.available and not result.error
    ]
    return ", ".join(names) or "[dim]none[/dim]"


@click.command("batch")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--batch-size", type=click.IntRange(min=1), default=None, help="Books per batch.")
@click.option(
    "--max-concurrent",
    type=click.IntRange(min=1),
    default=None,
    help="Books checked concurrently within a batch.",
)
@click.option(
    "--batch-delay-ms",
    type=click.IntRange(min=0),
    default=None,
    help="Pause between batches in milliseconds.",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the full JSON report to this file.",
)
def batch(
    file: Path,
    batch_size: int | None,
    max_concurrent: int | None,
    batch_delay_ms: int | None,
    output: Path | None,
) -> None:
    """Check availability for every book listed in FILE."""
    console = Console()

    try:
        books = load_books(file)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise SystemExit(1) from exc

    if not books:
        console.print("[yellow]No books found.[/yellow]")
        return

    report = asyncio.run(_run(books, batch_size, max_concurrent, batch_delay_ms))

    table = Table()
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Available on")
    for result in report.results:
        table.add_row(
            result.title or "[dim]unknown[/dim]",
            result.author or "[dim]unknown[/dim]",
            f"[red]{result.error}[/red]" if result.error else _available_sources(result),
        )
    console.print(table)

    for error in report.errors:
        console.print(f"[red]Batch {error.batch} failed: {error.error}[/red]")

    stats = report.stats
    console.print(
        f"\n[dim]{stats['processed_books']}/{stats['total_books']} books processed, "
        f"{stats['success_rate']}% scraper success, "
        f"avg {stats['average_response_time_ms']}ms per book[/dim]"
    )

    if output is not None:
        output.write_text(json.dumps(report.to_dict(), indent=2, default=str), encoding="utf-8")
        console.print(f"[green]Report written to {output}[/green]")
