# ABOUTME: The `shelfhelp check` command for checking one book on every service.
# ABOUTME: Scrapes, cross-validates, and validates, then prints a per-source table.

import asyncio

import click
from rich.console import Console
from rich.table import Table

from shelfhelp.availability.types import Book
from shelfhelp.cli.options import echo_json, format_available, format_confidence, json_option
from shelfhelp.config import get_settings
from shelfhelp.core.pipeline import SOURCE_VALIDATORS, ValidatedAvailability, check_and_validate
from shelfhelp.scrapers import ScraperOrchestrator, create_orchestrator
from shelfhelp.scrapers.library import best_status
from shelfhelp.validation.base import ValidatorConfig
from shelfhelp.validation.factory import create_validation_suite
from shelfhelp.validation.framework import FrameworkConfig, ValidationFramework


def _create_orchestrator() -> ScraperOrchestrator:
    """Create the default orchestrator over the live services."""
    return create_orchestrator()


def _create_framework() -> ValidationFramework:
    settings = get_settings()
    return ValidationFramework(
        FrameworkConfig(
            min_confidence_threshold=settings.min_confidence_threshold,
            high_confidence_threshold=settings.high_confidence_threshold,
            enable_cross_validation=settings.enable_cross_validation,
            consensus_threshold=settings.consensus_threshold,
        )
    )


async def _run(book: Book) -> ValidatedAvailability:
    suite = create_validation_suite(
        SOURCE_VALIDATORS.values(),
        ValidatorConfig(enable_logging=get_settings().validator_logging),
    )
    async with _create_orchestrator() as orchestrator:
        return await check_and_validate(orchestrator, book, suite, _create_framework())


def render_validated(console: Console, checked: ValidatedAvailability) -> None:
    availability = checked.availability
    console.print(
        f"[bold]{availability.title or 'unknown'}[/bold] by {availability.author or 'unknown'}"
    )

    table = Table()
    table.add_column("Source", style="bold")
    table.add_column("Available")
    table.add_column("Confidence")
    table.add_column("Adjusted")
    table.add_column("Notes")

    for source, result in availability.sources.items():
        validation = checked.validations.get(source)
        notes = [result.error] if result.error else []
        if result.library_availability:
            notes.append(f"best library status: {best_status(result.library_availability)}")
        if result.cross_validation_warning:
            notes.append(result.cross_validation_warning)
        elif result.cross_validated:
            notes.append("cross-validated")
        if validation is not None:
            notes.extend(validation.warnings)
        table.add_row(
            source,
            format_available(result.available),
            format_confidence(result.confidence),
            format_confidence(validation.adjusted_confidence) if validation else "[dim]-[/dim]",
            "; ".join(notes) or "",
        )
    console.print(table)

    if checked.report is not None:
        summary = checked.report.summary
        console.print(
            f"\n[dim]{summary.valid}/{summary.total} validated "
            f"({summary.validation_rate}%), overall confidence "
            f"{summary.overall_confidence:.2f}[/dim]"
        )


@click.command("check")
@click.argument("title")
@click.argument("author")
@click.option("--genre", "genres", multiple=True, help="Genre of the book (repeatable).")
@json_option
def check(title: str, author: str, genres: tuple[str, ...], as_json: bool) -> None:
    """Check where TITLE by AUTHOR is available."""
    book = Book(title=title, author_name=author, genres=list(genres))
    checked = asyncio.run(_run(book))

    if as_json:
        echo_json(checked.to_dict())
        return
    render_validated(Console(), checked)
