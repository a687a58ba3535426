# ABOUTME: CLI package for ShelfHelp availability checks, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from shelfhelp.cli.commands import batch_cmd, check_cmd, test_scrapers_cmd, validate_cmd


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


@click.group()
@click.version_option(package_name="shelfhelp")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """ShelfHelp - check where a book can be borrowed or read for free."""
    _configure_logging(verbose)


cli.add_command(check_cmd.check)
cli.add_command(batch_cmd.batch)
cli.add_command(validate_cmd.validate)
cli.add_command(test_scrapers_cmd.test_scrapers)
