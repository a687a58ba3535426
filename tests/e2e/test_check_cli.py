# ABOUTME: End-to-end tests for the `shelfhelp check` and `shelfhelp test-scrapers` commands.
# ABOUTME: Real scrapers run against canned pages; only the orchestrator factory is patched.

import json
import logging
from collections.abc import Iterator
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from shelfhelp.cli import cli
from tests.fixtures.pages import HOOPLA_EBOOK_PAGE, KU_AVAILABLE_PAGE, LIBRARY_AVAILABLE_PAGE

WIDE = {"COLUMNS": "200"}
ALL_PAGES = {"ku.test": KU_AVAILABLE_PAGE, "hoopla.test": HOOPLA_EBOOK_PAGE}


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestCheckCli:
    """E2e tests for `shelfhelp check`."""

    def test_prints_table_per_source(self, pages_orchestrator) -> None:
        """Every source is listed with availability and confidence."""
        orchestrator = pages_orchestrator(ALL_PAGES, default=LIBRARY_AVAILABLE_PAGE)
        with patch(
            "shelfhelp.cli.commands.check_cmd._create_orchestrator",
            return_value=orchestrator,
        ):
            result = CliRunner().invoke(
                cli,
                ["check", "The Seven Husbands of Evelyn Hugo", "Taylor Jenkins Reid"],
                env=WIDE,
            )

        assert result.exit_code == 0, result.output
        assert "The Seven Husbands of Evelyn Hugo by Taylor Jenkins Reid" in result.output
        for source in ("kindle_unlimited", "hoopla", "libraries"):
            assert source in result.output
        assert "cross-validated" in result.output
        assert "best library status: Available" in result.output
        assert "3/3 validated (100.0%)" in result.output

    def test_json_output(self, pages_orchestrator) -> None:
        """--json prints availability, validations, and the report."""
        orchestrator = pages_orchestrator(ALL_PAGES, default=LIBRARY_AVAILABLE_PAGE)
        with patch(
            "shelfhelp.cli.commands.check_cmd._create_orchestrator",
            return_value=orchestrator,
        ):
            result = CliRunner().invoke(
                cli,
                [
                    "check",
                    "The Seven Husbands of Evelyn Hugo",
                    "Taylor Jenkins Reid",
                    "--genre",
                    "Historical Fiction",
                    "--json",
                ],
            )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["availability"]["author"] == "Taylor Jenkins Reid"
        assert data["availability"]["sources"]["kindle_unlimited"]["ku_availability"] is True
        assert set(data["validations"]) == {"kindle_unlimited", "hoopla", "libraries"}
        assert data["report"]["summary"]["validationRate"] == "100.0"

    def test_failed_sources_are_shown(self, pages_orchestrator) -> None:
        """Sources that could not be fetched show their error."""
        orchestrator = pages_orchestrator({"ku.test": KU_AVAILABLE_PAGE})
        with patch(
            "shelfhelp.cli.commands.check_cmd._create_orchestrator",
            return_value=orchestrator,
        ):
            result = CliRunner().invoke(
                cli,
                ["check", "The Seven Husbands of Evelyn Hugo", "Taylor Jenkins Reid"],
                env=WIDE,
            )

        assert result.exit_code == 0, result.output
        assert "HTTP 404" in result.output


class TestTestScrapersCli:
    """E2e tests for `shelfhelp test-scrapers`."""

    def test_all_scrapers_healthy(self, pages_orchestrator) -> None:
        """Every scraper runs against the sample book and reports health."""
        orchestrator = pages_orchestrator({}, default=KU_AVAILABLE_PAGE)
        with patch(
            "shelfhelp.cli.commands.test_scrapers_cmd._create_orchestrator",
            return_value=orchestrator,
        ):
            result = CliRunner().invoke(cli, ["test-scrapers"], env=WIDE)

        assert result.exit_code == 0, result.output
        for name in ("kindle_unlimited", "hoopla", "libraries"):
            assert name in result.output
        assert "error" not in result.output
        assert "Orchestrator status: healthy" in result.output

    def test_unreachable_services(self, pages_orchestrator) -> None:
        """Fetch failures are reported per scraper and the orchestrator is unhealthy."""
        with patch(
            "shelfhelp.cli.commands.test_scrapers_cmd._create_orchestrator",
            return_value=pages_orchestrator({}),
        ):
            result = CliRunner().invoke(cli, ["test-scrapers"], env=WIDE)

        assert result.exit_code == 0, result.output
        assert "HTTP 404" in result.output
        assert "Orchestrator status: unhealthy" in result.output
