# ABOUTME: Unit tests for the shared scraper base class.
# ABOUTME: Covers the abstract scrape hook, book validation, and query building.

import asyncio

import pytest

from shelfhelp.availability.types import AvailabilityResult, Book
from shelfhelp.scrapers.base import AvailabilityScraper, BaseScraper
from shelfhelp.scrapers.http import ScraperConfig


class EchoScraper(BaseScraper):
    source = "echo_scraper"

    async def _scrape(self, book: Book) -> AvailabilityResult:
        return AvailabilityResult(available=True, confidence=0.5, details=book.display_title)


class TestBaseScraper:
    """Tests for BaseScraper."""

    def test_scrape_must_be_implemented(self) -> None:
        """A subclass without _scrape cannot be built."""

        class Incomplete(BaseScraper):
            pass

        with pytest.raises(TypeError, match="_scrape"):
            Incomplete(ScraperConfig())

    def test_base_class_is_abstract(self) -> None:
        """The base class itself cannot be built."""
        with pytest.raises(TypeError):
            BaseScraper(ScraperConfig())

    def test_subclass_satisfies_protocol(self) -> None:
        """A complete subclass is an AvailabilityScraper."""
        scraper = EchoScraper(ScraperConfig())
        assert isinstance(scraper, AvailabilityScraper)
        assert scraper.name == "echo"

    def test_results_are_sourced(self, evelyn_hugo: Book) -> None:
        """Results carry the scraper's source tag and a check time."""

        async def run() -> AvailabilityResult:
            scraper = EchoScraper(ScraperConfig())
            try:
                return await scraper.check_availability(evelyn_hugo)
            finally:
                await scraper.aclose()

        result = asyncio.run(run())
        assert result.source == "echo_scraper"
        assert result.checked_at is not None
        assert result.details == "The Seven Husbands of Evelyn Hugo"
