# ABOUTME: Unit tests for the OverDrive library scraper and its status parsing.
# ABOUTME: Serves canned catalog pages per library host through a mock transport.

import asyncio

import pytest

from shelfhelp.availability.content import clean_html_text
from shelfhelp.availability.types import AvailabilityResult, Book, LibrarySystemStatus
from shelfhelp.scrapers.library import (
    AVAILABLE,
    DEFAULT_SYSTEMS,
    EBOOK_FORMATS,
    ERROR,
    NOT_AVAILABLE,
    NOT_FOUND,
    ON_HOLD,
    LibraryScraper,
    LibraryScraperConfig,
    best_status,
    determine_format_status,
    extract_wait_time,
    parse_library_content,
)
from tests.fixtures.pages import (
    LIBRARY_AVAILABLE_PAGE,
    LIBRARY_HOLD_PAGE,
    LIBRARY_NOT_FOUND_PAGE,
)

SEATTLE = DEFAULT_SYSTEMS["seattle_public"]


def _run(coro):
    return asyncio.run(coro)


class TestDetermineFormatStatus:
    """Tests for determine_format_status."""

    def test_missing_format(self) -> None:
        """A format the page never mentions is not available."""
        assert determine_format_status("audiobook", EBOOK_FORMATS).status == NOT_AVAILABLE

    def test_hold_indicators(self) -> None:
        """Hold language means the format is on hold."""
        assert determine_format_status("ebook place hold", EBOOK_FORMATS).status == ON_HOLD

    def test_available_beats_hold(self) -> None:
        """Availability indicators take precedence over holds."""
        status = determine_format_status("ebook borrow now place hold", EBOOK_FORMATS)
        assert status.status == AVAILABLE
        assert status.indicators["holds"] == ["place hold"]

    def test_format_without_status_counts_as_available(self) -> None:
        """A mentioned format with no status language is assumed available."""
        assert determine_format_status("ebook", EBOOK_FORMATS).status == AVAILABLE


class TestExtractWaitTime:
    """Tests for extract_wait_time."""

    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("estimated wait: 3 weeks", "3 weeks"),
            ("about 10 days wait", "10 days"),
            ("wait time 2 months", "2 months"),
            ("no hold information", None),
        ],
    )
    def test_patterns(self, content: str, expected: str | None) -> None:
        """Each wait phrasing yields "N unit"."""
        assert extract_wait_time(content) == expected


class TestParseLibraryContent:
    """Tests for parse_library_content."""

    def test_available_page(self, evelyn_hugo: Book) -> None:
        """Both formats available with a full match scores 1.0."""
        status = parse_library_content(clean_html_text(LIBRARY_AVAILABLE_PAGE), evelyn_hugo, SEATTLE)
        assert status.name == "Seattle Public Library"
        assert status.ebook_status == AVAILABLE
        assert status.audio_status == AVAILABLE
        assert status.confidence == 1.0

    def test_hold_page(self, evelyn_hugo: Book) -> None:
        """Holds are reported with the estimated wait."""
        status = parse_library_content(clean_html_text(LIBRARY_HOLD_PAGE), evelyn_hugo, SEATTLE)
        assert status.ebook_status == ON_HOLD
        assert status.audio_status == NOT_AVAILABLE
        assert status.confidence == 0.9
        assert status.details["estimated_wait"] == "3 weeks"
        assert status.has_available_format is False

    def test_not_found_page(self, evelyn_hugo: Book) -> None:
        """No title or author match means not found in this catalog."""
        status = parse_library_content(clean_html_text(LIBRARY_NOT_FOUND_PAGE), evelyn_hugo, SEATTLE)
        assert status.ebook_status == NOT_FOUND
        assert status.audio_status == NOT_FOUND
        assert status.confidence == 0.0


class TestBestStatus:
    """Tests for best_status."""

    def test_priority(self) -> None:
        """The best status across systems and formats wins."""
        systems = {
            "a": LibrarySystemStatus(name="A", ebook_status=ERROR, audio_status=NOT_FOUND),
            "b": LibrarySystemStatus(name="B", ebook_status=ON_HOLD, audio_status=NOT_AVAILABLE),
        }
        assert best_status(systems) == ON_HOLD

    def test_empty(self) -> None:
        """No systems gives no status."""
        assert best_status({}) is None


class TestLibraryScraper:
    """Tests for LibraryScraper."""

    def test_defaults(self) -> None:
        """Three OverDrive systems are configured with a three second rate limit."""
        scraper = LibraryScraper()
        assert scraper.name == "library"
        assert list(scraper.systems) == ["tuscaloosa_public", "camellia_net", "seattle_public"]
        assert scraper.config.rate_limit_ms == 3000
        assert scraper.config.system_delay_ms == 1000

    def test_checks_every_system(
        self, evelyn_hugo: Book, fast_library_config: LibraryScraperConfig, page_transport
    ) -> None:
        """Each system is searched; a failing catalog is marked Error."""
        transport = page_transport(
            {
                "camellia.overdrive.com": LIBRARY_HOLD_PAGE,
                "seattle.overdrive.com": LIBRARY_AVAILABLE_PAGE,
            }
        )
        scraper = LibraryScraper(fast_library_config, transport=transport)
        result: AvailabilityResult = _run(scraper.check_availability(evelyn_hugo))

        systems = result.library_availability
        assert set(systems) == {"tuscaloosa_public", "camellia_net", "seattle_public"}
        assert systems["tuscaloosa_public"].ebook_status == ERROR
        assert "HTTP 404" in systems["tuscaloosa_public"].error
        assert systems["camellia_net"].ebook_status == ON_HOLD
        assert systems["seattle_public"].ebook_status == AVAILABLE

        assert result.available is True
        assert result.confidence == 1.0
        assert result.status is None
        assert best_status(systems) == AVAILABLE
        assert result.source == "library_scraper"
        assert "estimated wait" in result.metadata["search_content"]
        assert "borrow now" in result.metadata["search_content"]

    def test_health_counts_system_requests(
        self, evelyn_hugo: Book, fast_library_config: LibraryScraperConfig, page_transport
    ) -> None:
        """One failed catalog out of three leaves the scraper degraded."""
        transport = page_transport(
            {
                "camellia.overdrive.com": LIBRARY_HOLD_PAGE,
                "seattle.overdrive.com": LIBRARY_AVAILABLE_PAGE,
            }
        )
        scraper = LibraryScraper(fast_library_config, transport=transport)
        _run(scraper.check_availability(evelyn_hugo))

        health = scraper.health()
        assert health["requests"] == 3
        assert health["success_rate"] == 66.7
        assert health["status"] == "degraded"

    def test_nothing_found(
        self, evelyn_hugo: Book, fast_library_config: LibraryScraperConfig, page_transport
    ) -> None:
        """Catalogs without the book give an unavailable Not Found result."""
        scraper = LibraryScraper(
            fast_library_config, transport=page_transport({}, default=LIBRARY_NOT_FOUND_PAGE)
        )
        result = _run(scraper.check_availability(evelyn_hugo))
        assert result.available is False
        assert result.confidence == 0.0
        assert result.status is None
        assert best_status(result.library_availability) == NOT_FOUND

    def test_invalid_book(self, fast_library_config: LibraryScraperConfig) -> None:
        """Invalid books get an empty system mapping and an error."""
        result = _run(LibraryScraper(fast_library_config).check_availability(Book()))
        assert result.library_availability == {}
        assert result.error.startswith("Invalid book data")

    def test_check_specific_library(
        self, evelyn_hugo: Book, fast_library_config: LibraryScraperConfig, page_transport
    ) -> None:
        """A single system can be checked by key."""
        transport = page_transport({"seattle.overdrive.com": LIBRARY_HOLD_PAGE})
        scraper = LibraryScraper(fast_library_config, transport=transport)
        status = _run(scraper.check_specific_library(evelyn_hugo, "seattle_public"))
        assert status.ebook_status == ON_HOLD

    def test_check_unknown_library(
        self, evelyn_hugo: Book, fast_library_config: LibraryScraperConfig
    ) -> None:
        """Unknown system keys raise ValueError."""
        scraper = LibraryScraper(fast_library_config)
        with pytest.raises(ValueError, match="not found"):
            _run(scraper.check_specific_library(evelyn_hugo, "atlantis"))

    def test_service_health_lists_systems(self) -> None:
        """Service health lists catalogs instead of a single search URL."""
        health = LibraryScraper().service_health()
        assert "search_url" not in health
        assert health["supported_systems"] == 3
        assert health["library_systems"][2] == {
            "name": "Seattle Public Library",
            "catalog_url": "https://seattle.overdrive.com",
        }

    def test_custom_systems(self, evelyn_hugo: Book, page_transport) -> None:
        """Configured systems replace the defaults."""
        config = LibraryScraperConfig(
            rate_limit_ms=0,
            retry_delay=0.0,
            system_delay_ms=0,
            systems={"local": DEFAULT_SYSTEMS["seattle_public"]},
        )
        transport = page_transport({"seattle.overdrive.com": LIBRARY_AVAILABLE_PAGE})
        result = _run(LibraryScraper(config, transport=transport).check_availability(evelyn_hugo))
        assert list(result.library_availability) == ["local"]
