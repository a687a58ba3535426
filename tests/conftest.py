# ABOUTME: Shared pytest fixtures for ShelfHelp tests.
# ABOUTME: Provides sample books, fast scraper configs, and a page-serving mock transport.

from collections.abc import Callable

import httpx
import pytest

from shelfhelp.availability.types import Book
from shelfhelp.config import Settings
from shelfhelp.scrapers import ScraperOrchestrator, create_orchestrator
from shelfhelp.scrapers.http import ScraperConfig
from shelfhelp.scrapers.library import LibraryScraperConfig


@pytest.fixture
def evelyn_hugo() -> Book:
    """A fully populated book record."""
    return Book(
        title="The Seven Husbands of Evelyn Hugo",
        author_name="Taylor Jenkins Reid",
        genres=["Historical Fiction", "Romance"],
        goodreads_id="32620332",
    )


@pytest.fixture
def fast_config() -> ScraperConfig:
    """Scraper config with no rate limiting or backoff."""
    return ScraperConfig(
        search_url="https://search.example.com/s", rate_limit_ms=0, retry_delay=0.0
    )


@pytest.fixture
def fast_library_config() -> LibraryScraperConfig:
    """Library scraper config with no rate limiting, backoff, or system delay."""
    return LibraryScraperConfig(rate_limit_ms=0, retry_delay=0.0, system_delay_ms=0)


@pytest.fixture
def page_transport() -> Callable[..., httpx.MockTransport]:
    """Build a mock transport serving HTML pages keyed by host.

    Hosts not in the mapping get a 404.
    """

    def build(pages: dict[str, str], default: str | None = None) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            body = pages.get(request.url.host, default)
            if body is None:
                return httpx.Response(404, text="not found")
            return httpx.Response(200, text=body)

        return httpx.MockTransport(handler)

    return build


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with test hosts and no pacing delays, ignoring any .env file."""
    return Settings(
        _env_file=None,
        ku_search_url="https://ku.test/s",
        hoopla_search_url="https://hoopla.test/search",
        ku_rate_limit_ms=0,
        hoopla_rate_limit_ms=0,
        library_rate_limit_ms=0,
        library_system_delay_ms=0,
        max_retries=1,
        batch_delay_ms=0,
        group_delay_ms=0,
    )


@pytest.fixture
def pages_orchestrator(
    fast_settings: Settings, page_transport: Callable[..., httpx.MockTransport]
) -> Callable[..., ScraperOrchestrator]:
    """Build a real orchestrator whose scrapers fetch canned pages by host."""

    def build(pages: dict[str, str], default: str | None = None) -> ScraperOrchestrator:
        return create_orchestrator(fast_settings, transport=page_transport(pages, default))

    return build
