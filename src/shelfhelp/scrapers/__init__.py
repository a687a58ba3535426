# ABOUTME: Scrapers package: per-service availability scrapers and their orchestrator.
# ABOUTME: Provides factories that build scrapers and orchestrators from Settings.

import httpx

from shelfhelp.config import Settings, get_settings
from shelfhelp.scrapers.base import AvailabilityScraper, BaseScraper
from shelfhelp.scrapers.hoopla import HooplaScraper
from shelfhelp.scrapers.http import ScraperConfig, ScraperFetchError, ScraperHttpClient
from shelfhelp.scrapers.kindle_unlimited import KindleUnlimitedScraper
from shelfhelp.scrapers.library import LibraryScraper, LibraryScraperConfig
from shelfhelp.scrapers.orchestrator import (
    BatchReport,
    OrchestratorConfig,
    ScraperOrchestrator,
)

__all__ = [
    "AvailabilityScraper",
    "BaseScraper",
    "BatchReport",
    "HooplaScraper",
    "KindleUnlimitedScraper",
    "LibraryScraper",
    "ScraperConfig",
    "ScraperFetchError",
    "ScraperHttpClient",
    "ScraperOrchestrator",
    "create_orchestrator",
    "create_scraper",
]


def create_scraper(
    scraper_type: str,
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AvailabilityScraper:
    """Build one scraper by type name.

    Raises:
        ValueError: If ``scraper_type`` is not a known scraper.
    """
    settings = settings or get_settings()
    kind = scraper_type.lower()
    if kind in ("kindle_unlimited", "ku"):
        config = ScraperConfig(
            search_url=settings.ku_search_url,
            timeout=settings.ku_timeout,
            rate_limit_ms=settings.ku_rate_limit_ms,
            max_retries=settings.max_retries,
        )
        return KindleUnlimitedScraper(config, transport=transport)
    if kind == "hoopla":
        config = ScraperConfig(
            search_url=settings.hoopla_search_url,
            timeout=settings.hoopla_timeout,
            rate_limit_ms=settings.hoopla_rate_limit_ms,
            max_retries=settings.max_retries,
        )
        return HooplaScraper(config, transport=transport)
    if kind in ("library", "libraries"):
        library_config = LibraryScraperConfig(
            timeout=settings.library_timeout,
            rate_limit_ms=settings.library_rate_limit_ms,
            max_retries=settings.max_retries,
            system_delay_ms=settings.library_system_delay_ms,
        )
        return LibraryScraper(library_config, transport=transport)
    raise ValueError(f"Unknown scraper type: {scraper_type}")


def create_orchestrator(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ScraperOrchestrator:
    """Build an orchestrator over all three scrapers, configured from settings."""
    settings = settings or get_settings()
    scrapers = {
        name: create_scraper(name, settings, transport=transport)
        for name in ("kindle_unlimited", "hoopla", "libraries")
    }
    config = OrchestratorConfig(
        batch_size=settings.batch_size,
        batch_delay_ms=settings.batch_delay_ms,
        max_concurrent=settings.max_concurrent,
        group_delay_ms=settings.group_delay_ms,
    )
    return ScraperOrchestrator(scrapers, config)
