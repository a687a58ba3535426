# ABOUTME: Public library scraper over OverDrive catalog searches.
# ABOUTME: Checks each configured library system in turn and reports per-format status.

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any

import httpx

from shelfhelp.availability.content import clean_html_text, find_indicators
from shelfhelp.availability.matching import check_author_match, check_title_match
from shelfhelp.availability.types import AvailabilityResult, Book, LibrarySystemStatus
from shelfhelp.scrapers.base import DETAILS_LENGTH, BaseScraper
from shelfhelp.scrapers.http import ScraperConfig, ScraperFetchError

logger = logging.getLogger(__name__)

AVAILABLE = "Available"
ON_HOLD = "On Hold"
NOT_AVAILABLE = "Not Available"
NOT_FOUND = "Not Found"
UNKNOWN = "Unknown"
ERROR = "Error"

# Best first; the overall result reports the best status any system has.
_STATUS_PRIORITY = (AVAILABLE, ON_HOLD, NOT_AVAILABLE, NOT_FOUND, UNKNOWN, ERROR)

AVAILABLE_INDICATORS = (
    "available now",
    "download now",
    "borrow now",
    "check out",
    "available for checkout",
)
HOLD_INDICATORS = ("place hold", "on hold", "waiting list", "holds queue", "estimated wait")
UNAVAILABLE_INDICATORS = ("not available", "unavailable", "not found", "no results")

EBOOK_FORMATS = ("ebook", "digital book", "kindle book", "epub", "pdf")
AUDIOBOOK_FORMATS = ("audiobook", "audio book", "digital audiobook", "mp3 audiobook")

_WAIT_PATTERNS = (
    re.compile(r"estimated wait:?\s*(\d+)\s*(weeks?|days?|months?)", re.IGNORECASE),
    re.compile(r"(\d+)\s*(weeks?|days?|months?)\s*wait", re.IGNORECASE),
    re.compile(r"wait time:?\s*(\d+)\s*(weeks?|days?|months?)", re.IGNORECASE),
)


@dataclass(frozen=True)
class LibrarySystem:
    """An OverDrive catalog to search."""

    name: str
    catalog_url: str
    search_endpoint: str = "/search"

    @property
    def search_url(self) -> str:
        return f"{self.catalog_url}{self.search_endpoint}"


DEFAULT_SYSTEMS = {
    "tuscaloosa_public": LibrarySystem(
        name="Tuscaloosa Public Library", catalog_url="https://tuscaloosa.overdrive.com"
    ),
    "camellia_net": LibrarySystem(
        name="Camellia Net", catalog_url="https://camellia.overdrive.com"
    ),
    "seattle_public": LibrarySystem(
        name="Seattle Public Library", catalog_url="https://seattle.overdrive.com"
    ),
}


@dataclass
class LibraryScraperConfig(ScraperConfig):
    timeout: float = 15.0
    rate_limit_ms: int = 3000
    system_delay_ms: int = 1000
    systems: dict[str, LibrarySystem] = field(default_factory=lambda: dict(DEFAULT_SYSTEMS))


@dataclass
class FormatStatus:
    status: str
    indicators: dict[str, Any] = field(default_factory=dict)


def determine_format_status(content: str, formats: tuple[str, ...]) -> FormatStatus:
    """Status of one format; a mentioned format with no clear status counts as available."""
    if not find_indicators(content, formats):
        return FormatStatus(status=NOT_AVAILABLE)

    available = find_indicators(content, AVAILABLE_INDICATORS)
    holds = find_indicators(content, HOLD_INDICATORS)
    unavailable = find_indicators(content, UNAVAILABLE_INDICATORS)

    if available:
        status = AVAILABLE
    elif holds:
        status = ON_HOLD
    elif unavailable:
        status = NOT_AVAILABLE
    else:
        status = AVAILABLE

    return FormatStatus(
        status=status,
        indicators={
            "available": available,
            "holds": holds,
            "unavailable": unavailable,
            "format_found": True,
        },
    )


def extract_wait_time(content: str) -> str | None:
    """An estimated hold wait such as ``"3 weeks"``, when the page states one."""
    for pattern in _WAIT_PATTERNS:
        match = pattern.search(content)
        if match:
            return f"{match.group(1)} {match.group(2)}"
    return None


def library_confidence(
    title_match: bool, author_match: bool, ebook: FormatStatus, audio: FormatStatus
) -> float:
    confidence = 0.0
    if title_match and author_match:
        confidence += 0.6
    elif title_match or author_match:
        confidence += 0.3

    clear = (UNKNOWN, NOT_AVAILABLE)
    if ebook.status not in clear or audio.status not in clear:
        confidence += 0.3

    if AVAILABLE in (ebook.status, audio.status):
        confidence += 0.1

    return round(confidence, 2)


def parse_library_content(content: str, book: Book, system: LibrarySystem) -> LibrarySystemStatus:
    """Interpret cleaned catalog search text for one library system."""
    title_match = check_title_match(content, book)
    author_match = check_author_match(content, book)

    if not title_match and not author_match:
        return LibrarySystemStatus(
            name=system.name,
            ebook_status=NOT_FOUND,
            audio_status=NOT_FOUND,
            confidence=0.0,
            details={"title_match": False, "author_match": False, "search_performed": True},
        )

    ebook = determine_format_status(content, EBOOK_FORMATS)
    audio = determine_format_status(content, AUDIOBOOK_FORMATS)
    return LibrarySystemStatus(
        name=system.name,
        ebook_status=ebook.status,
        audio_status=audio.status,
        confidence=library_confidence(title_match, author_match, ebook, audio),
        details={
            "title_match": title_match,
            "author_match": author_match,
            "ebook_indicators": ebook.indicators,
            "audio_indicators": audio.indicators,
            "estimated_wait": extract_wait_time(content),
        },
    )


def best_status(systems: dict[str, LibrarySystemStatus]) -> str | None:
    statuses = {status.ebook_status for status in systems.values()}
    statuses |= {status.audio_status for status in systems.values()}
    for status in _STATUS_PRIORITY:
        if status in statuses:
            return status
    return None


class LibraryScraper(BaseScraper):
    """Checks library availability across OverDrive catalogs, one system at a time."""

    service_name = "Library Systems"
    source = "library_scraper"

    config: LibraryScraperConfig

    def __init__(
        self,
        config: LibraryScraperConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config or LibraryScraperConfig(), transport=transport)

    @property
    def systems(self) -> dict[str, LibrarySystem]:
        return self.config.systems

    async def check_specific_library(self, book: Book, system_key: str) -> LibrarySystemStatus:
        """Check a single configured library system.

        Raises:
            ValueError: If the system is unknown or the book lacks title/author.
        """
        system = self.systems.get(system_key)
        if system is None:
            raise ValueError(f"Library system '{system_key}' not found")
        errors = self.validate_book_data(book)
        if errors:
            raise ValueError(f"Invalid book data: {', '.join(errors)}")
        status, _ = await self._check_system(book, system)
        return status

    async def _check_system(
        self, book: Book, system: LibrarySystem
    ) -> tuple[LibrarySystemStatus, str]:
        query = self.build_search_query(book)
        try:
            html = await self.http.get_text(system.search_url, params={"query": query})
        except (ScraperFetchError, httpx.HTTPError) as exc:
            logger.warning("%s: catalog search failed: %s", system.name, exc)
            return self._system_error(system, str(exc)), ""

        content = clean_html_text(html)
        return parse_library_content(content, book, system), content

    def _system_error(self, system: LibrarySystem, message: str) -> LibrarySystemStatus:
        return LibrarySystemStatus(
            name=system.name, ebook_status=ERROR, audio_status=ERROR, error=message
        )

    async def _scrape(self, book: Book) -> AvailabilityResult:
        systems: dict[str, LibrarySystemStatus] = {}
        contents: list[str] = []
        for index, (key, system) in enumerate(self.systems.items()):
            if index and self.config.system_delay_ms > 0:
                await asyncio.sleep(self.config.system_delay_ms / 1000)
            try:
                status, content = await self._check_system(book, system)
            except Exception as exc:
                logger.warning("%s: unexpected error: %s", system.name, exc)
                status, content = self._system_error(system, str(exc)), ""
            systems[key] = status
            if content:
                contents.append(content)

        search_content = " ".join(contents)
        confidences = [s.confidence for s in systems.values() if s.confidence is not None]
        return AvailabilityResult(
            available=any(status.has_available_format for status in systems.values()),
            confidence=max(confidences, default=0.0),
            details=search_content[:DETAILS_LENGTH],
            metadata={"search_content": search_content},
            library_availability=systems,
        )

    def _failure(self, message: str) -> AvailabilityResult:
        return AvailabilityResult(
            available=False, confidence=0.0, error=message, library_availability={}
        )

    def service_health(self) -> dict[str, Any]:
        health = super().service_health()
        health.pop("search_url", None)
        return {
            **health,
            "supported_systems": len(self.systems),
            "library_systems": [
                {"name": system.name, "catalog_url": system.catalog_url}
                for system in self.systems.values()
            ],
        }
