# ABOUTME: AvailabilityScraper protocol and the shared scraper base class.
# ABOUTME: Handles book validation, query building, error-shaped results, and health stats.

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

import httpx

from shelfhelp.availability.types import AvailabilityResult, Book
from shelfhelp.scrapers.http import ScraperConfig, ScraperFetchError, ScraperHttpClient

logger = logging.getLogger(__name__)

HEALTHY_SUCCESS_RATE = 80.0
DEGRADED_SUCCESS_RATE = 60.0

# Leading characters of the cleaned page kept as a result's details.
DETAILS_LENGTH = 200


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def health_status(success_rate: float) -> str:
    if success_rate >= HEALTHY_SUCCESS_RATE:
        return "healthy"
    if success_rate >= DEGRADED_SUCCESS_RATE:
        return "degraded"
    return "unhealthy"


@runtime_checkable
class AvailabilityScraper(Protocol):
    """Protocol for per-service availability scrapers.

    ``check_availability`` never raises: every failure is reported through
    the result's ``error`` field.
    """

    @property
    def name(self) -> str: ...

    config: ScraperConfig

    async def check_availability(self, book: Book) -> AvailabilityResult: ...

    def health(self) -> dict[str, Any]: ...

    def service_health(self) -> dict[str, Any]: ...

    def reset_stats(self) -> None: ...

    async def aclose(self) -> None: ...


class BaseScraper(ABC):
    """Shared plumbing for scrapers; subclasses implement ``_scrape`` and ``_failure``."""

    service_name = "Availability Service"
    source = "scraper"

    def __init__(
        self,
        config: ScraperConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.http = ScraperHttpClient(config, transport=transport)

    @property
    def name(self) -> str:
        return self.source.removesuffix("_scraper")

    def validate_book_data(self, book: Book) -> list[str]:
        """Problems that prevent searching for this book (empty when searchable)."""
        errors: list[str] = []
        if not (book.display_title or "").strip():
            errors.append("Missing or empty title")
        if not (book.author_name or "").strip():
            errors.append("Missing or empty author")
        return errors

    def build_search_query(self, book: Book) -> str:
        """The "title author" query string for a book.

        Raises:
            ValueError: If the book lacks a title or author.
        """
        errors = self.validate_book_data(book)
        if errors:
            raise ValueError(f"Invalid book data: {', '.join(errors)}")
        return f"{book.display_title.strip()} {book.author_name.strip()}"

    async def check_availability(self, book: Book) -> AvailabilityResult:
        """Check this service for a book, reporting any failure in ``error``."""
        errors = self.validate_book_data(book)
        if errors:
            return self._finish(self._failure(f"Invalid book data: {', '.join(errors)}"))

        try:
            result = await self._scrape(book)
        except (ScraperFetchError, httpx.HTTPError) as exc:
            logger.warning("%s: lookup failed for %r: %s", self.service_name, book.display_title, exc)
            result = self._failure(str(exc))
        except Exception as exc:
            logger.warning(
                "%s: unexpected error for %r", self.service_name, book.display_title, exc_info=True
            )
            result = self._failure(str(exc) or type(exc).__name__)
        return self._finish(result)

    @abstractmethod
    async def _scrape(self, book: Book) -> AvailabilityResult:
        """Fetch and parse the service's search page for a valid book."""

    def _failure(self, message: str) -> AvailabilityResult:
        return AvailabilityResult(available=False, confidence=0.0, error=message)

    def _finish(self, result: AvailabilityResult) -> AvailabilityResult:
        result.checked_at = now_iso()
        result.source = self.source
        return result

    def health(self) -> dict[str, Any]:
        """Request counters with a success rate and a healthy/degraded/unhealthy status.

        A scraper that has not made any request yet counts as healthy.
        """
        stats = self.http.stats
        success_rate = (
            round(stats.successes / stats.requests * 100, 1) if stats.requests else 100.0
        )
        return {
            **asdict(stats),
            "success_rate": success_rate,
            "status": health_status(success_rate),
            "timestamp": now_iso(),
        }

    def service_health(self) -> dict[str, Any]:
        last_request = self.http.last_request_at
        return {
            **self.health(),
            "service": self.service_name,
            "search_url": self.config.search_url or None,
            "rate_limit_ms": self.config.rate_limit_ms,
            "last_request": last_request.isoformat() if last_request else None,
        }

    def reset_stats(self) -> None:
        self.http.stats.reset()

    async def aclose(self) -> None:
        await self.http.aclose()
