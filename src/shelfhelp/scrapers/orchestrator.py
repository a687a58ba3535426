# ABOUTME: Orchestrates the availability scrapers for single books and rate-limited batches.
# ABOUTME: Isolates scraper failures per source and keeps process-wide check statistics.

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field
from typing import Any

from shelfhelp.availability.types import AvailabilityResult, Book, BookAvailability
from shelfhelp.scrapers.base import AvailabilityScraper, now_iso
from shelfhelp.scrapers.hoopla import HooplaScraper
from shelfhelp.scrapers.kindle_unlimited import KindleUnlimitedScraper
from shelfhelp.scrapers.library import LibraryScraper

logger = logging.getLogger(__name__)

SAMPLE_BOOK = Book(
    title="Test Book", book_title="Test Book", author_name="Test Author", goodreads_id="test-123"
)


def default_scrapers() -> dict[str, AvailabilityScraper]:
    return {
        "kindle_unlimited": KindleUnlimitedScraper(),
        "hoopla": HooplaScraper(),
        "libraries": LibraryScraper(),
    }


@dataclass
class OrchestratorConfig:
    """Batching discipline; delays are milliseconds between groups and batches."""

    batch_size: int = 3
    batch_delay_ms: int = 5000
    max_concurrent: int = 2
    group_delay_ms: int = 1000


@dataclass
class OrchestratorStats:
    total_checks: int = 0
    successful_checks: int = 0
    failed_checks: int = 0
    average_response_time: float = 0.0
    last_batch_time: str | None = None

    def record_response_time(self, elapsed_ms: float) -> None:
        """Fold one book check into the running mean; call after counting the check."""
        n = self.total_checks
        if n <= 1:
            self.average_response_time = elapsed_ms
        else:
            self.average_response_time = (self.average_response_time * (n - 1) + elapsed_ms) / n

    @property
    def success_rate(self) -> float:
        """Percentage of scraper calls that completed, rounded to one decimal."""
        calls = self.successful_checks + self.failed_checks
        if not calls:
            return 0.0
        return round(self.successful_checks / calls * 100, 1)


@dataclass
class BatchError:
    batch: int
    error: str
    books: list[str | None] = field(default_factory=list)


@dataclass
class BatchReport:
    """Outcome of a batch run: per-book results, failed batches, and run statistics."""

    results: list[BookAvailability] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)
    stats: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [result.to_dict() for result in self.results],
            "errors": [asdict(error) for error in self.errors],
            "stats": dict(self.stats),
        }


class ScraperOrchestrator:
    """Runs every scraper for a book and processes book lists in paced batches.

    Source order in results always follows the scraper mapping, whatever
    order the scrapers finish in.
    """

    def __init__(
        self,
        scrapers: Mapping[str, AvailabilityScraper] | None = None,
        config: OrchestratorConfig | None = None,
    ) -> None:
        self.scrapers: dict[str, AvailabilityScraper] = dict(
            scrapers if scrapers is not None else default_scrapers()
        )
        self.config = config or OrchestratorConfig()
        self.stats = OrchestratorStats()

    async def __aenter__(self) -> "ScraperOrchestrator":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def check_book_availability(self, book: Book) -> BookAvailability:
        """Check one book against every scraper concurrently.

        A scraper that raises is recorded as an error result for its source;
        the other sources are unaffected.
        """
        started = time.monotonic()
        availability = BookAvailability(
            book_id=book.goodreads_id,
            title=book.display_title,
            author=book.author_name,
            last_checked=now_iso(),
        )

        names = list(self.scrapers)
        outcomes = await asyncio.gather(
            *(self._run_scraper(name, book) for name in names), return_exceptions=True
        )
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, Exception):
                availability.sources[name] = AvailabilityResult(
                    error=str(outcome) or type(outcome).__name__,
                    checked_at=now_iso(),
                    source=name,
                )
                self.stats.failed_checks += 1
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                availability.sources[name] = outcome
                self.stats.successful_checks += 1

        self.stats.total_checks += 1
        self.stats.record_response_time((time.monotonic() - started) * 1000)
        return availability

    async def _run_scraper(self, name: str, book: Book) -> AvailabilityResult:
        scraper = self.scrapers[name]
        try:
            result = await scraper.check_availability(book)
        except Exception as exc:
            logger.warning("%s: failed check for %r: %s", name, book.display_title, exc)
            raise
        logger.info("%s: completed check for %r", name, book.display_title)
        return result

    async def check_books_in_batch(
        self,
        books: Sequence[Book],
        *,
        batch_size: int | None = None,
        batch_delay_ms: int | None = None,
        max_concurrent: int | None = None,
    ) -> BatchReport:
        """Check many books in sequential batches of concurrent groups.

        Groups within a batch are separated by ``group_delay_ms`` and batches
        by ``batch_delay_ms``. A failed batch is recorded and the run goes on.
        """
        batch_size = max(1, batch_size or self.config.batch_size)
        batch_delay_ms = (
            self.config.batch_delay_ms if batch_delay_ms is None else batch_delay_ms
        )
        max_concurrent = max(1, max_concurrent or self.config.max_concurrent)

        report = BatchReport()
        total_batches = -(-len(books) // batch_size)
        logger.info(
            "Starting batch availability check for %d books (batch size: %d)",
            len(books),
            batch_size,
        )

        for start in range(0, len(books), batch_size):
            batch = list(books[start : start + batch_size])
            number = start // batch_size + 1
            logger.info("Processing batch %d/%d (%d books)", number, total_batches, len(batch))
            try:
                report.results.extend(await self._process_batch(batch, max_concurrent))
            except Exception as exc:
                logger.warning("Batch %d failed: %s", number, exc)
                report.errors.append(
                    BatchError(
                        batch=number,
                        error=str(exc),
                        books=[book.goodreads_id for book in batch],
                    )
                )
                continue

            if start + batch_size < len(books) and batch_delay_ms > 0:
                logger.info("Waiting %dms before next batch", batch_delay_ms)
                await asyncio.sleep(batch_delay_ms / 1000)

        self.stats.last_batch_time = now_iso()
        report.stats = self.processing_stats(len(books), len(report.results))
        return report

    async def _process_batch(
        self, books: list[Book], max_concurrent: int
    ) -> list[BookAvailability]:
        limit = min(max_concurrent, len(books))
        results: list[BookAvailability] = []
        for start in range(0, len(books), limit):
            group = books[start : start + limit]
            outcomes = await asyncio.gather(
                *(self.check_book_availability(book) for book in group), return_exceptions=True
            )
            for book, outcome in zip(group, outcomes):
                if isinstance(outcome, Exception):
                    results.append(
                        BookAvailability(
                            book_id=book.goodreads_id,
                            title=book.display_title,
                            author=book.author_name,
                            last_checked=now_iso(),
                            error=str(outcome),
                        )
                    )
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    results.append(outcome)

            if start + limit < len(books) and self.config.group_delay_ms > 0:
                await asyncio.sleep(self.config.group_delay_ms / 1000)
        return results

    def processing_stats(self, total_books: int, processed_books: int) -> dict[str, Any]:
        return {
            "total_books": total_books,
            "processed_books": processed_books,
            "success_rate": self.stats.success_rate,
            "average_response_time_ms": round(self.stats.average_response_time),
            "total_scraper_calls": self.stats.total_checks,
            "successful_calls": self.stats.successful_checks,
            "failed_calls": self.stats.failed_checks,
        }

    def orchestrator_status(self) -> str:
        """Healthy when every scraper is, degraded when at least half are."""
        healthy = sum(
            1 for scraper in self.scrapers.values() if scraper.health()["status"] == "healthy"
        )
        total = len(self.scrapers)
        if healthy == total:
            return "healthy"
        if healthy >= total / 2:
            return "degraded"
        return "unhealthy"

    def get_scrapers_health(self) -> dict[str, Any]:
        return {
            "scrapers": {
                name: scraper.service_health() for name, scraper in self.scrapers.items()
            },
            "orchestrator": {
                **asdict(self.stats),
                "status": self.orchestrator_status(),
                "config": {
                    "batch_size": self.config.batch_size,
                    "max_concurrent": self.config.max_concurrent,
                    "batch_delay_ms": self.config.batch_delay_ms,
                },
            },
        }

    def get_scraper(self, name: str) -> AvailabilityScraper | None:
        return self.scrapers.get(name)

    def update_scraper_config(self, name: str, **changes: Any) -> None:
        """Retune a scraper's request settings in place.

        Raises:
            KeyError: If there is no scraper called ``name``.
            ValueError: If a change names a setting the scraper does not have.
        """
        scraper = self.scrapers.get(name)
        if scraper is None:
            raise KeyError(f"Scraper '{name}' not found")
        unknown = [key for key in changes if not hasattr(scraper.config, key)]
        if unknown:
            raise ValueError(f"Unknown settings for {name}: {', '.join(sorted(unknown))}")
        for key, value in changes.items():
            setattr(scraper.config, key, value)
        logger.info("Updated configuration for %s scraper", name)

    def reset_stats(self) -> None:
        self.stats = OrchestratorStats()
        for scraper in self.scrapers.values():
            scraper.reset_stats()

    async def test_all_scrapers(self, sample_book: Book | None = None) -> dict[str, dict[str, Any]]:
        """Run each scraper once against a sample book and time it."""
        book = sample_book or SAMPLE_BOOK
        results: dict[str, dict[str, Any]] = {}
        for name, scraper in self.scrapers.items():
            started = time.monotonic()
            try:
                result = await scraper.check_availability(book)
            except Exception as exc:
                logger.warning("%s: test check failed: %s", name, exc)
                results[name] = {"status": "error", "error": str(exc)}
                continue
            elapsed_ms = round((time.monotonic() - started) * 1000)
            results[name] = {"status": "success", "response_time_ms": elapsed_ms, "result": result}
            logger.info("%s: %dms", name, elapsed_ms)
        return results

    async def aclose(self) -> None:
        for scraper in self.scrapers.values():
            await scraper.aclose()
