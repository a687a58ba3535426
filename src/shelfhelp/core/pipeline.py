# ABOUTME: End-to-end availability pipeline for one book.
# ABOUTME: Scrapes every service, cross-validates claims, re-scores each source, and summarizes.

import logging
from dataclasses import dataclass, field
from typing import Any

from shelfhelp.availability.types import Book, BookAvailability, ValidationResult
from shelfhelp.scrapers.orchestrator import ScraperOrchestrator
from shelfhelp.validation.factory import ValidationSuite, create_validation_suite
from shelfhelp.validation.framework import ValidationFramework
from shelfhelp.validation.helpers import SummaryReport, generate_summary_report

logger = logging.getLogger(__name__)

# Orchestrator source name -> validator service tag.
SOURCE_VALIDATORS = {
    "kindle_unlimited": "kindle_unlimited",
    "hoopla": "hoopla",
    "libraries": "library",
}


@dataclass
class ValidatedAvailability:
    """A book's cross-validated availability with per-source validations."""

    availability: BookAvailability
    validations: dict[str, ValidationResult] = field(default_factory=dict)
    report: SummaryReport | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "availability": self.availability.to_dict(),
            "validations": {
                source: validation.to_dict() for source, validation in self.validations.items()
            },
            "report": self.report.to_dict() if self.report else None,
        }


async def check_and_validate(
    orchestrator: ScraperOrchestrator,
    book: Book,
    suite: ValidationSuite | None = None,
    framework: ValidationFramework | None = None,
) -> ValidatedAvailability:
    """Check a book on every service and validate what came back.

    Sources that failed (``error`` set) are reported as-is and skipped by
    validation, as are sources with no validator in the suite.
    """
    suite = suite or create_validation_suite(SOURCE_VALIDATORS.values())
    framework = framework or ValidationFramework()

    availability = await orchestrator.check_book_availability(book)
    availability = framework.cross_validate_results(availability)

    validations: dict[str, ValidationResult] = {}
    for source, result in availability.sources.items():
        if result.error:
            logger.debug("Skipping validation of %s: %s", source, result.error)
            continue
        service = SOURCE_VALIDATORS.get(source, source)
        if service not in suite:
            continue
        validations[source] = suite.validate(service, result, book)

    return ValidatedAvailability(
        availability=availability,
        validations=validations,
        report=generate_summary_report(list(validations.values())),
    )
