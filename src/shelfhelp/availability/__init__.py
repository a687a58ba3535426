# ABOUTME: Availability package: shared records and content helpers.
# ABOUTME: Exports the Book and AvailabilityResult types used by scrapers and validators.

from shelfhelp.availability.types import (
    AvailabilityResult,
    Book,
    BookAvailability,
    Factor,
    LibrarySystemStatus,
    ValidationResult,
)

__all__ = [
    "AvailabilityResult",
    "Book",
    "BookAvailability",
    "Factor",
    "LibrarySystemStatus",
    "ValidationResult",
]
