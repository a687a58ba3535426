# ABOUTME: Public library catalog validation rules.
# ABOUTME: Accounts for holds and wait times, shelf status, and exact catalog metadata.

from shelfhelp.availability.content import extract_content, find_indicators
from shelfhelp.availability.matching import weighted_match_score
from shelfhelp.availability.types import AvailabilityResult, Book, Factor
from shelfhelp.validation.base import (
    MISSING_AVAILABILITY,
    ServiceValidation,
    adjust_confidence,
)

STRONG_INDICATORS = (
    "available",
    "in stock",
    "on shelf",
    "available now",
    "check out",
    "borrow",
    "reserve",
)
WEAK_INDICATORS = ("library", "catalog", "collection", "branch", "location")
FALSE_POSITIVE_PATTERNS = (
    "not available",
    "unavailable",
    "checked out",
    "on hold",
    "waiting list",
    "reserve",
    "coming soon",
    "on order",
    "processing",
)
WAIT_TIME_INDICATORS = ("hold", "waiting", "queue", "estimated wait", "next available")
FORMAT_INDICATORS = ("book", "ebook", "audiobook", "large print", "digital", "physical")
IMMEDIATE_INDICATORS = ("available now", "on shelf", "in stock", "check out")
FUTURE_INDICATORS = ("on order", "coming soon", "processing")

_EXTRA_FIELDS = ("status",)
# Catalog records carry exact metadata, so title and author count equally.
_TITLE_WEIGHT = 0.5
_AUTHOR_WEIGHT = 0.5
_POOR_MATCH = 0.4
_STRONG_MATCH = 0.8


class LibraryRules:
    """Validation rules for public library catalog results."""

    @property
    def name(self) -> str:
        return "library"

    @property
    def default_min_confidence(self) -> float:
        return 0.5

    def evaluate(
        self, result: AvailabilityResult, book: Book, confidence: float
    ) -> ServiceValidation:
        validation = ServiceValidation(adjusted_confidence=confidence)
        if result.available is None:
            validation.errors.append(MISSING_AVAILABILITY)
            return validation

        content = extract_content(result, _EXTRA_FIELDS)
        factors = validation.factors

        strong = find_indicators(content, STRONG_INDICATORS)
        weak = find_indicators(content, WEAK_INDICATORS)
        if strong:
            factors.append(
                Factor.boost(0.2, f"Strong library indicators found: {', '.join(strong)}")
            )
        elif weak:
            factors.append(
                Factor.penalty(0.1, f"Only weak indicators found: {', '.join(weak)}")
            )

        false_positives = find_indicators(content, FALSE_POSITIVE_PATTERNS)
        if false_positives:
            factors.append(
                Factor.penalty(
                    0.3, f"False positive patterns detected: {', '.join(false_positives)}"
                )
            )

        wait_time = find_indicators(content, WAIT_TIME_INDICATORS)
        if wait_time:
            wait_info = ", ".join(wait_time)
            factors.append(Factor.penalty(0.2, f"Wait time detected: {wait_info}"))
            validation.warnings.append(f"Book may have wait time: {wait_info}")

        formats = find_indicators(content, FORMAT_INDICATORS)
        if formats:
            factors.append(Factor.boost(0.05, f"Format detected: {formats[0]}"))

        match_score = self.match_score(book, content)
        if match_score < _POOR_MATCH:
            factors.append(Factor.penalty(0.25, f"Poor title/author matching: {match_score}"))
        elif match_score > _STRONG_MATCH:
            factors.append(Factor.boost(0.1, f"Strong title/author matching: {match_score}"))

        if find_indicators(content, IMMEDIATE_INDICATORS):
            factors.append(Factor.boost(0.15, "Immediate availability confirmed"))
        elif find_indicators(content, FUTURE_INDICATORS):
            factors.append(Factor.boost(0.05, "Future availability confirmed"))

        validation.adjusted_confidence = adjust_confidence(confidence, factors)
        return validation

    def match_score(self, book: Book, content: str) -> float:
        return weighted_match_score(
            content, book, title_weight=_TITLE_WEIGHT, author_weight=_AUTHOR_WEIGHT
        )

    def false_positive_probability(self, result: AvailabilityResult, book: Book) -> float:
        content = extract_content(result, _EXTRA_FIELDS)
        probability = 0.2

        if not find_indicators(content, STRONG_INDICATORS) and find_indicators(
            content, WEAK_INDICATORS
        ):
            probability += 0.2
        if find_indicators(content, FALSE_POSITIVE_PATTERNS):
            probability += 0.3
        if self.match_score(book, content) < _POOR_MATCH:
            probability += 0.2
        if find_indicators(content, WAIT_TIME_INDICATORS):
            probability += 0.15

        return round(min(max(probability, 0.1), 0.9), 2)
