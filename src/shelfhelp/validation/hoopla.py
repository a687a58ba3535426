# ABOUTME: Hoopla validation rules.
# ABOUTME: Weighs Hoopla indicators, format and library context, matching, and genre fit.

from shelfhelp.availability.content import extract_content, find_indicators
from shelfhelp.availability.matching import weighted_match_score
from shelfhelp.availability.types import AvailabilityResult, Book, Factor
from shelfhelp.validation.base import (
    MISSING_AVAILABILITY,
    ServiceValidation,
    adjust_confidence,
)

STRONG_INDICATORS = (
    "hoopla",
    "available on hoopla",
    "hoopla digital",
    "borrow from hoopla",
    "hoopla instant",
)
WEAK_INDICATORS = (
    "digital library",
    "library ebook",
    "digital collection",
    "instant access",
)
FALSE_POSITIVE_PATTERNS = (
    "not available",
    "unavailable",
    "coming soon",
    "pre-order",
    "out of stock",
    "temporarily unavailable",
)
FORMAT_INDICATORS = ("ebook", "audiobook", "digital", "streaming")
LIBRARY_PATTERNS = (
    "library card",
    "public library",
    "library system",
    "library network",
)
# Genres where Hoopla's catalog is particularly deep.
STRONG_GENRES = ("romance", "fiction", "mystery", "thriller", "contemporary")

_EXTRA_FIELDS = ("url",)
_TITLE_WEIGHT = 0.7
_AUTHOR_WEIGHT = 0.3
_POOR_MATCH = 0.4
_STRONG_MATCH = 0.8


def matching_genres(book: Book) -> list[str]:
    """Book genres that contain one of Hoopla's strong genres."""
    return [
        genre
        for genre in book.genres
        if any(strong in genre.lower() for strong in STRONG_GENRES)
    ]


class HooplaRules:
    """Validation rules for Hoopla results."""

    @property
    def name(self) -> str:
        return "hoopla"

    @property
    def default_min_confidence(self) -> float:
        return 0.6

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
                Factor.boost(0.25, f"Strong Hoopla indicators found: {', '.join(strong)}")
            )
        elif weak:
            factors.append(
                Factor.penalty(0.15, f"Only weak indicators found: {', '.join(weak)}")
            )

        false_positives = find_indicators(content, FALSE_POSITIVE_PATTERNS)
        if false_positives:
            factors.append(
                Factor.penalty(
                    0.4, f"False positive patterns detected: {', '.join(false_positives)}"
                )
            )

        formats = find_indicators(content, FORMAT_INDICATORS)
        if formats:
            factors.append(Factor.boost(0.1, f"Supported format detected: {formats[0]}"))

        if find_indicators(content, LIBRARY_PATTERNS):
            factors.append(Factor.boost(0.15, "Library context indicators found"))

        match_score = self.match_score(book, content)
        if match_score < _POOR_MATCH:
            factors.append(Factor.penalty(0.25, f"Poor title/author matching: {match_score}"))
        elif match_score > _STRONG_MATCH:
            factors.append(Factor.boost(0.1, f"Strong title/author matching: {match_score}"))

        genres = matching_genres(book)
        if genres:
            factors.append(Factor.boost(0.05, f"Strong genre for Hoopla: {genres[0]}"))

        validation.adjusted_confidence = adjust_confidence(confidence, factors)
        return validation

    def match_score(self, book: Book, content: str) -> float:
        return weighted_match_score(
            content, book, title_weight=_TITLE_WEIGHT, author_weight=_AUTHOR_WEIGHT
        )

    def false_positive_probability(self, result: AvailabilityResult, book: Book) -> float:
        content = extract_content(result, _EXTRA_FIELDS)
        probability = 0.15

        if not find_indicators(content, STRONG_INDICATORS) and find_indicators(
            content, WEAK_INDICATORS
        ):
            probability += 0.25
        if find_indicators(content, FALSE_POSITIVE_PATTERNS):
            probability += 0.35
        if self.match_score(book, content) < _POOR_MATCH:
            probability += 0.25
        if find_indicators(content, LIBRARY_PATTERNS):
            probability -= 0.1

        return round(min(max(probability, 0.05), 0.95), 2)
