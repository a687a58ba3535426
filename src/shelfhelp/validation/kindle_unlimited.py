# ABOUTME: Kindle Unlimited validation rules.
# ABOUTME: Scores KU claims by indicator strength, false-positive cues, pricing, and matching.

from shelfhelp.availability.content import extract_content, find_indicators
from shelfhelp.availability.matching import weighted_match_score
from shelfhelp.availability.types import AvailabilityResult, Book, Factor
from shelfhelp.validation.base import (
    MISSING_AVAILABILITY,
    ServiceValidation,
    adjust_confidence,
)

STRONG_INDICATORS = (
    "kindle unlimited",
    "included with kindle unlimited",
    "read for free",
    "ku eligible",
    "unlimited reading",
)
WEAK_INDICATORS = (
    "kindle edition",
    "available on kindle",
    "digital book",
)
FALSE_POSITIVE_PATTERNS = (
    "not available",
    "out of print",
    "temporarily unavailable",
    "pre-order",
    "coming soon",
)
PRICE_KEYWORDS = ("$0.00", "free", "included")

# Matching score used when no page text was captured: neither boost nor penalty.
NEUTRAL_MATCH_SCORE = 0.5

_TITLE_WEIGHT = 0.6
_AUTHOR_WEIGHT = 0.4
_POOR_MATCH = 0.5
_STRONG_MATCH = 0.8


class KindleUnlimitedRules:
    """Validation rules for Kindle Unlimited results."""

    @property
    def name(self) -> str:
        return "kindle_unlimited"

    @property
    def default_min_confidence(self) -> float:
        return 0.7

    def evaluate(
        self, result: AvailabilityResult, book: Book, confidence: float
    ) -> ServiceValidation:
        validation = ServiceValidation(adjusted_confidence=confidence)
        if result.available is None:
            validation.errors.append(MISSING_AVAILABILITY)
            return validation

        content = extract_content(result)
        factors = validation.factors

        strong = find_indicators(content, STRONG_INDICATORS)
        weak = find_indicators(content, WEAK_INDICATORS)
        if strong:
            factors.append(
                Factor.boost(0.2, f"Strong KU indicators found: {', '.join(strong)}")
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

        pricing_issue = self.pricing_issue(result, content)
        if pricing_issue:
            validation.warnings.append(f"Price validation: {pricing_issue}")
            factors.append(Factor.penalty(0.1, pricing_issue))

        match_score = self.match_score(result, book, content)
        if match_score < _POOR_MATCH:
            factors.append(Factor.penalty(0.2, f"Poor title/author matching: {match_score}"))
        elif match_score > _STRONG_MATCH:
            factors.append(Factor.boost(0.1, f"Strong title/author matching: {match_score}"))

        validation.adjusted_confidence = adjust_confidence(confidence, factors)
        return validation

    def pricing_issue(self, result: AvailabilityResult, content: str) -> str | None:
        """Reason string when a KU claim lacks free/included pricing, else None.

        Skipped entirely when the scraper captured no page text.
        """
        if not result.search_content:
            return None
        if result.available and not find_indicators(content, PRICE_KEYWORDS):
            return "KU availability claimed but no free pricing indicators found"
        return None

    def match_score(self, result: AvailabilityResult, book: Book, content: str) -> float:
        if not result.search_content:
            return NEUTRAL_MATCH_SCORE
        return weighted_match_score(
            content, book, title_weight=_TITLE_WEIGHT, author_weight=_AUTHOR_WEIGHT
        )

    def false_positive_probability(self, result: AvailabilityResult, book: Book) -> float:
        content = extract_content(result)
        probability = 0.1

        if not find_indicators(content, STRONG_INDICATORS) and find_indicators(
            content, WEAK_INDICATORS
        ):
            probability += 0.2
        if find_indicators(content, FALSE_POSITIVE_PATTERNS):
            probability += 0.3
        if self.match_score(result, book, content) < _POOR_MATCH:
            probability += 0.2

        return round(min(probability, 0.9), 2)
