# ABOUTME: Scraper-result validation framework and multi-source cross-validation.
# ABOUTME: Reduces false positives per source and reconciles positive claims by consensus.

import logging
from dataclasses import dataclass, field, replace

from shelfhelp.availability.types import AvailabilityResult, BookAvailability

logger = logging.getLogger(__name__)

LOW_CONSENSUS_WARNING = "Low consensus with other sources"


@dataclass
class FrameworkConfig:
    min_confidence_threshold: float = 0.3
    high_confidence_threshold: float = 0.7
    enable_cross_validation: bool = True
    consensus_threshold: float = 0.6
    consensus_boost: float = 1.1
    consensus_cap: float = 0.95
    dissent_factor: float = 0.8
    dissent_floor: float = 0.1


@dataclass
class FrameworkValidation:
    """False-positive screening of one scraper result."""

    is_valid: bool
    confidence: float
    adjusted_confidence: float
    warnings: list[str] = field(default_factory=list)
    false_positive_risk: str = "low"


@dataclass
class ValidationOverview:
    total_sources: int = 0
    validated_sources: int = 0
    high_confidence_sources: int = 0
    warnings: list[str] = field(default_factory=list)
    false_positive_risk: str = "low"


def _confidence_of(result: AvailabilityResult) -> float:
    value = result.confidence
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def is_availability_claim(result: AvailabilityResult, source: str) -> bool:
    """Whether a source's result asserts the book can be obtained there."""
    if source == "kindle_unlimited":
        return result.ku_availability is True
    if source == "hoopla":
        return bool(result.hoopla_ebook_available or result.hoopla_audio_available)
    if source == "libraries":
        systems = result.library_availability or {}
        return any(system.has_available_format for system in systems.values())
    return False


class ValidationFramework:
    """Unified confidence scoring and cross-source consistency checks."""

    def __init__(self, config: FrameworkConfig | None = None) -> None:
        self.config = config or FrameworkConfig()

    def calculate_unified_confidence(
        self,
        *,
        strong_indicators: int = 0,
        medium_indicators: int = 0,
        weak_indicators: int = 0,
        title_match: bool = False,
        author_match: bool = False,
        content_quality: float = 1.0,
        source_reliability: float = 1.0,
    ) -> float:
        """Service-independent confidence from indicator counts and content matches.

        Without any title or author match the confidence is zero regardless of
        indicators; a full match with a strong indicator is capped at 0.95.
        """
        if not title_match and not author_match:
            return 0.0

        confidence = strong_indicators * 0.3 * source_reliability
        confidence += medium_indicators * 0.15 * source_reliability
        confidence += weak_indicators * 0.05 * source_reliability

        if title_match and author_match:
            confidence += 0.4 * content_quality
        else:
            confidence += 0.2 * content_quality

        if title_match and author_match and strong_indicators > 0:
            confidence = min(confidence + 0.1, 0.95)

        return round(confidence, 2)

    def validate_availability_result(
        self, result: AvailabilityResult, scraper_type: str
    ) -> FrameworkValidation:
        """Screen one scraper result for false-positive risk.

        ``scraper_type`` is the orchestrator source name (``kindle_unlimited``,
        ``hoopla``, ``libraries``/``library``).
        """
        confidence = _confidence_of(result)
        validation = FrameworkValidation(
            is_valid=False, confidence=confidence, adjusted_confidence=0.0
        )

        if confidence < self.config.min_confidence_threshold:
            validation.warnings.append("Below minimum confidence threshold")
            validation.false_positive_risk = "high"

        if scraper_type == "kindle_unlimited":
            adjusted = self._validate_ku(result, validation)
        elif scraper_type == "hoopla":
            adjusted = self._validate_hoopla(result, validation)
        elif scraper_type in ("libraries", "library"):
            adjusted = self._validate_library(result, validation)
        else:
            adjusted = confidence

        validation.adjusted_confidence = round(adjusted, 2)
        validation.is_valid = (
            validation.adjusted_confidence >= self.config.min_confidence_threshold
        )
        if validation.adjusted_confidence != round(confidence, 2):
            validation.warnings.append("Confidence adjusted for false positive reduction")
        return validation

    def _validate_ku(self, result: AvailabilityResult, validation: FrameworkValidation) -> float:
        adjusted = validation.confidence
        details = result.validation_details

        if result.ku_availability and validation.confidence > 0.8:
            if not details.get("strong_indicators"):
                adjusted *= 0.7
                validation.warnings.append("High confidence without strong KU indicators")
            if not details.get("title_match") or not details.get("author_match"):
                adjusted *= 0.6
                validation.warnings.append(
                    "Incomplete content matching for high confidence claim"
                )

        if result.ku_availability and not details.get("content_match"):
            adjusted = 0.0
            validation.warnings.append("No content match - likely false positive")
            validation.false_positive_risk = "very high"

        return adjusted

    def _validate_hoopla(
        self, result: AvailabilityResult, validation: FrameworkValidation
    ) -> float:
        adjusted = validation.confidence
        if not (result.hoopla_ebook_available or result.hoopla_audio_available):
            return adjusted

        formats = result.format_details
        if formats:
            best = max(
                (formats.get(name) or {}).get("confidence", 0.0)
                for name in ("ebook", "audiobook")
            )
            if best < self.config.min_confidence_threshold:
                adjusted = best
                validation.warnings.append("Format-specific confidence below threshold")
        return adjusted

    def _validate_library(
        self, result: AvailabilityResult, validation: FrameworkValidation
    ) -> float:
        adjusted = validation.confidence
        systems = result.library_availability or {}
        confidences = [
            system.confidence
            for system in systems.values()
            if system.has_available_format and system.confidence is not None
        ]
        if not confidences:
            return adjusted

        average = sum(confidences) / len(confidences)
        if abs(validation.confidence - average) > 0.3:
            adjusted = min(validation.confidence, average + 0.1)
            validation.warnings.append("Confidence inconsistency across library systems")
        return adjusted

    def cross_validate_results(self, availability: BookAvailability) -> BookAvailability:
        """Reconcile positive claims from several sources by consensus.

        Only engaged when more than one source claims availability. Returns
        a new BookAvailability; the input and its results are left untouched.
        """
        claims = [
            source
            for source, result in availability.sources.items()
            if is_availability_claim(result, source)
        ]
        if not self.config.enable_cross_validation or len(claims) < 2:
            return availability

        confidences = [
            _confidence_of(availability.sources[source])
            for source in claims
            if _confidence_of(availability.sources[source]) > 0
        ]
        if not confidences:
            return availability

        average = sum(confidences) / len(confidences)
        sources = dict(availability.sources)
        for source in claims:
            result = sources[source]
            confidence = _confidence_of(result)
            if not confidence:
                continue
            if average >= self.config.consensus_threshold:
                sources[source] = replace(
                    result,
                    confidence=round(
                        min(confidence * self.config.consensus_boost, self.config.consensus_cap),
                        2,
                    ),
                    cross_validated=True,
                )
            else:
                sources[source] = replace(
                    result,
                    confidence=round(
                        max(confidence * self.config.dissent_factor, self.config.dissent_floor),
                        2,
                    ),
                    cross_validation_warning=LOW_CONSENSUS_WARNING,
                )

        logger.debug(
            "Cross-validated %d claims for %r (mean confidence %.2f)",
            len(claims),
            availability.title,
            average,
        )
        return replace(availability, sources=sources)

    def generate_validation_summary(self, availability: BookAvailability) -> ValidationOverview:
        """Screen every source of a book check and roll up the risk picture."""
        overview = ValidationOverview(total_sources=len(availability.sources))
        for source, result in availability.sources.items():
            validation = self.validate_availability_result(result, source)
            if validation.is_valid:
                overview.validated_sources += 1
            if validation.adjusted_confidence >= self.config.high_confidence_threshold:
                overview.high_confidence_sources += 1
            overview.warnings.extend(validation.warnings)
            if validation.false_positive_risk in ("high", "very high"):
                overview.false_positive_risk = validation.false_positive_risk
        return overview
