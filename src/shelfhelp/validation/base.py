# ABOUTME: Core availability validator shared by every service.
# ABOUTME: Normalizes confidence, runs a service rule set, applies factors, and keeps stats.

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from shelfhelp.availability.types import (
    AvailabilityResult,
    Book,
    BookRef,
    Factor,
    ValidationMetadata,
    ValidationResult,
)

logger = logging.getLogger(__name__)

MISSING_AVAILABILITY = "Missing availability status"

_GENERIC_FALSE_POSITIVE_PROBABILITY = 0.1


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def adjust_confidence(base: float, factors: list[Factor]) -> float:
    """Apply factors to a base confidence in list order.

    Boosts cap at 1.0 and penalties floor at 0.0. A multiply scales the
    running total left by earlier factors, so order changes the outcome.
    Returns the result rounded to two decimals, always within [0.0, 1.0].
    """
    adjusted = base
    for factor in factors:
        if factor.type == "boost":
            adjusted = min(adjusted + factor.value, 1.0)
        elif factor.type == "penalty":
            adjusted = max(adjusted - factor.value, 0.0)
        elif factor.type == "multiply":
            adjusted = _clamp(adjusted * factor.value)
    return round(_clamp(adjusted), 2)


@dataclass
class ServiceValidation:
    """What a service rule set contributes to a validation."""

    adjusted_confidence: float
    factors: list[Factor] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@runtime_checkable
class ServiceRules(Protocol):
    """Service-specific scoring rules plugged into AvailabilityValidator."""

    @property
    def name(self) -> str: ...

    @property
    def default_min_confidence(self) -> float: ...

    def evaluate(
        self, result: AvailabilityResult, book: Book, confidence: float
    ) -> ServiceValidation: ...

    def false_positive_probability(self, result: AvailabilityResult, book: Book) -> float: ...


class GenericRules:
    """Pass-through rules for services without a dedicated rule set."""

    @property
    def name(self) -> str:
        return "generic"

    @property
    def default_min_confidence(self) -> float:
        return 0.6

    def evaluate(
        self, result: AvailabilityResult, book: Book, confidence: float
    ) -> ServiceValidation:
        return ServiceValidation(adjusted_confidence=confidence)

    def false_positive_probability(self, result: AvailabilityResult, book: Book) -> float:
        return _GENERIC_FALSE_POSITIVE_PROBABILITY


@dataclass
class ValidatorConfig:
    """Per-validator settings. ``min_confidence`` defaults to the service's own."""

    min_confidence: float | None = None
    enable_logging: bool = False


@dataclass
class ValidatorStats:
    """Running pass/fail counters for one validator."""

    validations: int = 0
    passed: int = 0
    failed: int = 0

    def record(self, valid: bool) -> None:
        self.validations += 1
        if valid:
            self.passed += 1
        else:
            self.failed += 1

    @property
    def pass_rate(self) -> float:
        """Percentage of passing validations, rounded to one decimal."""
        if self.validations == 0:
            return 0.0
        return round(self.passed / self.validations * 100, 1)

    def reset(self) -> None:
        self.validations = 0
        self.passed = 0
        self.failed = 0


def _normalize_confidence(value: Any) -> float | None:
    """Clamp a numeric confidence into [0, 1]; None when it is not a usable number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value):
        return None
    return _clamp(float(value))


class AvailabilityValidator:
    """Re-scores scraper results using a pluggable service rule set.

    Scoring is deterministic for identical inputs; only the statistics
    counters change between calls.
    """

    def __init__(
        self,
        rules: ServiceRules | None = None,
        config: ValidatorConfig | None = None,
    ) -> None:
        self.rules: ServiceRules = rules or GenericRules()
        self.config = config or ValidatorConfig()
        self.stats = ValidatorStats()

    @property
    def service(self) -> str:
        return self.rules.name

    @property
    def min_confidence(self) -> float:
        if self.config.min_confidence is not None:
            return self.config.min_confidence
        return self.rules.default_min_confidence

    def validate(
        self,
        result: AvailabilityResult | Mapping[str, Any] | None,
        book: Book | None,
    ) -> ValidationResult:
        """Validate one availability result for a book.

        Args:
            result: The scraper's result, or a JSON-style mapping of one.
            book: The book the result claims to describe.

        Returns:
            A ValidationResult; structural problems land in ``errors``
            rather than raising.
        """
        book = book or Book()
        validation = ValidationResult(
            valid=True,
            confidence=0.0,
            adjusted_confidence=0.0,
            metadata=ValidationMetadata(
                validator=self.service,
                timestamp=_now_iso(),
                book=BookRef(title=book.display_title, author=book.author_name),
            ),
        )

        if isinstance(result, Mapping):
            result = AvailabilityResult.from_dict(result)
        if not isinstance(result, AvailabilityResult):
            validation.valid = False
            validation.errors.append("Invalid result object")
            self.stats.record(False)
            self._log_validation(validation)
            return validation

        confidence = _normalize_confidence(result.confidence)
        if confidence is None:
            validation.warnings.append("Invalid confidence value, defaulting to 0")
            confidence = 0.0
        validation.confidence = confidence
        validation.adjusted_confidence = confidence

        service = self.rules.evaluate(result, book, confidence)
        validation.adjusted_confidence = _clamp(service.adjusted_confidence)
        validation.factors.extend(service.factors)
        validation.warnings.extend(service.warnings)
        validation.errors.extend(service.errors)

        validation.valid = not validation.errors
        self.stats.record(validation.valid)
        self._log_validation(validation)
        return validation

    def adjust_confidence(self, base: float, factors: list[Factor]) -> float:
        return adjust_confidence(base, factors)

    def false_positive_probability(self, result: AvailabilityResult, book: Book) -> float:
        """Diagnostic estimate of how likely a positive claim is wrong."""
        return self.rules.false_positive_probability(result, book)

    def is_confident(self, validation: ValidationResult) -> bool:
        """Whether a validation clears this validator's minimum confidence."""
        return validation.valid and validation.adjusted_confidence >= self.min_confidence

    def get_stats(self) -> dict[str, Any]:
        return {
            "validations": self.stats.validations,
            "passed": self.stats.passed,
            "failed": self.stats.failed,
            "pass_rate": self.stats.pass_rate,
            "timestamp": _now_iso(),
        }

    def reset_stats(self) -> None:
        self.stats.reset()

    def _log_validation(self, validation: ValidationResult) -> None:
        if not self.config.enable_logging:
            return
        level = logging.INFO if validation.valid else logging.WARNING
        logger.log(
            level,
            "%s validation %s: confidence=%.2f adjusted=%.2f factors=%d warnings=%d errors=%d",
            self.service,
            "passed" if validation.valid else "failed",
            validation.confidence,
            validation.adjusted_confidence,
            len(validation.factors),
            len(validation.warnings),
            len(validation.errors),
        )
