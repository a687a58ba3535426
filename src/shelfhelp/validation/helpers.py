# ABOUTME: Aggregation helpers over multiple validation results.
# ABOUTME: Computes overall confidence, merges factors, and builds the summary report.

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from shelfhelp.availability.types import Factor, ValidationResult


@dataclass
class ValidationSummary:
    total: int
    valid: int
    invalid: int
    overall_confidence: float
    validation_rate: str


@dataclass
class SummaryReport:
    """Combined view of a batch of validations for the API layer."""

    summary: ValidationSummary
    factors: list[Factor] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    timestamp: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the report's camelCase summary keys."""
        return {
            "summary": {
                "total": self.summary.total,
                "valid": self.summary.valid,
                "invalid": self.summary.invalid,
                "overallConfidence": self.summary.overall_confidence,
                "validationRate": self.summary.validation_rate,
            },
            "factors": [asdict(factor) for factor in self.factors],
            "warnings": list(self.warnings),
            "errors": list(self.errors),
            "timestamp": self.timestamp,
        }


def calculate_overall_confidence(results: list[ValidationResult]) -> float:
    """Mean adjusted confidence of the valid results; 0.0 when none are valid."""
    valid = [result for result in results if result.valid]
    if not valid:
        return 0.0
    total = sum(result.adjusted_confidence for result in valid)
    return round(total / len(valid), 2)


def merge_validation_factors(results: list[ValidationResult]) -> list[Factor]:
    """All factors across results, each tagged with the validator that produced it."""
    merged: list[Factor] = []
    for result in results:
        merged.extend(
            replace(factor, validator=result.metadata.validator) for factor in result.factors
        )
    return merged


def generate_summary_report(results: list[ValidationResult]) -> SummaryReport:
    """Summarize validations: counts, overall confidence, and collected messages.

    ``validation_rate`` is a percentage string with one decimal place
    (e.g. ``"66.7"``).
    """
    total = len(results)
    valid = sum(1 for result in results if result.valid)
    rate = valid / total * 100 if total else 0.0

    warnings: list[str] = []
    errors: list[str] = []
    for result in results:
        warnings.extend(result.warnings)
        errors.extend(result.errors)

    return SummaryReport(
        summary=ValidationSummary(
            total=total,
            valid=valid,
            invalid=total - valid,
            overall_confidence=calculate_overall_confidence(results),
            validation_rate=f"{rate:.1f}",
        ),
        factors=merge_validation_factors(results),
        warnings=warnings,
        errors=errors,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
