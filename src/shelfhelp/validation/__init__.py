# ABOUTME: Validation package: per-service validators, suites, reports, and cross-validation.
# ABOUTME: Re-exports the factory entry points used by the pipeline and CLI.

from shelfhelp.validation.base import (
    AvailabilityValidator,
    GenericRules,
    ServiceRules,
    ValidatorConfig,
    adjust_confidence,
)
from shelfhelp.validation.factory import (
    ValidationSuite,
    ValidatorNotFoundError,
    available_validators,
    create_validation_suite,
    create_validator,
)
from shelfhelp.validation.framework import FrameworkConfig, ValidationFramework
from shelfhelp.validation.helpers import (
    SummaryReport,
    calculate_overall_confidence,
    generate_summary_report,
    merge_validation_factors,
)

__all__ = [
    "AvailabilityValidator",
    "FrameworkConfig",
    "GenericRules",
    "ServiceRules",
    "SummaryReport",
    "ValidationFramework",
    "ValidationSuite",
    "ValidatorConfig",
    "ValidatorNotFoundError",
    "adjust_confidence",
    "available_validators",
    "calculate_overall_confidence",
    "create_validation_suite",
    "create_validator",
    "generate_summary_report",
    "merge_validation_factors",
]
