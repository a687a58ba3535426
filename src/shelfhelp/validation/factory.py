# ABOUTME: Validator factory and multi-service validation suite.
# ABOUTME: Maps service names to rule sets; the suite rejects services it was not built with.

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from shelfhelp.availability.types import AvailabilityResult, Book, ValidationResult
from shelfhelp.validation.base import (
    AvailabilityValidator,
    GenericRules,
    ServiceRules,
    ValidatorConfig,
)
from shelfhelp.validation.hoopla import HooplaRules
from shelfhelp.validation.kindle_unlimited import KindleUnlimitedRules
from shelfhelp.validation.library import LibraryRules


class ValidatorNotFoundError(LookupError):
    """Raised when a ValidationSuite is asked for a service it does not hold."""


_RULES_BY_SERVICE: dict[str, Callable[[], ServiceRules]] = {
    "kindle_unlimited": KindleUnlimitedRules,
    "ku": KindleUnlimitedRules,
    "hoopla": HooplaRules,
    "library": LibraryRules,
    "public_library": LibraryRules,
}


def available_validators() -> list[str]:
    """Service tags with a validator (``availability`` is the generic fallback)."""
    return ["availability", "kindle_unlimited", "hoopla", "library"]


def create_validator(
    service: str, config: ValidatorConfig | None = None
) -> AvailabilityValidator:
    """Build the validator for a service name (case-insensitive).

    Unknown names get the generic pass-through validator; this never raises.
    """
    rules_factory = _RULES_BY_SERVICE.get(service.lower(), GenericRules)
    return AvailabilityValidator(rules=rules_factory(), config=config)


class ValidationSuite:
    """A fixed set of validators keyed by the service names they were built for."""

    def __init__(self, validators: Mapping[str, AvailabilityValidator]) -> None:
        self.validators = dict(validators)

    def validate(
        self,
        service: str,
        result: AvailabilityResult | Mapping[str, Any] | None,
        book: Book | None,
    ) -> ValidationResult:
        """Validate with the validator registered for ``service``.

        Raises:
            ValidatorNotFoundError: If the suite has no validator for ``service``.
        """
        validator = self.validators.get(service)
        if validator is None:
            raise ValidatorNotFoundError(f"No validator found for service: {service}")
        return validator.validate(result, book)

    def get_stats(self) -> dict[str, dict[str, Any]]:
        return {service: validator.get_stats() for service, validator in self.validators.items()}

    def reset_stats(self) -> None:
        for validator in self.validators.values():
            validator.reset_stats()

    def __contains__(self, service: object) -> bool:
        return service in self.validators


def create_validation_suite(
    services: Iterable[str], config: ValidatorConfig | None = None
) -> ValidationSuite:
    """Build a suite with one validator per service name, sharing ``config``."""
    return ValidationSuite({service: create_validator(service, config) for service in services})
