# ABOUTME: Integration tests for the scrape, cross-validate, and validate pipeline.
# ABOUTME: Real scrapers and orchestrator run against canned pages via a mock transport.

import asyncio

from shelfhelp.availability.types import Book
from shelfhelp.core.pipeline import ValidatedAvailability, check_and_validate
from tests.fixtures.pages import (
    HOOPLA_EBOOK_PAGE,
    KU_AVAILABLE_PAGE,
    LIBRARY_AVAILABLE_PAGE,
    LIBRARY_HOLD_PAGE,
)


def _check(build, pages: dict[str, str], book: Book) -> ValidatedAvailability:
    async def run() -> ValidatedAvailability:
        async with build(pages) as orchestrator:
            return await check_and_validate(orchestrator, book)

    return asyncio.run(run())


class TestAvailabilityPipeline:
    """End-to-end checks for one book."""

    def test_all_sources_agree(self, evelyn_hugo: Book, pages_orchestrator) -> None:
        """Three positive claims are cross-validated and each validated."""
        checked = _check(
            pages_orchestrator,
            {
                "ku.test": KU_AVAILABLE_PAGE,
                "hoopla.test": HOOPLA_EBOOK_PAGE,
                "seattle.overdrive.com": LIBRARY_AVAILABLE_PAGE,
                "camellia.overdrive.com": LIBRARY_HOLD_PAGE,
            },
            evelyn_hugo,
        )

        sources = checked.availability.sources
        assert list(sources) == ["kindle_unlimited", "hoopla", "libraries"]
        assert all(result.cross_validated for result in sources.values())
        assert sources["kindle_unlimited"].confidence == 0.95
        systems = sources["libraries"].library_availability
        assert systems["tuscaloosa_public"].ebook_status == "Error"
        assert systems["camellia_net"].ebook_status == "On Hold"

        assert set(checked.validations) == {"kindle_unlimited", "hoopla", "libraries"}
        assert checked.validations["libraries"].metadata.validator == "library"
        assert checked.validations["kindle_unlimited"].adjusted_confidence == 1.0
        assert checked.report.summary.validation_rate == "100.0"

    def test_failed_source_is_not_validated(
        self, evelyn_hugo: Book, pages_orchestrator
    ) -> None:
        """A source that errored is reported but skipped by validation."""
        checked = _check(
            pages_orchestrator,
            {
                "hoopla.test": HOOPLA_EBOOK_PAGE,
                "seattle.overdrive.com": LIBRARY_AVAILABLE_PAGE,
            },
            evelyn_hugo,
        )

        ku = checked.availability.sources["kindle_unlimited"]
        assert "HTTP 404" in ku.error
        assert ku.ku_availability is False
        assert set(checked.validations) == {"hoopla", "libraries"}
        assert checked.report.summary.total == 2

    def test_single_claim_is_not_cross_validated(
        self, evelyn_hugo: Book, pages_orchestrator
    ) -> None:
        """With only one positive source the confidences are left alone."""
        checked = _check(pages_orchestrator, {"ku.test": KU_AVAILABLE_PAGE}, evelyn_hugo)

        ku = checked.availability.sources["kindle_unlimited"]
        assert ku.cross_validated is False
        assert ku.confidence == 0.9

    def test_serializes_to_plain_data(self, evelyn_hugo: Book, pages_orchestrator) -> None:
        """to_dict yields availability, validations, and the report."""
        checked = _check(pages_orchestrator, {"ku.test": KU_AVAILABLE_PAGE}, evelyn_hugo)
        data = checked.to_dict()

        assert data["availability"]["title"] == "The Seven Husbands of Evelyn Hugo"
        assert set(data["validations"]) == {"kindle_unlimited", "libraries"}
        assert data["report"]["summary"]["total"] == 2
