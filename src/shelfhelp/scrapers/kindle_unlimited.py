# ABOUTME: Kindle Unlimited scraper over Amazon Kindle store search results.
# ABOUTME: Requires a KU indicator plus a title/author match before claiming availability.

from datetime import date, timedelta

import httpx

from shelfhelp.availability.content import clean_html_text, find_indicators
from shelfhelp.availability.matching import check_author_match, check_title_match
from shelfhelp.availability.types import AvailabilityResult, Book
from shelfhelp.scrapers.base import DETAILS_LENGTH, BaseScraper
from shelfhelp.scrapers.http import ScraperConfig

SEARCH_URL = "https://www.amazon.com/s"
KINDLE_STORE_NODE = "n:133140011"

STRONG_INDICATORS = (
    "kindle unlimited",
    "read for free",
    "available on kindle unlimited",
    "read for $0.00",
    "ku-logo",
    "kindle-unlimited-logo",
)
MEDIUM_INDICATORS = ("unlimited", "read free", "free with kindle unlimited")
WEAK_INDICATORS = ("kindle", "digital")

# Titles usually stay in the KU catalog for six to eighteen months.
ESTIMATED_KU_TERM = timedelta(days=360)
EXPIRY_CONFIDENCE = 0.7
MAX_CONFIDENCE = 0.9


def ku_confidence(
    *, strong: bool, medium: bool, weak: bool, title_match: bool, author_match: bool
) -> float:
    """Scraper-side KU confidence; zero whenever neither title nor author matched."""
    confidence = 0.0
    if strong:
        confidence += 0.4
    elif medium:
        confidence += 0.2
    elif weak:
        confidence += 0.05

    if title_match and author_match:
        confidence += 0.5
    elif title_match or author_match:
        confidence += 0.2

    if strong and title_match and author_match:
        confidence = min(confidence + 0.05, MAX_CONFIDENCE)

    if not title_match and not author_match:
        confidence = 0.0

    # A high score needs a strong indicator behind it.
    if confidence > 0.7 and not strong:
        confidence = max(confidence * 0.6, 0.3)

    return round(confidence, 2)


def parse_ku_response(html: str, book: Book, *, today: date | None = None) -> AvailabilityResult:
    """Interpret an Amazon search page as a KU availability claim."""
    content = clean_html_text(html)

    strong = bool(find_indicators(content, STRONG_INDICATORS))
    medium = bool(find_indicators(content, MEDIUM_INDICATORS))
    weak = bool(find_indicators(content, WEAK_INDICATORS))
    title_match = check_title_match(content, book)
    author_match = check_author_match(content, book)

    content_match = title_match or author_match
    available = (strong or medium) and content_match
    confidence = ku_confidence(
        strong=strong,
        medium=medium,
        weak=weak,
        title_match=title_match,
        author_match=author_match,
    )

    expires_on = None
    if available and confidence >= EXPIRY_CONFIDENCE:
        expires_on = ((today or date.today()) + ESTIMATED_KU_TERM).isoformat()

    return AvailabilityResult(
        available=available,
        confidence=confidence,
        details=content[:DETAILS_LENGTH],
        metadata={"search_content": content},
        ku_availability=available,
        ku_expires_on=expires_on,
        validation_details={
            "strong_indicators": strong,
            "medium_indicators": medium,
            "title_match": title_match,
            "author_match": author_match,
            "content_match": content_match,
        },
    )


class KindleUnlimitedScraper(BaseScraper):
    """Checks Kindle Unlimited availability through the Kindle store search."""

    service_name = "Kindle Unlimited"
    source = "kindle_unlimited_scraper"

    def __init__(
        self,
        config: ScraperConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            config or ScraperConfig(search_url=SEARCH_URL, timeout=15.0, rate_limit_ms=2000),
            transport=transport,
        )

    def search_params(self, query: str) -> dict[str, str]:
        return {"k": query, "i": "digital-text", "rh": KINDLE_STORE_NODE}

    async def _scrape(self, book: Book) -> AvailabilityResult:
        query = self.build_search_query(book)
        html = await self.http.get_text(self.config.search_url, params=self.search_params(query))
        return parse_ku_response(html, book)

    def _failure(self, message: str) -> AvailabilityResult:
        return AvailabilityResult(
            available=False,
            confidence=0.0,
            error=message,
            ku_availability=False,
            ku_expires_on=None,
        )
