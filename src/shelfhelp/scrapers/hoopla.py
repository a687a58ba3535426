# ABOUTME: Hoopla scraper over the public Hoopla Digital search page.
# ABOUTME: Scores ebook and audiobook formats separately; overall confidence is the better one.

import re
from dataclasses import asdict, dataclass, field
from typing import Any

import httpx

from shelfhelp.availability.content import clean_html_text, find_indicators
from shelfhelp.availability.matching import check_author_match, check_title_match
from shelfhelp.availability.types import AvailabilityResult, Book
from shelfhelp.scrapers.base import DETAILS_LENGTH, BaseScraper
from shelfhelp.scrapers.http import ScraperConfig

SEARCH_URL = "https://www.hoopladigital.com/search"
SUPPORTED_FORMATS = ("ebook", "audiobook")


@dataclass(frozen=True)
class FormatIndicators:
    strong: tuple[str, ...]
    medium: tuple[str, ...]
    patterns: tuple[re.Pattern[str], ...]


EBOOK_INDICATORS = FormatIndicators(
    strong=("ebook", "digital book", "epub", "pdf book", "kindle book"),
    medium=("book", "digital", "electronic book"),
    patterns=(
        re.compile(r"ebook\s*available", re.IGNORECASE),
        re.compile(r"digital\s*book", re.IGNORECASE),
        re.compile(r"read\s*online", re.IGNORECASE),
    ),
)
AUDIOBOOK_INDICATORS = FormatIndicators(
    strong=("audiobook", "audio book", "narrated by", "listen online", "audio edition"),
    medium=("audio", "listen", "narrator", "mp3"),
    patterns=(
        re.compile(r"audiobook\s*available", re.IGNORECASE),
        re.compile(r"listen\s*online", re.IGNORECASE),
        re.compile(r"audio\s*edition", re.IGNORECASE),
    ),
)


@dataclass
class FormatAvailability:
    """Availability evidence for one Hoopla format."""

    available: bool
    confidence: float
    strong: list[str] = field(default_factory=list)
    medium: list[str] = field(default_factory=list)
    patterns: int = 0
    title_match: bool = False
    author_match: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def format_confidence(
    *, strong: int, medium: int, patterns: int, title_match: bool, author_match: bool
) -> float:
    confidence = 0.0
    if strong:
        confidence += 0.4
    elif medium:
        confidence += 0.2

    if patterns:
        confidence += 0.2

    if title_match and author_match:
        confidence += 0.3
    elif title_match or author_match:
        confidence += 0.1

    if strong and title_match and author_match:
        confidence = min(confidence + 0.1, 1.0)

    if not title_match and not author_match:
        confidence = max(confidence - 0.2, 0.0)

    return round(confidence, 2)


def check_format(content: str, book: Book, indicators: FormatIndicators) -> FormatAvailability:
    """Whether one format is offered: needs a strong or pattern hit and a content match."""
    strong = find_indicators(content, indicators.strong)
    medium = find_indicators(content, indicators.medium)
    patterns = sum(1 for pattern in indicators.patterns if pattern.search(content))
    title_match = check_title_match(content, book)
    author_match = check_author_match(content, book)

    return FormatAvailability(
        available=bool(strong or patterns) and (title_match or author_match),
        confidence=format_confidence(
            strong=len(strong),
            medium=len(medium),
            patterns=patterns,
            title_match=title_match,
            author_match=author_match,
        ),
        strong=strong,
        medium=medium,
        patterns=patterns,
        title_match=title_match,
        author_match=author_match,
    )


def parse_hoopla_response(html: str, book: Book) -> AvailabilityResult:
    """Interpret a Hoopla search page as ebook and audiobook availability."""
    content = clean_html_text(html)
    ebook = check_format(content, book, EBOOK_INDICATORS)
    audiobook = check_format(content, book, AUDIOBOOK_INDICATORS)

    return AvailabilityResult(
        available=ebook.available or audiobook.available,
        confidence=max(ebook.confidence, audiobook.confidence),
        details=content[:DETAILS_LENGTH],
        metadata={"search_content": content},
        hoopla_ebook_available=ebook.available,
        hoopla_audio_available=audiobook.available,
        format_details={"ebook": ebook.to_dict(), "audiobook": audiobook.to_dict()},
    )


class HooplaScraper(BaseScraper):
    """Checks Hoopla Digital for ebook and audiobook editions."""

    service_name = "Hoopla Digital"
    source = "hoopla_scraper"

    def __init__(
        self,
        config: ScraperConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            config or ScraperConfig(search_url=SEARCH_URL, timeout=10.0, rate_limit_ms=1500),
            transport=transport,
        )

    def search_params(self, query: str) -> dict[str, str]:
        return {"q": query, "type": "ebooks,audiobooks"}

    async def _scrape(self, book: Book) -> AvailabilityResult:
        query = self.build_search_query(book)
        html = await self.http.get_text(self.config.search_url, params=self.search_params(query))
        return parse_hoopla_response(html, book)

    def _failure(self, message: str) -> AvailabilityResult:
        return AvailabilityResult(
            available=False,
            confidence=0.0,
            error=message,
            hoopla_ebook_available=False,
            hoopla_audio_available=False,
        )

    def service_health(self) -> dict[str, Any]:
        return {**super().service_health(), "supported_formats": list(SUPPORTED_FORMATS)}
