# ABOUTME: Content extraction for availability pattern search.
# ABOUTME: Flattens fetched HTML and result fields into a single lower-cased string.

import re
from collections.abc import Iterable

from bs4 import BeautifulSoup

from shelfhelp.availability.types import AvailabilityResult

_WHITESPACE_RE = re.compile(r"\s+")

# Result attributes every validator searches, in order.
_BASE_FIELDS = ("details", "search_content", "source")


def clean_html_text(html: str | bytes | None) -> str:
    """Strip scripts, styles, and tags from HTML and return lower-cased flat text."""
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for element in soup(["script", "style"]):
        element.decompose()

    text = soup.get_text(separator=" ")
    return _WHITESPACE_RE.sub(" ", text).strip().lower()


def extract_content(
    result: AvailabilityResult, extra_fields: Iterable[str] = ()
) -> str:
    """Join the searchable fields of a result into one lower-cased string.

    Always includes details, the captured search content, and the source
    tag; ``extra_fields`` names additional attributes (e.g. ``url``).
    """
    parts: list[str] = []
    for name in (*_BASE_FIELDS, *extra_fields):
        if name == "search_content":
            value = result.search_content
        else:
            value = getattr(result, name, None)
        if value:
            parts.append(str(value))
    return " ".join(parts).lower()


def find_indicators(content: str, indicators: Iterable[str]) -> list[str]:
    """Indicators (in table order) that occur as substrings of the content."""
    return [indicator for indicator in indicators if indicator in content]
