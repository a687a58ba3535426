# ABOUTME: Title/author matching against scraped page content.
# ABOUTME: Provides word-overlap scores for validators and match gates for scrapers.

import math

from shelfhelp.availability.types import Book

# Match gates used by scrapers: fraction of significant words that must appear.
TITLE_MATCH_THRESHOLD = 0.6
AUTHOR_MATCH_THRESHOLD = 0.7

_MIN_WORD_LENGTH = 3

STOP_WORDS = frozenset(
    {
        "the", "and", "for", "are", "but", "not", "you", "all", "can", "had",
        "her", "was", "one", "our", "out", "day", "get", "has", "him", "his",
        "how", "man", "new", "now", "old", "see", "two", "way", "who", "its",
        "said", "each", "make", "most", "over", "some", "time", "very", "what",
        "with", "have", "from", "they", "know", "want", "been", "good", "much",
        "when", "come", "here", "just", "like", "long", "many", "such", "take",
        "than", "them", "well", "were",
    }
)


def significant_words(text: str | None, *, drop_stop_words: bool = False) -> list[str]:
    """Lower-cased words longer than two characters, optionally without stop words."""
    if not text:
        return []
    words = [word for word in text.lower().split() if len(word) >= _MIN_WORD_LENGTH]
    if drop_stop_words:
        words = [word for word in words if word not in STOP_WORDS]
    return words


def word_overlap(words: list[str], content: str) -> float:
    """Fraction of words that occur as substrings of content (0.0 for no words)."""
    if not words:
        return 0.0
    matched = sum(1 for word in words if word in content)
    return matched / len(words)


def weighted_match_score(
    content: str, book: Book, *, title_weight: float, author_weight: float
) -> float:
    """Weighted title/author word overlap, rounded to two decimals."""
    title_score = word_overlap(significant_words(book.display_title), content)
    author_score = word_overlap(significant_words(book.author_name), content)
    return round(title_score * title_weight + author_score * author_weight, 2)


def _meets_threshold(words: list[str], content: str, threshold: float) -> bool:
    if not words:
        return False
    matched = sum(1 for word in words if word in content)
    return matched >= math.ceil(len(words) * threshold)


def check_title_match(content: str, book: Book) -> bool:
    """Whether enough non-stop-word title words appear in the content."""
    words = significant_words(book.display_title, drop_stop_words=True)
    return _meets_threshold(words, content, TITLE_MATCH_THRESHOLD)


def check_author_match(content: str, book: Book) -> bool:
    """Whether enough author name words appear in the content."""
    words = significant_words(book.author_name)
    return _meets_threshold(words, content, AUTHOR_MATCH_THRESHOLD)
