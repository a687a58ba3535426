# ABOUTME: Core data structures for availability checking and validation.
# ABOUTME: Book is the input record; AvailabilityResult flows from scrapers to validators.

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Literal

FactorType = Literal["boost", "penalty", "multiply"]


@dataclass
class Book:
    """A reading-list entry as supplied by the book store.

    Every field is optional: scrapers and validators degrade to zero or
    neutral confidence when title or author is missing instead of raising.
    """

    title: str | None = None
    book_title: str | None = None
    author_name: str | None = None
    genres: list[str] = field(default_factory=list)
    isbn: str | None = None
    goodreads_id: str | None = None

    @property
    def display_title(self) -> str | None:
        """The parsed book_title when present, otherwise the raw title."""
        return self.book_title or self.title

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Book":
        """Build a Book from a store record, ignoring unknown keys.

        Single-valued ``genre``/``subgenre`` fields are folded into ``genres``.
        """
        genres = [str(g) for g in data.get("genres") or []]
        for key in ("genre", "subgenre"):
            value = data.get(key)
            if isinstance(value, str) and value and value not in genres:
                genres.append(value)

        goodreads_id = data.get("goodreads_id")
        return cls(
            title=data.get("title"),
            book_title=data.get("book_title"),
            author_name=data.get("author_name"),
            genres=genres,
            isbn=data.get("isbn"),
            goodreads_id=str(goodreads_id) if goodreads_id is not None else None,
        )


@dataclass
class LibrarySystemStatus:
    """Availability of a book in one library catalog system."""

    name: str
    ebook_status: str
    audio_status: str
    confidence: float | None = None
    details: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def has_available_format(self) -> bool:
        return self.ebook_status == "Available" or self.audio_status == "Available"


def _system_from_dict(key: str, value: Mapping[str, Any]) -> LibrarySystemStatus:
    details = value.get("details")
    return LibrarySystemStatus(
        name=value.get("name", key),
        ebook_status=value.get("ebook_status", "Unknown"),
        audio_status=value.get("audio_status", "Unknown"),
        confidence=value.get("confidence"),
        details=dict(details) if isinstance(details, Mapping) else {},
        error=value.get("error"),
    )


@dataclass
class AvailabilityResult:
    """A single service's availability claim for a book.

    Created fresh by a scraper and treated as immutable afterwards; any
    adjustment (e.g. cross-validation) produces a new instance via
    ``dataclasses.replace``.
    """

    available: bool | None = None
    confidence: Any = 0.0
    details: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    source: str | None = None
    url: str | None = None
    status: str | None = None
    error: str | None = None
    checked_at: str | None = None

    ku_availability: bool | None = None
    ku_expires_on: str | None = None

    hoopla_ebook_available: bool | None = None
    hoopla_audio_available: bool | None = None
    format_details: dict[str, Any] | None = None

    library_availability: dict[str, LibrarySystemStatus] | None = None

    validation_details: dict[str, Any] = field(default_factory=dict)
    cross_validated: bool = False
    cross_validation_warning: str | None = None

    @property
    def search_content(self) -> str | None:
        """Raw page text captured by the scraper, if any."""
        content = self.metadata.get("search_content")
        return content if content else None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AvailabilityResult":
        """Build a result from a JSON-style mapping.

        Accepts the camelCase ``metadata.searchContent`` key used by the
        API layer as well as ``search_content``.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {key: value for key, value in data.items() if key in known}

        raw_metadata = data.get("metadata")
        metadata = dict(raw_metadata) if isinstance(raw_metadata, Mapping) else {}
        if "searchContent" in metadata and "search_content" not in metadata:
            metadata["search_content"] = metadata.pop("searchContent")
        kwargs["metadata"] = metadata

        # Malformed entries count as systems that were never checked.
        systems = data.get("library_availability")
        if isinstance(systems, Mapping):
            kwargs["library_availability"] = {
                key: (
                    value
                    if isinstance(value, LibrarySystemStatus)
                    else _system_from_dict(key, value)
                )
                for key, value in systems.items()
                if isinstance(value, (LibrarySystemStatus, Mapping))
            }
        else:
            kwargs.pop("library_availability", None)

        for key in ("validation_details", "format_details"):
            if key in kwargs and not isinstance(kwargs[key], Mapping):
                del kwargs[key]
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict, dropping unset fields."""
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass
class Factor:
    """A typed confidence adjustment produced by a validation rule."""

    type: FactorType
    value: float
    reason: str
    validator: str | None = None

    @classmethod
    def boost(cls, value: float, reason: str) -> "Factor":
        return cls(type="boost", value=value, reason=reason)

    @classmethod
    def penalty(cls, value: float, reason: str) -> "Factor":
        return cls(type="penalty", value=value, reason=reason)

    @classmethod
    def multiply(cls, value: float, reason: str) -> "Factor":
        return cls(type="multiply", value=value, reason=reason)


@dataclass
class BookRef:
    """Title/author snapshot recorded alongside a validation."""

    title: str | None = None
    author: str | None = None


@dataclass
class ValidationMetadata:
    validator: str
    timestamp: str
    book: BookRef = field(default_factory=BookRef)


@dataclass
class ValidationResult:
    """Outcome of re-scoring one AvailabilityResult.

    ``valid`` is False exactly when ``errors`` is non-empty; warnings never
    invalidate. ``adjusted_confidence`` is always within [0.0, 1.0].
    """

    valid: bool
    confidence: float
    adjusted_confidence: float
    metadata: ValidationMetadata
    factors: list[Factor] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class BookAvailability:
    """Per-source results of checking one book across every scraper."""

    book_id: str | None
    title: str | None
    author: str | None
    last_checked: str
    sources: dict[str, AvailabilityResult] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "book_id": self.book_id,
            "title": self.title,
            "author": self.author,
            "last_checked": self.last_checked,
            "sources": {name: result.to_dict() for name, result in self.sources.items()},
        }
        if self.error is not None:
            data["error"] = self.error
        return data
