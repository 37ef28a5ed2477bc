"""Data models for the merged highlight library.

Every extraction adapter produces Book values (with their Highlights) in this
shape, and the merge engine consumes and returns them.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .book_id import generate_book_id
from .types import Source


@dataclass
class Location:
    """Where a highlight sits in its book.

    Both fields are opaque source-specific strings (an EPUB CFI, a Kindle
    location range, a page number) and are only carried through.
    """

    chapter: str | None = None
    position: str | None = None


@dataclass
class Highlight:
    """A single highlighted passage with an optional note."""

    id: str
    text: str
    source: Source
    note: str | None = None
    location: Location = field(default_factory=Location)
    created_at: datetime | None = None

    @classmethod
    def create(
        cls,
        text: str,
        source: Source,
        note: str | None = None,
        location: Location | None = None,
        created_at: datetime | None = None,
        highlight_id: str | None = None,
    ) -> "Highlight":
        """Build a highlight, generating a UUID when the source has no ID."""
        return cls(
            id=highlight_id or str(uuid.uuid4()),
            text=text,
            source=source,
            note=note,
            location=location or Location(),
            created_at=created_at,
        )


@dataclass
class Book:
    """A book with its metadata and highlights."""

    id: str
    title: str
    author: str | None = None
    sources: list[Source] = field(default_factory=list)
    highlights: list[Highlight] = field(default_factory=list)
    finished: bool | None = None
    finished_at: datetime | None = None

    @classmethod
    def create(
        cls,
        title: str,
        author: str | None,
        source: Source,
        highlights: list[Highlight] | None = None,
        finished: bool | None = None,
        finished_at: datetime | None = None,
    ) -> "Book":
        """Build a book found on a single source, deriving its ID."""
        return cls(
            id=generate_book_id(title, author),
            title=title,
            author=author,
            sources=[source],
            highlights=list(highlights or []),
            finished=finished,
            finished_at=finished_at,
        )


@dataclass
class Library:
    """The complete export: every merged book plus when it was produced."""

    exported_at: datetime
    books: list[Book] = field(default_factory=list)

    @classmethod
    def create(cls, books: list[Book] | None = None) -> "Library":
        """Stamp a new library with the current UTC time."""
        return cls(exported_at=datetime.now(timezone.utc), books=list(books or []))

    @property
    def highlight_count(self) -> int:
        return sum(len(book.highlights) for book in self.books)
