"""Merge books from multiple sources into one deduplicated library.

Books are grouped by their content-derived ID. Within a book, highlights are
deduplicated by normalized text, since positions are not comparable across
sources. The merge is a pure function: input books are copied before any
field is updated, so adapters keep their original records untouched.
"""

import copy
from collections.abc import Iterable
from datetime import datetime, timezone

from .models import Book, Highlight
from .normalize import normalize_text
from .types import InvalidRecordError

# Sort placeholder for highlights without a timestamp (they sort last anyway)
_NO_TIMESTAMP = datetime.min.replace(tzinfo=timezone.utc)


def merge_books(book_lists: Iterable[Iterable[Book]]) -> list[Book]:
    """Merge per-source book lists into one canonical list.

    The first book seen for an ID seeds the result; later books with the same
    ID are folded into it with merge_into_book. Highlights of every book end
    up sorted by created_at (untimed last) and books are sorted by title,
    case-insensitively, with ties kept in first-seen order.

    Args:
        book_lists: One list of books per source, in any order

    Returns:
        New list of merged books

    Raises:
        InvalidRecordError: If a book carries a highlight with empty text or
            a timestamp without a timezone
    """
    books_by_id: dict[str, Book] = {}

    for books in book_lists:
        for book in books:
            validate_book(book)
            existing = books_by_id.get(book.id)
            if existing is None:
                books_by_id[book.id] = _seed(book)
            else:
                merge_into_book(existing, copy.deepcopy(book))

    merged = list(books_by_id.values())
    for book in merged:
        sort_highlights(book.highlights)

    # list.sort is stable, so equal titles keep first-seen order
    merged.sort(key=lambda b: normalize_text(b.title))
    return merged


def validate_book(book: Book) -> None:
    """Reject records the merge engine cannot compare.

    Raises:
        InvalidRecordError: On empty highlight text or naive timestamps
    """
    _check_timestamp(book.finished_at, f"finished_at of book {book.title!r}")
    for highlight in book.highlights:
        if not normalize_text(highlight.text):
            raise InvalidRecordError(
                f"Highlight {highlight.id!r} in {book.title!r} has empty text"
            )
        _check_timestamp(highlight.created_at, f"created_at of highlight {highlight.id!r}")


def _check_timestamp(value: datetime | None, what: str) -> None:
    if value is not None and value.tzinfo is None:
        raise InvalidRecordError(f"{what} must be timezone-aware")


def _seed(book: Book) -> Book:
    seeded = copy.deepcopy(book)
    seeded.sources = list(dict.fromkeys(seeded.sources))
    return seeded


def merge_into_book(existing: Book, other: Book) -> None:
    """Fold another observation of the same book into an existing one.

    - sources: ordered union, never duplicated
    - finished: True from any source wins, otherwise the first known value
    - finished_at: the earliest known timestamp
    - highlights: appended unless their normalized text is already present,
      in which case the duplicate only fills in created_at and note

    Args:
        existing: Accumulated book, updated in place
        other: Book with the same ID; its highlights are moved into existing
    """
    for source in other.sources:
        if source not in existing.sources:
            existing.sources.append(source)

    if other.finished is True:
        existing.finished = True
    elif existing.finished is None:
        existing.finished = other.finished

    if other.finished_at is not None and (
        existing.finished_at is None or other.finished_at < existing.finished_at
    ):
        existing.finished_at = other.finished_at

    by_text: dict[str, Highlight] = {}
    for highlight in existing.highlights:
        by_text.setdefault(normalize_text(highlight.text), highlight)

    for highlight in other.highlights:
        key = normalize_text(highlight.text)
        match = by_text.get(key)
        if match is None:
            existing.highlights.append(highlight)
            by_text[key] = highlight
        else:
            merge_duplicate_highlight(match, highlight)


def merge_duplicate_highlight(existing: Highlight, other: Highlight) -> None:
    """Merge a second observation of the same highlight into the first.

    Only created_at (earliest wins) and note (filled when missing) are taken
    from the duplicate. A Highlight has a single source, so the duplicate's
    source, ID and location are dropped.
    """
    if other.created_at is not None and (
        existing.created_at is None or other.created_at < existing.created_at
    ):
        existing.created_at = other.created_at

    if existing.note is None and other.note is not None:
        existing.note = other.note


def sort_highlights(highlights: list[Highlight]) -> None:
    """Sort highlights in place by created_at, untimed entries last."""
    highlights.sort(key=lambda h: (h.created_at is None, h.created_at or _NO_TIMESTAMP))
