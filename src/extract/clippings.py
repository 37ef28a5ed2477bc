"""Parse the My Clippings.txt file written by Kindle devices.

Format (one entry per block, blocks separated by ten '=' characters):

    Book Title (Author Name)
    - Your Highlight on Location 123-145 | Added on Monday, January 1, 2024 12:00:00 PM

    The actual highlighted text goes here...
    ==========
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from catalog import Book, Highlight, Location, Source, generate_book_id
from common.logger import get_logger

from .errors import ClippingsError, ClippingsFileNotFoundError

logger = get_logger(__name__)

ENTRY_SEPARATOR = "=========="

ClippingType = Literal["highlight", "note", "bookmark"]

TITLE_AUTHOR_PATTERN = re.compile(r"^(.+?)\s*\(([^)]+)\)\s*$")
LOCATION_PATTERN = re.compile(r"(?:Location|Loc\.|page)\s*(\d+(?:-\d+)?)", re.IGNORECASE)
ADDED_ON_PATTERN = re.compile(r"Added on \w+,\s*(.+?)\s*$")

# US devices write "January 1, 2024 12:00:00 PM", others "1 January 2024 12:00:00"
DATE_FORMATS = (
    "%B %d, %Y %I:%M:%S %p",
    "%B %d, %Y",
    "%d %B %Y %H:%M:%S",
    "%d %B %Y",
)


@dataclass
class Clipping:
    """A single parsed entry of the clippings file."""

    book_title: str
    author: str | None
    clipping_type: ClippingType
    location: str | None
    added_on: datetime | None
    content: str


def parse_title_author(line: str) -> tuple[str, str | None]:
    """Split "Title (Author)" into its parts; the author is optional."""
    line = line.strip().lstrip("\ufeff").strip()
    match = TITLE_AUTHOR_PATTERN.match(line)
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return line, None


def extract_location(line: str) -> str | None:
    """Extract "123-145" from "... on Location 123-145 | ..." (also Loc. and page)."""
    match = LOCATION_PATTERN.search(line)
    return match.group(1) if match else None


def extract_date(line: str) -> datetime | None:
    """Parse the "Added on ..." timestamp of a metadata line as UTC."""
    match = ADDED_ON_PATTERN.search(line)
    if not match:
        return None

    value = match.group(1)
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue

    logger.debug(f"Unrecognized clipping date: {value!r}")
    return None


def parse_metadata(line: str) -> tuple[ClippingType, str | None, datetime | None] | None:
    """Parse the second line of an entry into (type, location, added_on)."""
    line = line.strip()

    clipping_type: ClippingType
    if "Highlight" in line:
        clipping_type = "highlight"
    elif "Note" in line:
        clipping_type = "note"
    elif "Bookmark" in line:
        clipping_type = "bookmark"
    else:
        return None

    return clipping_type, extract_location(line), extract_date(line)


def parse_clipping_entry(entry: str) -> Clipping | None:
    """Parse one entry; returns None for entries that cannot be understood."""
    lines = entry.strip().splitlines()

    if len(lines) < 2:
        return None

    book_title, author = parse_title_author(lines[0])
    metadata = parse_metadata(lines[1])
    if metadata is None:
        return None
    clipping_type, location, added_on = metadata

    content = "\n".join(lines[2:]).strip()

    if not content and clipping_type != "bookmark":
        return None

    return Clipping(
        book_title=book_title,
        author=author,
        clipping_type=clipping_type,
        location=location,
        added_on=added_on,
        content=content,
    )


def parse_clippings_content(content: str) -> list[Book]:
    """
    Parse the content of a clippings file into books.

    Bookmarks register their book but produce no highlight. Notes are kept
    as highlights whose text is the note itself, since the file does not
    link a note to the passage it annotates.

    Args:
        content: Full text of a My Clippings.txt file

    Returns:
        Books tagged with Source.KINDLE, in order of first appearance
    """
    books: dict[str, Book] = {}
    skipped = 0

    for entry in content.split(ENTRY_SEPARATOR):
        if not entry.strip():
            continue

        clipping = parse_clipping_entry(entry)
        if clipping is None:
            skipped += 1
            continue

        book_id = generate_book_id(clipping.book_title, clipping.author)
        book = books.get(book_id)
        if book is None:
            book = Book.create(clipping.book_title, clipping.author, Source.KINDLE)
            books[book_id] = book

        if clipping.clipping_type == "bookmark":
            continue

        book.highlights.append(
            Highlight.create(
                text=clipping.content,
                source=Source.KINDLE,
                location=Location(position=clipping.location),
                created_at=clipping.added_on,
            )
        )

    if skipped:
        logger.debug(f"Skipped {skipped} unparseable clipping entr{'y' if skipped == 1 else 'ies'}")

    return list(books.values())


def parse_clippings(path: Path) -> list[Book]:
    """
    Parse a My Clippings.txt file.

    Args:
        path: Path to the clippings file

    Returns:
        Books tagged with Source.KINDLE

    Raises:
        ClippingsFileNotFoundError: If the file doesn't exist
        ClippingsError: If the file cannot be read
    """
    path = path.expanduser()
    if not path.exists():
        raise ClippingsFileNotFoundError(f"Clippings file not found: {path}")

    try:
        # Kindle devices write a byte order mark at the start of the file
        content = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ClippingsError(f"Failed to read clippings file: {e}") from e

    books = parse_clippings_content(content)
    logger.info(
        f"Kindle clippings: [bold]{len(books)}[/bold] books, "
        f"[bold]{sum(len(b.highlights) for b in books)}[/bold] highlights"
    )
    return books
