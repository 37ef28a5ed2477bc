"""Library file I/O utilities."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .models import Book, Highlight, Library, Location
from .types import Source


def format_timestamp(value: datetime | None) -> str | None:
    """Format a timestamp as RFC 3339 in UTC with a trailing Z."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp written by format_timestamp."""
    if value is None:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def highlight_to_dict(highlight: Highlight) -> dict[str, Any]:
    return {
        "id": highlight.id,
        "text": highlight.text,
        "note": highlight.note,
        "location": {
            "chapter": highlight.location.chapter,
            "position": highlight.location.position,
        },
        "created_at": format_timestamp(highlight.created_at),
        "source": highlight.source.value,
    }


def book_to_dict(book: Book) -> dict[str, Any]:
    return {
        "id": book.id,
        "title": book.title,
        "author": book.author,
        "sources": [source.value for source in book.sources],
        "highlights": [highlight_to_dict(h) for h in book.highlights],
        "finished": book.finished,
        "finished_at": format_timestamp(book.finished_at),
    }


def library_to_dict(library: Library) -> dict[str, Any]:
    """Convert a library to the JSON-ready export structure."""
    return {
        "exported_at": format_timestamp(library.exported_at),
        "books": [book_to_dict(book) for book in library.books],
    }


def library_from_dict(data: dict[str, Any]) -> Library:
    """
    Rebuild a library from its export structure.

    Raises:
        ValueError: If required fields are missing or values are invalid
    """
    try:
        books = [
            Book(
                id=book["id"],
                title=book["title"],
                author=book.get("author"),
                sources=[Source(s) for s in book.get("sources", [])],
                highlights=[
                    Highlight(
                        id=h["id"],
                        text=h["text"],
                        note=h.get("note"),
                        location=Location(
                            chapter=(h.get("location") or {}).get("chapter"),
                            position=(h.get("location") or {}).get("position"),
                        ),
                        created_at=parse_timestamp(h.get("created_at")),
                        source=Source(h["source"]),
                    )
                    for h in book.get("highlights", [])
                ],
                finished=book.get("finished"),
                finished_at=parse_timestamp(book.get("finished_at")),
            )
            for book in data.get("books", [])
        ]
        exported_at = parse_timestamp(data["exported_at"])
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Invalid library document: {e}") from e

    if exported_at is None:
        raise ValueError("Invalid library document: exported_at is null")

    return Library(exported_at=exported_at, books=books)


def write_library(file_path: Path, library: Library, pretty: bool = False) -> None:
    """
    Write the library as JSON.

    Args:
        file_path: Path to write the file
        library: Library to serialize
        pretty: Indent the output for humans
    """
    data = library_to_dict(library)

    # Ensure parent directory exists
    file_path.parent.mkdir(parents=True, exist_ok=True)

    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2 if pretty else None, ensure_ascii=False)


def read_library(file_path: Path) -> Library:
    """
    Read and parse a library file.

    Args:
        file_path: Path to the library file

    Returns:
        Library object

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If file format is invalid
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Library file not found: {file_path}")

    with open(file_path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Library file is not valid JSON: {e}") from e

    return library_from_dict(data)
