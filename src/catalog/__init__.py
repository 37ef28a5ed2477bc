"""Canonical highlight catalog: record model, book identity and merge engine.

Usage:
    from catalog import merge_books, Library

    books = merge_books([apple_books, kindle_books])
    library = Library.create(books)
"""

from .book_id import generate_book_id, validate_book_id
from .library_io import read_library, write_library
from .merge import merge_books
from .models import Book, Highlight, Library, Location
from .normalize import normalize_text
from .types import CatalogError, InvalidRecordError, Source

__all__ = [
    # Models
    "Book",
    "Highlight",
    "Library",
    "Location",
    "Source",
    # Identity and normalization
    "generate_book_id",
    "normalize_text",
    "validate_book_id",
    # Merge
    "merge_books",
    # I/O
    "read_library",
    "write_library",
    # Exceptions
    "CatalogError",
    "InvalidRecordError",
]
