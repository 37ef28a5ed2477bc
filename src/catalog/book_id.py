"""Book ID generation utilities."""

import hashlib
import re

from .normalize import normalize_text

# Number of digest bytes kept in a book ID (16 hex characters)
BOOK_ID_BYTES = 8


def generate_book_id(title: str, author: str | None = None) -> str:
    """
    Generate deterministic SHA256-based book ID.

    ID is based on the normalized title followed directly by the normalized
    author. Case and whitespace differences between sources therefore map to
    the same ID, and a missing author is the same as an empty one.

    Args:
        title: Title of the book
        author: Author as reported by the source, if any

    Returns:
        First 8 bytes of the SHA256 digest as 16 lowercase hex characters
    """
    canonical = f"{normalize_text(title)}{normalize_text(author)}"

    hash_obj = hashlib.sha256(canonical.encode("utf-8"))
    return hash_obj.digest()[:BOOK_ID_BYTES].hex()


def validate_book_id(book_id: str) -> bool:
    """
    Validate book ID format.

    Args:
        book_id: Book ID to validate

    Returns:
        True if valid, False otherwise
    """
    pattern = r"[0-9a-f]{16}"
    return bool(re.fullmatch(pattern, book_id))
