"""
Collect highlights from every configured source into one library file.

Each source is extracted independently; a source that fails is reported and
contributes nothing, so one broken source never aborts the whole sync. The
collected lists are merged by the catalog merge engine and written as JSON.
"""

from collections.abc import Callable
from functools import partial
from pathlib import Path

from catalog import Book, Library, Source, merge_books, write_library
from common.logger import get_logger, progress, success

from .apple_books import extract_apple_books
from .clippings import parse_clippings
from .config import SyncConfig
from .errors import ExtractionError
from .notebook import scrape_notebook

logger = get_logger(__name__)

Extractor = Callable[[], list[Book]]


def build_extractors(config: SyncConfig) -> list[tuple[str, Extractor]]:
    """Create the extractors enabled by the configuration, in run order."""
    extractors: list[tuple[str, Extractor]] = []

    if config.apple_books_enabled:
        extractors.append(
            (
                "Apple Books",
                partial(
                    extract_apple_books,
                    config.apple_books_library_db,
                    config.apple_books_annotation_db,
                ),
            )
        )

    if config.kindle_enabled:
        if config.kindle_clippings_path:
            extractors.append(
                ("Kindle clippings", partial(parse_clippings, config.kindle_clippings_path))
            )
        if config.kindle_cookies_path:
            extractors.append(
                (
                    "Kindle notebook",
                    partial(scrape_notebook, config.kindle_cookies_path, config.kindle_region),
                )
            )
        if not (config.kindle_clippings_path or config.kindle_cookies_path):
            logger.warning(
                "Kindle is enabled but neither KINDLE_CLIPPINGS_PATH nor "
                "KINDLE_COOKIES_PATH is set, skipping"
            )

    return extractors


def collect_books(extractors: list[tuple[str, Extractor]]) -> list[list[Book]]:
    """
    Run every extractor, treating a failing source as empty.

    Args:
        extractors: (name, extractor) pairs

    Returns:
        One book list per extractor, in the same order
    """
    book_lists = []
    for name, extractor in extractors:
        progress(f"Extracting from {name}...")
        try:
            books = extractor()
        except ExtractionError as e:
            logger.warning(f"[yellow]⚠[/yellow] {name} skipped: {e}")
            books = []
        book_lists.append(books)
    return book_lists


def summarize(library: Library) -> dict[str, int]:
    """Count books, highlights and books per source."""
    return {
        "books": len(library.books),
        "highlights": library.highlight_count,
        "apple_books": sum(1 for b in library.books if Source.APPLE_BOOKS in b.sources),
        "kindle": sum(1 for b in library.books if Source.KINDLE in b.sources),
    }


def export_library(
    book_lists: list[list[Book]],
    output_path: Path,
    pretty: bool = False,
) -> Library:
    """
    Merge book lists, stamp the result and write it to output_path.

    Args:
        book_lists: One list of books per source
        output_path: Destination JSON file
        pretty: Indent the JSON output

    Returns:
        The library that was written
    """
    library = Library.create(merge_books(book_lists))

    stats = summarize(library)
    logger.info(
        f"Exported [bold]{stats['books']}[/bold] books "
        f"({stats['kindle']} Kindle, {stats['apple_books']} Apple Books) "
        f"with [bold]{stats['highlights']}[/bold] total highlights"
    )

    write_library(output_path, library, pretty=pretty)
    success(f"Written to {output_path}")

    return library


def run_sync(
    config: SyncConfig,
    output_path: Path | None = None,
    pretty: bool = False,
) -> Library:
    """
    Extract every enabled source, merge and write the library.

    Args:
        config: Source configuration
        output_path: Override for config.output_path
        pretty: Indent the JSON output

    Returns:
        The library that was written
    """
    extractors = build_extractors(config)
    if not extractors:
        logger.warning("No sources enabled; writing an empty library")

    book_lists = collect_books(extractors)
    return export_library(book_lists, output_path or config.output_path, pretty=pretty)
