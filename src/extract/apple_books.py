"""Extract books and highlights from the Apple Books SQLite databases.

Apple Books keeps its library (BKLibrary*.sqlite) and annotations
(AEAnnotation*.sqlite) in two CoreData stores. Both are copied to a temporary
directory before reading because the running app holds locks on them.
"""

import shutil
import sqlite3
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

from catalog import Book, Highlight, Location, Source
from common.logger import get_logger

from .errors import AppleBooksError, DatabaseNotFoundError

logger = get_logger(__name__)

DOCUMENTS_DIR = Path("~/Library/Containers/com.apple.iBooksX/Data/Documents")
LIBRARY_DB_PATTERN = "BKLibrary/BKLibrary*.sqlite"
ANNOTATION_DB_PATTERN = "AEAnnotation/AEAnnotation*.sqlite"

# CoreData timestamps count seconds from 2001-01-01 UTC
CORE_DATA_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)

BOOKS_QUERY = """
    SELECT ZASSETID, ZTITLE, ZAUTHOR, ZISFINISHED, ZDATEFINISHED
    FROM ZBKLIBRARYASSET
    WHERE ZTITLE IS NOT NULL
"""

ANNOTATIONS_QUERY = """
    SELECT
        ZANNOTATIONUUID,
        ZANNOTATIONASSETID,
        ZANNOTATIONSELECTEDTEXT,
        ZANNOTATIONNOTE,
        ZFUTUREPROOFING5,
        ZANNOTATIONLOCATION,
        ZANNOTATIONCREATIONDATE
    FROM ZAEANNOTATION
    WHERE ZANNOTATIONDELETED = 0
      AND ZANNOTATIONSELECTEDTEXT IS NOT NULL
      AND TRIM(ZANNOTATIONSELECTEDTEXT) != ''
    ORDER BY ZANNOTATIONASSETID, ZPLLOCATIONRANGESTART
"""


def core_data_to_datetime(value: float | None) -> datetime | None:
    """Convert a CoreData timestamp to a UTC datetime (whole seconds)."""
    if value is None:
        return None
    return CORE_DATA_EPOCH + timedelta(seconds=int(value))


def find_database(pattern: str, documents_dir: Path = DOCUMENTS_DIR) -> Path | None:
    """Find the first database matching pattern, ignoring WAL/SHM side files."""
    base = documents_dir.expanduser()
    for candidate in sorted(base.glob(pattern)):
        if "-wal" in candidate.name or "-shm" in candidate.name:
            continue
        return candidate
    return None


def _resolve(explicit: Path | None, pattern: str, label: str) -> Path:
    if explicit is not None:
        path = explicit.expanduser()
        if not path.exists():
            raise DatabaseNotFoundError(f"Apple Books {label} database not found at {path}")
        return path

    path = find_database(pattern, DOCUMENTS_DIR)
    if path is None:
        raise DatabaseNotFoundError(
            f"No Apple Books {label} database found under {DOCUMENTS_DIR}"
        )
    return path


def _copy_database(path: Path, dest_dir: Path) -> Path:
    """Copy a database with its WAL/SHM side files, which hold recent writes."""
    copied = Path(shutil.copy2(path, dest_dir / path.name))
    for suffix in ("-wal", "-shm"):
        sidecar = path.with_name(path.name + suffix)
        if sidecar.exists():
            shutil.copy2(sidecar, dest_dir / sidecar.name)
    return copied


def _read_books(db_path: Path) -> dict[str, Book]:
    books_by_asset: dict[str, Book] = {}
    conn = sqlite3.connect(str(db_path))
    try:
        for asset_id, title, author, is_finished, date_finished in conn.execute(BOOKS_QUERY):
            books_by_asset[asset_id] = Book.create(
                title=title,
                author=author,
                source=Source.APPLE_BOOKS,
                finished=(is_finished or 0) == 1,
                finished_at=core_data_to_datetime(date_finished),
            )
    finally:
        conn.close()
    return books_by_asset


def _attach_highlights(db_path: Path, books_by_asset: dict[str, Book]) -> int:
    orphaned = 0
    conn = sqlite3.connect(str(db_path))
    try:
        for row in conn.execute(ANNOTATIONS_QUERY):
            annotation_id, asset_id, text, note, chapter, position, created = row
            # TRIM in SQL misses newlines and tabs
            if not text.strip():
                continue
            book = books_by_asset.get(asset_id)
            if book is None:
                orphaned += 1
                continue
            book.highlights.append(
                Highlight.create(
                    text=text,
                    source=Source.APPLE_BOOKS,
                    note=note,
                    location=Location(chapter=chapter, position=position),
                    created_at=core_data_to_datetime(created),
                    highlight_id=annotation_id,
                )
            )
    finally:
        conn.close()
    return orphaned


def extract_apple_books(
    library_db: Path | None = None,
    annotation_db: Path | None = None,
) -> list[Book]:
    """
    Extract every Apple Books title with its highlights.

    Args:
        library_db: Explicit BKLibrary database path (default: auto-detect)
        annotation_db: Explicit AEAnnotation database path (default: auto-detect)

    Returns:
        Books tagged with Source.APPLE_BOOKS, in library order

    Raises:
        DatabaseNotFoundError: If a database cannot be located
        AppleBooksError: If a database cannot be copied or queried
    """
    library_path = _resolve(library_db, LIBRARY_DB_PATTERN, "library")
    annotation_path = _resolve(annotation_db, ANNOTATION_DB_PATTERN, "annotation")

    logger.debug(f"Library database: {library_path}")
    logger.debug(f"Annotation database: {annotation_path}")

    with tempfile.TemporaryDirectory(prefix="readingsync_") as tmp:
        try:
            temp_library = _copy_database(library_path, Path(tmp))
            temp_annotations = _copy_database(annotation_path, Path(tmp))
        except OSError as e:
            raise AppleBooksError(f"Failed to copy database to temp location: {e}") from e

        try:
            books_by_asset = _read_books(temp_library)
            orphaned = _attach_highlights(temp_annotations, books_by_asset)
        except sqlite3.Error as e:
            raise AppleBooksError(f"Database error: {e}") from e

    if orphaned:
        logger.debug(f"Skipped {orphaned} annotation(s) for books not in the library")

    books = list(books_by_asset.values())
    logger.info(
        f"Apple Books: [bold]{len(books)}[/bold] books, "
        f"[bold]{sum(len(b.highlights) for b in books)}[/bold] highlights"
    )
    return books
