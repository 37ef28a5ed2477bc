#!/usr/bin/env python3
"""CLI interface for reading-sync."""

import argparse
from pathlib import Path

from catalog import CatalogError
from common.logger import get_logger, setup_logging

from .apple_books import extract_apple_books
from .clippings import parse_clippings
from .config import SyncConfig
from .errors import ExtractionError
from .main import export_library, run_sync
from .notebook import scrape_notebook

logger = get_logger(__name__)


def cmd_sync(args, config: SyncConfig):
    """Extract every enabled source and write the merged library."""
    run_sync(config, output_path=args.output, pretty=args.pretty)


def cmd_apple_books(args, config: SyncConfig):
    """Export from Apple Books only."""
    books = extract_apple_books(
        args.library_db or config.apple_books_library_db,
        args.annotation_db or config.apple_books_annotation_db,
    )
    export_library([books], args.output or config.output_path, pretty=args.pretty)


def cmd_clippings(args, config: SyncConfig):
    """Import a My Clippings.txt file only."""
    books = parse_clippings(args.path)
    export_library([books], args.output or config.output_path, pretty=args.pretty)


def cmd_kindle(args, config: SyncConfig):
    """Scrape the Kindle notebook only."""
    cookies_path = args.cookies or config.kindle_cookies_path
    if cookies_path is None:
        raise ValueError("No cookie file given; use --cookies or set KINDLE_COOKIES_PATH")

    books = scrape_notebook(cookies_path, args.region or config.kindle_region)
    export_library([books], args.output or config.output_path, pretty=args.pretty)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with its subcommands."""
    # Shared flags are accepted before or after the subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-o",
        "--output",
        type=Path,
        default=argparse.SUPPRESS,
        help="Output path for the library JSON file (default: READINGSYNC_OUTPUT_PATH)",
    )
    common.add_argument(
        "--pretty",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Pretty-print JSON output",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Verbose logging",
    )

    parser = argparse.ArgumentParser(
        prog="reading-sync",
        description="Export reading highlights from Apple Books and Kindle into one library",
        parents=[common],
    )
    subparsers = parser.add_subparsers(dest="command")

    sync_parser = subparsers.add_parser(
        "sync", parents=[common], help="Merge every enabled source (default)"
    )
    sync_parser.set_defaults(func=cmd_sync)

    apple_parser = subparsers.add_parser(
        "apple-books", parents=[common], help="Export from Apple Books only"
    )
    apple_parser.add_argument(
        "--library-db",
        type=Path,
        default=None,
        help="Path to BKLibrary*.sqlite (default: auto-detect)",
    )
    apple_parser.add_argument(
        "--annotation-db",
        type=Path,
        default=None,
        help="Path to AEAnnotation*.sqlite (default: auto-detect)",
    )
    apple_parser.set_defaults(func=cmd_apple_books)

    clippings_parser = subparsers.add_parser(
        "clippings", parents=[common], help="Import a Kindle My Clippings.txt file"
    )
    clippings_parser.add_argument("path", type=Path, help="Path to My Clippings.txt")
    clippings_parser.set_defaults(func=cmd_clippings)

    kindle_parser = subparsers.add_parser(
        "kindle", parents=[common], help="Scrape highlights from the Kindle notebook"
    )
    kindle_parser.add_argument(
        "--cookies",
        type=Path,
        default=None,
        help="Netscape cookie file for Amazon (default: KINDLE_COOKIES_PATH)",
    )
    kindle_parser.add_argument(
        "--region",
        default=None,
        help="Amazon region: us, uk, de, fr, jp, ... (default: KINDLE_REGION)",
    )
    kindle_parser.set_defaults(func=cmd_kindle)

    parser.set_defaults(func=cmd_sync)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, 1 for errors)
    """
    args = build_parser().parse_args(argv)
    for name, default in (("output", None), ("pretty", False), ("verbose", False)):
        if not hasattr(args, name):
            setattr(args, name, default)

    setup_logging(level="DEBUG" if args.verbose else "INFO")

    config = SyncConfig.from_env()
    logger.debug(f"Output path: {args.output or config.output_path}")

    try:
        args.func(args, config)
        return 0
    except (ExtractionError, CatalogError, ValueError) as e:
        logger.error(f"[red]✗[/red] {e}")
        return 1
    except OSError as e:
        logger.error(f"[red]✗[/red] I/O error: {e}")
        return 1


if __name__ == "__main__":
    exit(main())
