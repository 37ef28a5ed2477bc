"""Environment configuration interface for reading-sync.

This module provides a clean interface for accessing environment variables,
centralizing all environment variable access in one place.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

from common.constants import DEFAULT_KINDLE_REGION, DEFAULT_OUTPUT_PATH, TRUTHY_VALUES

# Load environment variables from .env file if it exists
load_dotenv()


def _optional_path(name: str) -> Path | None:
    value = os.getenv(name)
    if not value:
        return None
    return Path(value).expanduser()


def _flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in TRUTHY_VALUES


class Environment:
    """Interface for accessing environment configuration."""

    @staticmethod
    def output_path() -> Path:
        """Get the path of the exported library JSON file.

        Returns:
            Output path, defaults to ~/.local/share/readingsync/library.json
        """
        return Path(os.getenv("READINGSYNC_OUTPUT_PATH", str(DEFAULT_OUTPUT_PATH))).expanduser()

    @staticmethod
    def apple_books_enabled() -> bool:
        """Whether Apple Books extraction runs during a sync (default: True)."""
        return _flag("APPLE_BOOKS_ENABLED", True)

    @staticmethod
    def apple_books_library_db() -> Path | None:
        """Override path for the Apple Books library database (BKLibrary*.sqlite)."""
        return _optional_path("APPLE_BOOKS_LIBRARY_DB")

    @staticmethod
    def apple_books_annotation_db() -> Path | None:
        """Override path for the Apple Books annotation database (AEAnnotation*.sqlite)."""
        return _optional_path("APPLE_BOOKS_ANNOTATION_DB")

    @staticmethod
    def kindle_enabled() -> bool:
        """Whether Kindle extraction runs during a sync (default: True)."""
        return _flag("KINDLE_ENABLED", True)

    @staticmethod
    def kindle_clippings_path() -> Path | None:
        """Path to a My Clippings.txt file copied from a Kindle device."""
        return _optional_path("KINDLE_CLIPPINGS_PATH")

    @staticmethod
    def kindle_cookies_path() -> Path | None:
        """Path to a Netscape-format cookie file for the Kindle notebook."""
        return _optional_path("KINDLE_COOKIES_PATH")

    @staticmethod
    def kindle_region() -> str:
        """Get the Amazon region code for the Kindle notebook.

        Returns:
            Region code, defaults to 'us'
        """
        return os.getenv("KINDLE_REGION", DEFAULT_KINDLE_REGION).strip().lower()


# Singleton instance for convenient access
env = Environment()
