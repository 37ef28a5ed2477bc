"""Sync configuration assembled from the environment."""

from dataclasses import dataclass
from pathlib import Path

from common.constants import DEFAULT_KINDLE_REGION
from common.env import env


@dataclass
class SyncConfig:
    """Which sources a sync reads and where their data lives."""

    output_path: Path
    apple_books_enabled: bool = True
    apple_books_library_db: Path | None = None
    apple_books_annotation_db: Path | None = None
    kindle_enabled: bool = True
    kindle_clippings_path: Path | None = None
    kindle_cookies_path: Path | None = None
    kindle_region: str = DEFAULT_KINDLE_REGION

    @classmethod
    def from_env(cls) -> "SyncConfig":
        """Build the configuration from environment variables (and .env)."""
        return cls(
            output_path=env.output_path(),
            apple_books_enabled=env.apple_books_enabled(),
            apple_books_library_db=env.apple_books_library_db(),
            apple_books_annotation_db=env.apple_books_annotation_db(),
            kindle_enabled=env.kindle_enabled(),
            kindle_clippings_path=env.kindle_clippings_path(),
            kindle_cookies_path=env.kindle_cookies_path(),
            kindle_region=env.kindle_region(),
        )
