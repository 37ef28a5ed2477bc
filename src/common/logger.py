"""Logging utilities with rich console output.

Every module logs through a logger obtained here so that adapters, the merge
engine and the CLI share one console and one formatting style.

Usage:
    from common.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Reading clippings...")
    logger.warning("Apple Books database not found, skipping")
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# Shared stderr console for every rich handler
console = Console(stderr=True)


def _rich_handler(show_time: bool = False, show_path: bool = False) -> RichHandler:
    return RichHandler(
        console=console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
        markup=True,
    )


def get_logger(
    name: str,
    level: str | None = None,
    show_time: bool = False,
    show_path: bool = False,
) -> logging.Logger:
    """Get a configured logger with rich output.

    Args:
        name: Logger name (typically __name__ of the module)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               If None, uses environment variable LOG_LEVEL or defaults to INFO.
        show_time: Show timestamp in log output
        show_path: Show file path in log output

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")

    logger.setLevel(level.upper())

    handler = _rich_handler(show_time=show_time, show_path=show_path)
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)

    # Keep propagation on so pytest's caplog sees records
    logger.propagate = True

    return logger


def set_level(level: str) -> None:
    """Change the level of every logger created through get_logger.

    Used by the CLI's --verbose flag after module-level loggers exist.
    """
    level = level.upper()
    logging.getLogger().setLevel(level)
    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and any(
            isinstance(h, RichHandler) for h in logger.handlers
        ):
            logger.setLevel(level)


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Setup logging configuration for the entire application.

    Call once at the CLI entry point.

    Args:
        level: Default logging level for all modules
        log_file: Optional file path to also log to a file
    """
    level = os.getenv("LOG_LEVEL", level).upper()

    # Console output comes from the per-module rich handlers; the root
    # logger only carries the optional file handler.
    root_logger = logging.getLogger()
    set_level(level)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(file_handler)


def progress(message: str) -> None:
    """Print a progress message without the logger prefix."""
    console.print(message)


def success(message: str) -> None:
    """Print a success message with a green checkmark."""
    console.print(f"[green]✓[/green] {message}")
