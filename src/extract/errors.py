"""Exceptions raised by the extraction adapters.

A sync treats any ExtractionError as a failure of that one source: the
source contributes no books and the remaining sources are still merged.
"""


class ExtractionError(Exception):
    """Base exception for extraction errors."""

    pass


class AppleBooksError(ExtractionError):
    """Reading the Apple Books databases failed."""

    pass


class DatabaseNotFoundError(AppleBooksError):
    """An Apple Books database could not be located."""

    pass


class ClippingsError(ExtractionError):
    """Reading a My Clippings.txt file failed."""

    pass


class ClippingsFileNotFoundError(ClippingsError):
    """The clippings file does not exist."""

    pass


class NotebookError(ExtractionError):
    """Scraping the Kindle notebook failed."""

    pass


class CookieFileNotFoundError(NotebookError):
    """The cookie file for the Kindle notebook does not exist."""

    pass


class NotAuthenticatedError(NotebookError):
    """Amazon redirected to sign-in; the cookies are missing or expired."""

    pass


class InvalidRegionError(NotebookError):
    """Unknown Amazon region code."""

    pass
