"""Shared types and exceptions for the highlight catalog."""

from enum import Enum


class Source(str, Enum):
    """Platform a book or highlight was extracted from."""

    APPLE_BOOKS = "apple_books"
    KINDLE = "kindle"


class CatalogError(Exception):
    """Base exception for catalog operations."""

    pass


class InvalidRecordError(CatalogError, ValueError):
    """A record handed to the merge engine violates the data model."""

    pass
