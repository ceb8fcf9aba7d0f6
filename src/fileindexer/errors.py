"""Exceptions raised by the indexing pipeline.

Every per-file failure is an :class:`IndexingError` so batch callers can
contain it to the file that caused it and carry on with the siblings.
"""

from __future__ import annotations

from pathlib import Path


class IndexingError(Exception):
    """Base exception for indexing errors."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class ConfigurationError(IndexingError):
    """Invalid user supplied configuration."""


class EligibilityError(IndexingError):
    """File is not eligible for indexing (too large, not a regular file)."""


class TypeResolutionError(IndexingError):
    """No content type could be derived for the file."""


class UnsupportedTypeError(IndexingError):
    """No extractor is registered for the content type or its category."""

    def __init__(self, mime_type: str, path: Path | None = None) -> None:
        super().__init__(f"Unhandled file format {mime_type!r}", path)
        self.mime_type = mime_type


class DuplicateTypeError(IndexingError):
    """An extractor is already registered under the type key."""

    def __init__(self, type_key: str) -> None:
        super().__init__(
            f"Attempt to register already existing mime type extractor {type_key!r}"
        )
        self.type_key = type_key


class ExtractionError(IndexingError):
    """The extractor failed to produce text."""


class IndexWriteError(IndexingError):
    """The search index rejected or failed to persist a document."""


class FingerprintCommitError(IndexingError):
    """The document was indexed but its fingerprint could not be stored."""


class SearchQueryError(IndexingError):
    """The search index could not evaluate a query."""
