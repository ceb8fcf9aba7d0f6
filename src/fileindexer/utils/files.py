"""Utility helpers for working with files and their content types."""

from __future__ import annotations

import logging
import mimetypes
import os
from pathlib import Path
from typing import Iterable, Iterator, Mapping

from fileindexer.errors import ConfigurationError

LOGGER = logging.getLogger(__name__)

# Ensure that org-mode is registered as a mime type.
mimetypes.add_type("text/x-org", ".org")
mimetypes.add_type("text/x-org", ".org_archive")


def iter_candidate_files(
    inputs: Iterable[Path], *, exclude: Iterable[Path] = ()
) -> Iterator[Path]:
    """Yield regular files from input paths, descending into directories.

    Hidden directories and anything listed in ``exclude`` (the index and
    fingerprint locations) are skipped. Inputs that do not exist are ignored.
    """
    excluded = {normalize_path(path) for path in exclude}
    for item in inputs:
        item = Path(item)
        if not item.exists():
            LOGGER.debug("Skipping missing input %s", item)
            continue
        if item.is_dir():
            yield from _walk(item, excluded)
        elif item.is_file() and normalize_path(item) not in excluded:
            yield item


def _walk(root: Path, excluded: set[Path]) -> Iterator[Path]:
    LOGGER.info("Processing directory: %s", root)
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        dirnames[:] = sorted(
            name
            for name in dirnames
            if not name.startswith(".") and normalize_path(current / name) not in excluded
        )
        for name in sorted(filenames):
            path = current / name
            if normalize_path(path) in excluded or _is_sqlite_sidecar(path, excluded):
                continue
            yield path


def _is_sqlite_sidecar(path: Path, excluded: set[Path]) -> bool:
    for suffix in ("-wal", "-shm", "-journal"):
        if path.name.endswith(suffix):
            if normalize_path(path.with_name(path.name[: -len(suffix)])) in excluded:
                return True
    return False


def normalize_path(path: Path) -> Path:
    """Absolute, lexically cleaned form of ``path``."""
    return Path(os.path.normpath(os.path.abspath(path)))


def guess_content_type(path: Path) -> str | None:
    """Return the extension-derived media type of ``path``, without parameters."""
    mime_type, _ = mimetypes.guess_type(Path(path).name, strict=False)
    if not mime_type:
        return None
    return mime_type.split(";", 1)[0].strip().lower() or None


def parse_mime_mapping(value: str) -> tuple[str, str]:
    """Parse an ``ext=type`` mapping into ``(".ext", "type")``."""
    ext, sep, mime_type = value.partition("=")
    ext, mime_type = ext.strip(), mime_type.strip()
    if not sep or not ext or "/" not in mime_type:
        raise ConfigurationError(f"Invalid mimetype mapping {value!r}")
    if not ext.startswith("."):
        ext = "." + ext
    return ext, mime_type


def add_mime_mappings(mappings: Mapping[str, str]) -> None:
    """Register custom extension to content type mappings."""
    for ext, mime_type in mappings.items():
        LOGGER.info("Adding mime-type mapping for extension %r=%r", ext, mime_type)
        mimetypes.add_type(mime_type, ext)
