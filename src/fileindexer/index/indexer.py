"""Incremental indexing pipeline.

Each file goes through eligibility, change detection, extraction, index
submission and fingerprint commit as one unit of work. A fingerprint is only
committed after the index accepted the document, so a stored fingerprint
always means the content is searchable.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, Sequence

from fileindexer.config import DEFAULT_MAX_FILE_SIZE
from fileindexer.errors import (
    EligibilityError,
    ExtractionError,
    FingerprintCommitError,
    IndexingError,
    IndexWriteError,
    TypeResolutionError,
    UnsupportedTypeError,
)
from fileindexer.index.fingerprints import FingerprintStore
from fileindexer.index.storage import SearchIndex
from fileindexer.ingestion.registry import ExtractorRegistry, split_category
from fileindexer.models import FileRecord
from fileindexer.utils.files import guess_content_type, iter_candidate_files, normalize_path

LOGGER = logging.getLogger(__name__)

INDEXED = "indexed"
UNCHANGED = "unchanged"


@dataclass(slots=True)
class IndexStats:
    indexed: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    processed_files: list[Path] = field(default_factory=list)
    errors: Dict[Path, IndexingError] = field(default_factory=dict)

    def increment(self, status: str, path: Path) -> None:
        if status == INDEXED:
            self.indexed += 1
        elif status == UNCHANGED:
            self.unchanged += 1
        elif status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
        self.processed_files.append(path)


@dataclass(slots=True)
class _PathLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class Indexer:
    """Coordinates extraction, index submission and fingerprint persistence."""

    def __init__(
        self,
        registry: ExtractorRegistry,
        store: SearchIndex,
        fingerprints: FingerprintStore,
        *,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ) -> None:
        self.registry = registry
        self.store = store
        self.fingerprints = fingerprints
        self.max_file_size = max_file_size
        self._locks: Dict[Path, _PathLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _path_lock(self, path: Path) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.get(path)
            if entry is None:
                entry = self._locks[path] = _PathLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if not entry.users:
                    del self._locks[path]

    def process_file(self, path: Path) -> str:
        """Index a single file unless its content is unchanged.

        Returns ``"indexed"`` or ``"unchanged"``; raises an
        :class:`~fileindexer.errors.IndexingError` subclass on failure.
        """
        path = normalize_path(Path(path))
        with self._path_lock(path):
            return self._process_locked(path)

    def _process_locked(self, path: Path) -> str:
        self._check_eligible(path)

        key = path.name
        digest = self.fingerprints.digest(path)
        if self.fingerprints.has_matching_digest(key, digest):
            LOGGER.info("Already indexed %s", path)
            return UNCHANGED

        mime_type = guess_content_type(path)
        if mime_type is None:
            raise TypeResolutionError(f"Cannot determine content type of {path}", path)

        try:
            extractor = self.registry.resolve(mime_type, split_category(mime_type))
        except UnsupportedTypeError as exc:
            exc.path = path
            raise

        try:
            text = extractor(path)
        except Exception as exc:
            raise ExtractionError(f"Failed to extract text from {path}: {exc}", path) from exc

        record = FileRecord(
            path=path,
            file_name=path.name,
            mime_type=mime_type,
            text=text,
            index_time=datetime.now(timezone.utc),
            digest=digest,
        )
        LOGGER.info("Indexing %s", record.path)
        try:
            self.store.put(record)
        except Exception as exc:
            raise IndexWriteError(f"Error writing {path} to index: {exc}", path) from exc

        try:
            self.fingerprints.commit(key, digest)
        except Exception as exc:
            raise FingerprintCommitError(
                f"Indexed {path} but failed to store its fingerprint: {exc}", path
            ) from exc
        return INDEXED

    def _check_eligible(self, path: Path) -> None:
        try:
            stat = path.stat()
        except OSError as exc:
            raise EligibilityError(f"Cannot stat {path}: {exc}", path) from exc
        if not path.is_file():
            raise EligibilityError(f"Not a regular file {path}", path)
        if stat.st_size > self.max_file_size:
            raise EligibilityError(
                f"File too large to index {path} ({stat.st_size} > {self.max_file_size} bytes)",
                path,
            )

    def index(
        self,
        paths: Sequence[Path],
        *,
        workers: int = 1,
        exclude: Iterable[Path] = (),
    ) -> IndexStats:
        """Index every file found under the given paths.

        Failures are contained to the file that raised them.
        """
        files = list(iter_candidate_files(paths, exclude=exclude))
        stats = IndexStats()
        if not files:
            LOGGER.warning("No files found")
            return stats

        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="indexer") as pool:
                outcomes = list(pool.map(self._index_one, files))
        else:
            outcomes = [self._index_one(path) for path in files]

        for path, status, error in outcomes:
            stats.increment(status, path)
            if error is not None:
                stats.errors[path] = error
        return stats

    def _index_one(self, path: Path) -> tuple[Path, str, IndexingError | None]:
        LOGGER.info("Processing file: %s", path)
        try:
            return path, self.process_file(path), None
        except FingerprintCommitError as exc:
            LOGGER.warning("%s", exc.message)
            return path, INDEXED, exc
        except EligibilityError as exc:
            LOGGER.warning("Skipping %s: %s", path, exc.message)
            return path, "skipped", exc
        except IndexWriteError as exc:
            LOGGER.error("%s", exc.message)
            return path, "failed", exc
        except IndexingError as exc:
            LOGGER.error("Error processing file %s: %s", path, exc.message)
            return path, "failed", exc
        except OSError as exc:
            LOGGER.error("Error reading file %s: %s", path, exc)
            error = IndexingError(str(exc), path)
            error.__cause__ = exc
            return path, "failed", error
