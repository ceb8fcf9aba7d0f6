"""SQLite FTS5 full-text index."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Protocol, Sequence

from fileindexer.errors import SearchQueryError
from fileindexer.models import FileRecord, SearchResult
from fileindexer.utils.text import strip_html

LOGGER = logging.getLogger(__name__)

HTML_MIME_TYPE = "text/html"
ANSI_HIGHLIGHT = ("\x1b[43m", "\x1b[0m")

QUERY_OPERATORS = {"AND", "OR", "NOT"}


def _quote(word: str) -> str:
    return '"' + word.replace('"', '""') + '"'


def build_match_query(search_query: str) -> str:
    """Turn a whitespace separated query string into an FTS5 MATCH expression."""
    parts = []
    for word in search_query.split():
        if word in QUERY_OPERATORS:
            parts.append(word)
        elif word.endswith("*") and len(word) > 1:
            parts.append(_quote(word[:-1]) + "*")
        else:
            parts.append(_quote(word))
    return " ".join(parts)


class SearchIndex(Protocol):
    def put(self, record: FileRecord) -> None: ...

    def query(self, terms: Sequence[str]) -> List[SearchResult]: ...

    def close(self) -> None: ...


class SQLiteSearchIndex:
    """Persistence layer for extracted document text.

    Documents are keyed by path; writing a path again replaces the previous
    version. Writes are serialised internally so the index can be shared by
    worker threads.
    """

    def __init__(
        self,
        index_path: Path,
        *,
        limit: int = 10,
        offset: int = 0,
        highlight: tuple[str, str] = ANSI_HIGHLIGHT,
    ) -> None:
        self.index_path = Path(index_path)
        self.limit = limit
        self.offset = offset
        self.highlight = highlight
        if self.index_path.exists():
            LOGGER.info("Opening index %s", self.index_path)
        else:
            LOGGER.info("Creating new index %s", self.index_path)
            self.index_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._closed = False
        self._conn = sqlite3.connect(self.index_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def __enter__(self) -> "SQLiteSearchIndex":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE VIRTUAL TABLE IF NOT EXISTS documents USING fts5(
                    path UNINDEXED,
                    file_name,
                    mime_type UNINDEXED,
                    index_time UNINDEXED,
                    text,
                    tokenize = 'porter unicode61'
                )
                """
            )

    def put(self, record: FileRecord) -> None:
        """Index ``record``, replacing any document stored under its path."""
        text = record.text
        if record.mime_type == HTML_MIME_TYPE:
            text = strip_html(text)
        with self.transaction() as conn:
            conn.execute("DELETE FROM documents WHERE path = ?", (str(record.path),))
            conn.execute(
                """
                INSERT INTO documents(path, file_name, mime_type, index_time, text)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    str(record.path),
                    record.file_name,
                    record.mime_type,
                    record.index_time.isoformat(),
                    text,
                ),
            )

    def query(
        self,
        terms: Sequence[str],
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> List[SearchResult]:
        """Evaluate the terms joined by spaces as one full-text query.

        Words are matched literally; ``AND``, ``OR``, ``NOT`` and a trailing ``*``
        keep their FTS5 meaning.
        """
        search_query = " ".join(terms).strip()
        if not search_query:
            raise SearchQueryError("Empty query")
        match = build_match_query(search_query)
        start, end = self.highlight
        try:
            with self._lock:
                rows = self._conn.execute(
                    """
                    SELECT
                        path,
                        file_name,
                        mime_type,
                        index_time,
                        bm25(documents) AS bm25_score,
                        snippet(documents, 4, ?, ?, '...', 16) AS snippet
                    FROM documents
                    WHERE documents MATCH ?
                    ORDER BY bm25(documents)
                    LIMIT ? OFFSET ?
                    """,
                    (
                        start,
                        end,
                        match,
                        self.limit if limit is None else limit,
                        self.offset if offset is None else offset,
                    ),
                ).fetchall()
        except sqlite3.OperationalError as exc:
            LOGGER.error("Search error for %r: %s", search_query, exc)
            raise SearchQueryError(f"Invalid query {search_query!r}: {exc}") from exc

        return [
            SearchResult(
                path=Path(row["path"]),
                file_name=row["file_name"],
                mime_type=row["mime_type"],
                index_time=row["index_time"],
                score=-float(row["bm25_score"]),
                snippet=row["snippet"],
            )
            for row in rows
        ]

    def get(self, path: Path) -> sqlite3.Row | None:
        with self._lock:
            return self._conn.execute(
                "SELECT path, file_name, mime_type, index_time, text FROM documents WHERE path = ?",
                (str(path),),
            ).fetchone()

    def count(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
