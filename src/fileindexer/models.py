"""Core fileindexer data models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Text extracted from one file, ready to hand to the search index."""

    path: Path
    file_name: str
    mime_type: str
    text: str
    index_time: datetime
    digest: bytes | None = None

    @property
    def category(self) -> str:
        return self.mime_type.split("/", 1)[0]


@dataclass(slots=True)
class SearchResult:
    path: Path
    file_name: str
    mime_type: str
    index_time: str
    score: float
    snippet: str
