"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_MAX_FILE_SIZE = 1_000_000


def _default_tess_data_prefix() -> Path | None:
    prefix = os.environ.get("TESSDATA_PREFIX")
    return Path(prefix) if prefix else None


@dataclass(slots=True)
class AppConfig:
    index_path: Path = Path("index.db")
    hash_path: Path = Path(".indexed_files")
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    pdf_density: int = 300
    tess_data_prefix: Path | None = field(default_factory=_default_tess_data_prefix)
    ocr_language: str = "eng"
    limit: int = 10
    offset: int = 0
    workers: int = 1

    def __post_init__(self) -> None:
        if self.max_file_size < 0:
            raise ValueError("max_file_size must be non-negative")
        if self.workers < 1:
            raise ValueError("workers must be at least 1")

    def resolve_index_path(self, base_dir: Path | None = None) -> Path:
        return _resolve(Path(self.index_path), base_dir)

    def resolve_hash_path(self, base_dir: Path | None = None) -> Path:
        return _resolve(Path(self.hash_path), base_dir)


def _resolve(path: Path, base_dir: Path | None) -> Path:
    if path.is_absolute() or base_dir is None:
        return path
    return base_dir / path
