"""On-disk store of the content digest of every successfully indexed file.

One entry per file, named by the key (the file's base name) under a root
directory, holding the raw digest bytes. Entries are replaced atomically so
readers see either the previous digest or the new one.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path

LOGGER = logging.getLogger(__name__)

_READ_CHUNK = 1 << 20


def compute_digest(path: Path) -> bytes:
    """Compute the SHA-256 digest of the full content of ``path``."""
    sha = hashlib.sha256()
    with Path(path).open("rb") as handle:
        for chunk in iter(lambda: handle.read(_READ_CHUNK), b""):
            sha.update(chunk)
    return sha.digest()


class FingerprintStore:
    """Persistence layer for per-file content digests."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def entry_path(self, key: str) -> Path:
        name = Path(key).name
        if not name or name in (".", ".."):
            raise ValueError(f"Invalid fingerprint key {key!r}")
        return self.root / name

    def digest(self, path: Path) -> bytes:
        return compute_digest(path)

    def has_matching_digest(self, key: str, digest: bytes) -> bool:
        """Whether the stored entry for ``key`` equals ``digest`` byte for byte."""
        entry = self.entry_path(key)
        try:
            stored = entry.read_bytes()
        except FileNotFoundError:
            return False
        if len(stored) != len(digest):
            return False
        return stored == digest

    def commit(self, key: str, digest: bytes) -> None:
        """Persist ``digest`` as the entry for ``key``, replacing any prior one."""
        entry = self.entry_path(key)
        self.root.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{entry.name}.", suffix=".tmp", dir=self.root)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(digest)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, entry)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        LOGGER.debug("Stored fingerprint for %s", key)

    def forget(self, key: str) -> bool:
        """Drop the entry for ``key``; returns whether one existed."""
        try:
            self.entry_path(key).unlink()
        except FileNotFoundError:
            return False
        return True
