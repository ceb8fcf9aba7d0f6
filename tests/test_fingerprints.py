"""Tests for FingerprintStore."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from fileindexer.index.fingerprints import FingerprintStore, compute_digest


@pytest.fixture
def store(tmp_path: Path) -> FingerprintStore:
    return FingerprintStore(tmp_path / ".indexed_files")


class TestComputeDigest:
    """Test compute_digest function."""

    def test_digest_matches_sha256(self, tmp_path: Path) -> None:
        """Should return the raw SHA-256 bytes of the content."""
        path = tmp_path / "notes.txt"
        path.write_text("hello world")

        digest = compute_digest(path)

        assert digest == hashlib.sha256(b"hello world").digest()
        assert len(digest) == 32

    def test_digest_large_file(self, tmp_path: Path) -> None:
        """Should hash files larger than the read chunk size."""
        path = tmp_path / "large.bin"
        content = os.urandom(3 * (1 << 20) + 17)
        path.write_bytes(content)

        assert compute_digest(path) == hashlib.sha256(content).digest()

    def test_digest_missing_file(self, tmp_path: Path) -> None:
        """Should raise OSError for unreadable files."""
        with pytest.raises(OSError):
            compute_digest(tmp_path / "missing.txt")

    def test_different_content_different_digest(self, tmp_path: Path) -> None:
        a = tmp_path / "a.txt"
        b = tmp_path / "b.txt"
        a.write_text("hello world")
        b.write_text("hello world!")

        assert compute_digest(a) != compute_digest(b)


class TestFingerprintStore:
    """Test FingerprintStore lookups and commits."""

    def test_no_entry_is_not_a_match(self, store: FingerprintStore) -> None:
        """Missing entries and a missing root are a plain mismatch."""
        assert not store.root.exists()
        assert store.has_matching_digest("notes.txt", b"\x00" * 32) is False

    def test_commit_creates_root(self, store: FingerprintStore) -> None:
        digest = hashlib.sha256(b"hello").digest()

        store.commit("notes.txt", digest)

        assert store.root.is_dir()
        assert (store.root / "notes.txt").read_bytes() == digest

    def test_commit_then_match(self, store: FingerprintStore) -> None:
        digest = hashlib.sha256(b"hello").digest()
        store.commit("notes.txt", digest)

        assert store.has_matching_digest("notes.txt", digest) is True

    def test_different_digest_does_not_match(self, store: FingerprintStore) -> None:
        store.commit("notes.txt", hashlib.sha256(b"hello").digest())

        assert store.has_matching_digest("notes.txt", hashlib.sha256(b"bye").digest()) is False

    def test_length_mismatch_is_not_an_error(self, store: FingerprintStore) -> None:
        """A stored entry of another length is treated as no match."""
        digest = hashlib.sha256(b"hello").digest()
        store.commit("notes.txt", digest[:16])

        assert store.has_matching_digest("notes.txt", digest) is False

    def test_commit_replaces_prior_entry(self, store: FingerprintStore) -> None:
        old = hashlib.sha256(b"old").digest()
        new = hashlib.sha256(b"new").digest()
        store.commit("notes.txt", old)

        store.commit("notes.txt", new)

        assert store.has_matching_digest("notes.txt", new) is True
        assert store.has_matching_digest("notes.txt", old) is False

    def test_commit_leaves_no_temporary_files(self, store: FingerprintStore) -> None:
        store.commit("notes.txt", b"\x01" * 32)
        store.commit("notes.txt", b"\x02" * 32)

        assert [p.name for p in store.root.iterdir()] == ["notes.txt"]

    def test_failed_commit_keeps_old_entry(self, store: FingerprintStore) -> None:
        """A failed replace leaves the previous entry intact and cleans up."""
        old = b"\x01" * 32
        store.commit("notes.txt", old)

        with patch("fileindexer.index.fingerprints.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                store.commit("notes.txt", b"\x02" * 32)

        assert store.has_matching_digest("notes.txt", old) is True
        assert [p.name for p in store.root.iterdir()] == ["notes.txt"]

    def test_key_uses_base_name(self, store: FingerprintStore) -> None:
        """Keys with directories are stored under their base name."""
        assert store.entry_path("some/dir/notes.txt") == store.root / "notes.txt"

    def test_invalid_key(self, store: FingerprintStore) -> None:
        with pytest.raises(ValueError):
            store.entry_path("..")

    def test_forget(self, store: FingerprintStore) -> None:
        store.commit("notes.txt", b"\x01" * 32)

        assert store.forget("notes.txt") is True
        assert store.forget("notes.txt") is False
        assert store.has_matching_digest("notes.txt", b"\x01" * 32) is False

    def test_digest_delegates_to_compute_digest(
        self, store: FingerprintStore, tmp_path: Path
    ) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("hello world")

        assert store.digest(path) == compute_digest(path)
