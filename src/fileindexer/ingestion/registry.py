"""Content type to extractor dispatch.

Extractors are looked up by exact content type first (``application/pdf``)
and then by category, the part before the first ``/`` (``image``, ``text``).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Iterator

from fileindexer.errors import DuplicateTypeError, UnsupportedTypeError

LOGGER = logging.getLogger(__name__)

Extractor = Callable[[Path], str]


def split_category(mime_type: str) -> str:
    return mime_type.split("/", 1)[0]


class ExtractorRegistry:
    """Maps type keys to extractors. The first registration for a key wins."""

    def __init__(self) -> None:
        self._extractors: Dict[str, Extractor] = {}

    def register(self, type_key: str, extractor: Extractor) -> None:
        if type_key in self._extractors:
            raise DuplicateTypeError(type_key)
        self._extractors[type_key] = extractor

    def resolve(self, full_type: str, category: str | None = None) -> Extractor:
        if full_type in self._extractors:
            return self._extractors[full_type]
        if category is None:
            category = split_category(full_type)
        LOGGER.debug("Detected mime category: %r", category)
        if category in self._extractors:
            return self._extractors[category]
        raise UnsupportedTypeError(full_type)

    def keys(self) -> Iterator[str]:
        return iter(self._extractors)

    def __contains__(self, type_key: object) -> bool:
        return type_key in self._extractors

    def __len__(self) -> int:
        return len(self._extractors)
