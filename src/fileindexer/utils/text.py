"""Text helpers used before handing documents to the index."""

from __future__ import annotations

from html.parser import HTMLParser
from typing import Iterable


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())


class _TextCollector(HTMLParser):
    _SKIPPED = {"script", "style"}

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.parts: list[str] = []
        self._skip_depth = 0

    def handle_starttag(self, tag: str, attrs) -> None:
        if tag in self._SKIPPED:
            self._skip_depth += 1

    def handle_endtag(self, tag: str) -> None:
        if tag in self._SKIPPED and self._skip_depth:
            self._skip_depth -= 1

    def handle_data(self, data: str) -> None:
        if not self._skip_depth:
            self.parts.append(data)


def strip_html(markup: str) -> str:
    """Drop tags, scripts and styles from HTML, keeping the readable text."""
    collector = _TextCollector()
    collector.feed(markup)
    collector.close()
    return normalize_whitespace("".join(collector.parts).splitlines())
