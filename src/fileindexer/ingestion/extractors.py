"""Built-in extractors and the default registry."""

from __future__ import annotations

from pathlib import Path

from fileindexer.config import AppConfig
from fileindexer.ingestion.ocr import OcrExtractor
from fileindexer.ingestion.pdf_loader import PdfExtractor
from fileindexer.ingestion.registry import ExtractorRegistry


def read_plain_text(path: Path) -> str:
    """Return the file content decoded as UTF-8, replacing undecodable bytes."""
    return Path(path).read_bytes().decode("utf-8", errors="replace")


def default_registry(config: AppConfig | None = None) -> ExtractorRegistry:
    """Build a registry holding the built-in handlers.

    ``text`` and ``image`` are category handlers; ``application/pdf`` and
    ``application/javascript`` are exact-type handlers.
    """
    config = config or AppConfig()
    ocr = OcrExtractor(config.tess_data_prefix, language=config.ocr_language)

    registry = ExtractorRegistry()
    registry.register("text", read_plain_text)
    registry.register("image", ocr)
    registry.register("application/javascript", read_plain_text)
    registry.register("application/pdf", PdfExtractor(ocr, density=config.pdf_density))
    return registry
