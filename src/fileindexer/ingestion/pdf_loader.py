"""PDF text extraction.

Uses PyMuPDF (fitz) to read the text layer. Pages without one (scans) are
rendered at the configured density and handed to OCR.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import fitz  # PyMuPDF
from PIL import Image

from fileindexer.ingestion.ocr import OcrExtractor
from fileindexer.utils.text import normalize_whitespace

LOGGER = logging.getLogger(__name__)


def iter_page_text(doc: "fitz.Document") -> Iterator[tuple[int, str]]:
    """Yield ``(page_index, text)`` for each page's text layer."""
    for index in range(len(doc)):
        page = doc[index]
        yield index, normalize_whitespace((page.get_text() or "").splitlines())


def render_page(page: "fitz.Page", *, density: int) -> Image.Image:
    pix = page.get_pixmap(dpi=density)
    mode = "RGBA" if pix.alpha else "RGB"
    return Image.frombytes(mode, (pix.width, pix.height), pix.samples)


class PdfExtractor:
    """Extract text from a PDF, falling back to OCR page by page."""

    def __init__(self, ocr: OcrExtractor | None, *, density: int = 300) -> None:
        self.ocr = ocr
        self.density = density

    def __call__(self, path: Path) -> str:
        doc = fitz.open(path)
        try:
            parts = []
            for index, text in iter_page_text(doc):
                if not text and self.ocr is not None:
                    LOGGER.info("Page %s of %s has no text layer, running OCR", index, path)
                    text = self.ocr.ocr_image(render_page(doc[index], density=self.density))
                if text:
                    parts.append(text)
            return "\n".join(parts)
        finally:
            doc.close()
