"""Optical character recognition for images and rasterised pages.

Uses Tesseract through pytesseract and Pillow for image decoding.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytesseract
from PIL import Image

LOGGER = logging.getLogger(__name__)


class OcrExtractor:
    """Extract text from an image file with Tesseract."""

    def __init__(
        self,
        tess_data_prefix: Path | None = None,
        *,
        language: str = "eng",
        psm: int = 3,
    ) -> None:
        self.tess_data_prefix = Path(tess_data_prefix) if tess_data_prefix else None
        self.language = language
        self.psm = psm

    @property
    def tesseract_config(self) -> str:
        options = [f"--psm {self.psm}"]
        if self.tess_data_prefix is not None:
            options.append(f'--tessdata-dir "{self.tess_data_prefix / "tessdata"}"')
        return " ".join(options)

    def ocr_image(self, image: Image.Image) -> str:
        return pytesseract.image_to_string(
            image, lang=self.language, config=self.tesseract_config
        )

    def __call__(self, path: Path) -> str:
        LOGGER.info("Running OCR on %s", path)
        with Image.open(path) as image:
            return self.ocr_image(image)
