"""
OCR service using pytesseract (Tesseract).

Recognizes text in encoded images such as uploaded photos/scans or
rasterized PDF pages.
"""

import io
import logging

from PIL import Image

logger = logging.getLogger(__name__)


class OCRError(Exception):
    """Raised when an image cannot be recognized."""

    pass


class OCREngine:
    """
    Thin wrapper around Tesseract.

    Args:
        default_language: Tesseract language code used when none is given.
    """

    def __init__(self, default_language: str = "eng"):
        self.default_language = default_language

    def recognize(self, image_bytes: bytes, language: str | None = None) -> str:
        """
        Run OCR on an encoded image.

        Args:
            image_bytes: PNG/JPEG (or any Pillow-readable) image content.
            language: Tesseract language code, defaults to the engine's.

        Returns:
            Recognized text, possibly empty.

        Raises:
            OCRError: If the image cannot be decoded or Tesseract fails.
        """
        import pytesseract

        if not image_bytes:
            raise OCRError("Empty image provided")

        language = language or self.default_language
        try:
            with Image.open(io.BytesIO(image_bytes)) as image:
                # Tesseract handles RGB/L best; palette and alpha images confuse it
                if image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")
                logger.debug(
                    "Recognizing image %dx%d (lang=%s)",
                    image.size[0],
                    image.size[1],
                    language,
                )
                text = pytesseract.image_to_string(image, lang=language)
        except pytesseract.TesseractNotFoundError as e:
            logger.error("Tesseract not installed: %s", e)
            raise OCRError(
                "Tesseract not installed. Install tesseract-ocr: "
                "brew install tesseract (macOS) or apt-get install tesseract-ocr (Linux)"
            ) from e
        except Exception as e:
            logger.warning("OCR failed: %s", e)
            raise OCRError(f"OCR failed: {e}") from e

        logger.debug("Recognized %d characters", len(text))
        return text or ""


_ocr_engine: OCREngine | None = None


def get_ocr_engine() -> OCREngine:
    """Get or create the OCR engine singleton."""
    global _ocr_engine
    if _ocr_engine is None:
        from ..config import get_settings

        _ocr_engine = OCREngine(default_language=get_settings().ocr_language)
    return _ocr_engine
