"""Tests for the OCR engine wrapper."""

import pytest

from app.docproc.services.ocr_service import OCREngine, OCRError


class TestOCREngine:
    """Tests for OCREngine class."""

    def test_default_language(self):
        assert OCREngine().default_language == "eng"

    def test_empty_image_raises_error(self):
        with pytest.raises(OCRError) as exc_info:
            OCREngine().recognize(b"")
        assert "Empty" in str(exc_info.value)

    def test_undecodable_image_raises_error(self):
        """Test that bytes Pillow cannot open are reported as OCRError."""
        with pytest.raises(OCRError):
            OCREngine().recognize(b"definitely not an image")
