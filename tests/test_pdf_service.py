"""Tests for PDF service."""

from pathlib import Path

import pdf2image
import pytest

from app.docproc.services.pdf_service import PDFConversionError, PDFService


class TestPDFService:
    """Tests for PDFService class."""

    def test_init_default_values(self):
        """Test PDFService initializes with default values."""
        service = PDFService()
        assert service.dpi == 200
        assert service.image_format == "PNG"

    def test_init_custom_values(self):
        """Test PDFService accepts custom configuration."""
        service = PDFService(dpi=300, image_format="JPEG")
        assert service.dpi == 300
        assert service.image_format == "JPEG"

    def test_text_layer_empty_file_raises_error(self):
        """Test that empty file raises PDFConversionError."""
        service = PDFService()
        with pytest.raises(PDFConversionError) as exc_info:
            service.extract_text_layer(b"")
        assert "Empty" in str(exc_info.value)

    def test_text_layer_invalid_pdf_raises_error(self):
        """Test that non-PDF content raises PDFConversionError."""
        service = PDFService()
        with pytest.raises(PDFConversionError) as exc_info:
            service.extract_text_layer(b"This is not a PDF")
        assert "Invalid PDF" in str(exc_info.value)

    def test_render_invalid_pdf_raises_error(self):
        """Test that rasterization validates the header before calling poppler."""
        service = PDFService()
        with pytest.raises(PDFConversionError) as exc_info:
            service.render_pages(b"This is not a PDF")
        assert "does not start" in str(exc_info.value)

    def test_extract_text_layer(self, text_pdf_bytes: bytes):
        """Test reading the embedded text of a PDF."""
        text = PDFService().extract_text_layer(text_pdf_bytes)
        assert "Hello World" in text
        assert "john.smith@example.com" in text

    def test_scanned_pdf_has_no_text(self, scanned_pdf_bytes: bytes):
        """Test that a page without text operators yields no text."""
        assert PDFService().extract_text_layer(scanned_pdf_bytes).strip() == ""


class FakeConverter:
    """Stands in for pdf2image.convert_from_bytes, writing pages into output_folder."""

    def __init__(self, pages: int = 2, error: Exception | None = None):
        self.pages = pages
        self.error = error
        self.output_folder: Path | None = None

    def __call__(self, pdf_bytes, output_folder=None, paths_only=False, **kwargs):
        self.output_folder = Path(output_folder)
        paths = []
        for n in range(1, self.pages + 1):
            path = self.output_folder / f"page-{n}.png"
            path.write_bytes(b"page-%d" % n)
            paths.append(str(path))
        if self.error is not None:
            raise self.error
        return paths


class TestRenderPages:
    """Tests for PDFService.render_pages temp directory handling."""

    def test_pages_are_read_and_temp_dir_removed(self, monkeypatch, scanned_pdf_bytes: bytes):
        """Test that rendered pages are returned and their directory is deleted."""
        converter = FakeConverter(pages=2)
        monkeypatch.setattr(pdf2image, "convert_from_bytes", converter)

        images = PDFService().render_pages(scanned_pdf_bytes)

        assert images == [b"page-1", b"page-2"]
        assert converter.output_folder is not None
        assert not converter.output_folder.exists()

    def test_temp_dir_removed_when_rendering_fails(self, monkeypatch, scanned_pdf_bytes: bytes):
        """Test that a failing conversion still deletes the pages written so far."""
        converter = FakeConverter(pages=1, error=RuntimeError("pdftoppm crashed"))
        monkeypatch.setattr(pdf2image, "convert_from_bytes", converter)

        with pytest.raises(PDFConversionError) as exc_info:
            PDFService().render_pages(scanned_pdf_bytes)

        assert "pdftoppm crashed" in str(exc_info.value)
        assert converter.output_folder is not None
        assert not converter.output_folder.exists()
