"""
PDF processing service using pypdf and pdf2image (poppler).

Reads the embedded text layer of a PDF and renders pages to images for OCR.
"""

import io
import logging
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class PDFConversionError(Exception):
    """Raised when PDF conversion fails."""

    pass


def _validate_pdf_bytes(pdf_bytes: bytes) -> None:
    if not pdf_bytes:
        raise PDFConversionError("Empty PDF file provided")

    # Validate PDF magic bytes
    if not pdf_bytes[:4] == b"%PDF":
        raise PDFConversionError(
            "Invalid PDF file: does not start with PDF header"
        )


class PDFService:
    """
    Service for PDF processing operations.

    Uses pypdf for the text layer and pdf2image (backed by poppler) to
    rasterize pages.
    """

    def __init__(self, dpi: int = 200, image_format: str = "PNG"):
        """
        Initialize the PDF service.

        Args:
            dpi: Resolution for PDF to image conversion. Higher = better OCR but slower.
            image_format: Output image format (PNG recommended for OCR).
        """
        self.dpi = dpi
        self.image_format = image_format

    def extract_text_layer(self, pdf_bytes: bytes) -> str:
        """
        Extract the embedded text of every page.

        Args:
            pdf_bytes: PDF file as bytes.

        Returns:
            Page texts joined with newlines. Empty for scanned documents.

        Raises:
            PDFConversionError: If the PDF cannot be read.
        """
        _validate_pdf_bytes(pdf_bytes)

        from pypdf import PdfReader
        from pypdf.errors import PdfReadError

        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
            pages = [page.extract_text() or "" for page in reader.pages]
        except PdfReadError as e:
            logger.error("PDF read error: %s", e)
            raise PDFConversionError(f"Invalid or corrupted PDF file: {e}") from e
        except Exception as e:
            logger.exception("Unexpected error reading PDF text layer")
            raise PDFConversionError(f"PDF text extraction failed: {e}") from e

        logger.info("Read text layer from %d page(s)", len(pages))
        return "\n".join(pages)

    def render_pages(
        self,
        pdf_bytes: bytes,
        first_page: int | None = None,
        last_page: int | None = None,
        dpi: int | None = None,
    ) -> list[bytes]:
        """
        Render PDF pages to encoded images.

        Pages are written to a private temporary directory which is removed
        before returning, whether rendering succeeded or not.

        Args:
            pdf_bytes: PDF file as bytes.
            first_page: First page to convert (1-indexed, inclusive). None for first page.
            last_page: Last page to convert (1-indexed, inclusive). None for last page.
            dpi: Override for the service resolution.

        Returns:
            One encoded image per page, in page order.

        Raises:
            PDFConversionError: If conversion fails for any reason.
        """
        _validate_pdf_bytes(pdf_bytes)

        from pdf2image import convert_from_bytes
        from pdf2image.exceptions import (
            PDFInfoNotInstalledError,
            PDFPageCountError,
            PDFSyntaxError,
        )

        dpi = dpi or self.dpi
        fmt = self.image_format.lower()

        try:
            with tempfile.TemporaryDirectory(prefix="docproc-pages-") as output_folder:
                logger.info(
                    "Rendering PDF pages (dpi=%d, pages=%s-%s)",
                    dpi,
                    first_page or "first",
                    last_page or "last",
                )
                paths = convert_from_bytes(
                    pdf_bytes,
                    dpi=dpi,
                    fmt=fmt,
                    first_page=first_page,
                    last_page=last_page,
                    output_folder=output_folder,
                    paths_only=True,
                )
                images = [Path(path).read_bytes() for path in paths]

            logger.info("Successfully rendered %d page(s)", len(images))
            return images

        except PDFInfoNotInstalledError as e:
            logger.error("Poppler not installed: %s", e)
            raise PDFConversionError(
                "Poppler not installed. Install poppler-utils: "
                "brew install poppler (macOS) or apt-get install poppler-utils (Linux)"
            ) from e

        except PDFPageCountError as e:
            logger.error("Could not get PDF page count: %s", e)
            raise PDFConversionError(
                f"Could not determine PDF page count: {e}"
            ) from e

        except PDFSyntaxError as e:
            logger.error("PDF syntax error: %s", e)
            raise PDFConversionError(f"Invalid or corrupted PDF file: {e}") from e

        except Exception as e:
            logger.exception("Unexpected error during PDF rendering")
            raise PDFConversionError(f"PDF rendering failed: {e}") from e


# Singleton instance for convenience
_pdf_service: PDFService | None = None


def get_pdf_service() -> PDFService:
    """Get or create the PDF service singleton."""
    global _pdf_service
    if _pdf_service is None:
        from ..config import get_settings

        _pdf_service = PDFService(dpi=get_settings().ocr_dpi)
    return _pdf_service
