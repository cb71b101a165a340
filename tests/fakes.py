"""Fakes and document builders shared by the tests."""

from app.docproc.services.ai import StructuringService
from app.docproc.services.extraction import (
    DirectTextStrategy,
    ExtractionChain,
    HeuristicSalvageStrategy,
    OCRStrategy,
)
from app.docproc.services.job_manager import JobManager
from app.docproc.services.ocr_service import OCRError
from app.docproc.services.pdf_service import PDFConversionError
from app.docproc.services.storage import BlobStore, JobStore

GOOD_TEXT = (
    "Patient John Smith was seen at the Springfield clinic for a routine "
    "checkup. Contact john.smith@example.com or (555) 123-4567 with any "
    "questions about the visit."
)


# =============================================================================
# Document Builders
# =============================================================================


def _escape_pdf_string(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def build_pdf(lines: list[str] | None = None) -> bytes:
    """
    Build a one-page PDF with correct xref offsets.

    Each line is drawn with the standard Helvetica font, so the text layer
    is readable by pypdf. With no lines the page has no text at all, like
    a scanned document.
    """
    content = ["BT", "/F1 12 Tf", "72 720 Td", "14 TL"]
    for line in lines or []:
        content.append(f"({_escape_pdf_string(line)}) Tj T*")
    content.append("ET")
    stream = "\n".join(content).encode("latin-1")

    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 5 0 R >> >> /Contents 4 0 R >>",
        b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]

    pdf = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(pdf))
        pdf += b"%d 0 obj\n" % number + body + b"\nendobj\n"

    xref_offset = len(pdf)
    pdf += b"xref\n0 %d\n" % (len(objects) + 1)
    pdf += b"0000000000 65535 f \n"
    for offset in offsets:
        pdf += b"%010d 00000 n \n" % offset
    pdf += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    pdf += b"startxref\n%d\n%%%%EOF\n" % xref_offset
    return bytes(pdf)


# =============================================================================
# Fakes
# =============================================================================


class FakeOCREngine:
    """
    OCR engine returning canned text per image.

    Images listed in ``failing`` raise OCRError.
    """

    def __init__(self, texts: dict[bytes, str] | None = None, default: str = "", failing=()):
        self.texts = texts or {}
        self.default = default
        self.failing = set(failing)
        self.calls: list[bytes] = []

    def recognize(self, image_bytes: bytes, language: str | None = None) -> str:
        self.calls.append(image_bytes)
        if image_bytes in self.failing:
            raise OCRError("Tesseract crashed")
        return self.texts.get(image_bytes, self.default)


class FakePDFService:
    """
    PDF service with a canned text layer and canned page images.

    ``text_layer=None`` makes the text layer unreadable and
    ``render_error`` makes rasterization fail.
    """

    def __init__(
        self,
        text_layer: str | None = "",
        pages: list[bytes] | None = None,
        render_error: str | None = None,
    ):
        self.text_layer = text_layer
        self.pages = pages or []
        self.render_error = render_error
        self.render_calls: list[tuple] = []

    def extract_text_layer(self, pdf_bytes: bytes) -> str:
        if self.text_layer is None:
            raise PDFConversionError("Invalid or corrupted PDF file")
        return self.text_layer

    def render_pages(self, pdf_bytes, first_page=None, last_page=None, dpi=None) -> list[bytes]:
        self.render_calls.append((first_page, last_page, dpi))
        if self.render_error:
            raise PDFConversionError(self.render_error)
        start = (first_page or 1) - 1
        return self.pages[start:last_page]


class FakeGenerator:
    """Text generator returning a canned answer or raising a canned error."""

    def __init__(self, answer: str = "", error: Exception | None = None):
        self.answer = answer
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer


def make_chain(pdf_service, ocr_engine, max_pages: int = 5) -> ExtractionChain:
    """Default strategy order wired to the given collaborators."""
    return ExtractionChain(
        [
            DirectTextStrategy(pdf_service),
            OCRStrategy(pdf_service, ocr_engine, max_pages=max_pages),
            HeuristicSalvageStrategy(),
        ]
    )


def make_manager(
    chain=None,
    structuring_service=None,
    job_store=None,
    ocr_engine=None,
) -> JobManager:
    if chain is None:
        chain = make_chain(
            FakePDFService(render_error="Poppler not installed"),
            ocr_engine or FakeOCREngine(default=GOOD_TEXT),
        )
    return JobManager(
        blob_store=BlobStore(),
        job_store=job_store or JobStore(),
        extraction_chain=chain,
        structuring_service=structuring_service or StructuringService(use_mock=True),
        max_workers=2,
    )

