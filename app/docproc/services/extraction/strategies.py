"""
Text extraction strategies.

Each strategy turns document bytes into an ExtractionAttempt. The chain
tries them in order until one yields text the quality gate accepts.
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..ocr_service import OCREngine
from ..pdf_service import PDFConversionError, PDFService
from ..quality import QualityReport, assess_text_quality
from .cleaning import clean_ocr_text, clean_text_layer, collapse_whitespace

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"

OCR_FAILURE_MARKER = "[OCR failed for page {page}]"
OCR_FAILURE_PATTERN = re.compile(r"\[OCR failed for page \d+\]")


def is_pdf(mime_type: str) -> bool:
    return mime_type == PDF_MIME_TYPE


def is_image(mime_type: str) -> bool:
    return mime_type.startswith("image/")


@dataclass
class ExtractionAttempt:
    """
    Text produced by one strategy.

    Attributes:
        strategy: Name of the strategy that produced the text.
        text: Cleaned text, empty when nothing was found.
        quality: Quality report, None for strategies outside the quality gate.
        warnings: Recoverable problems met along the way.
    """

    strategy: str
    text: str
    quality: QualityReport | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def is_usable(self) -> bool:
        if not self.text.strip():
            return False
        if self.quality is None:
            return True
        return self.quality.is_acceptable


class ExtractionStrategy(ABC):
    """Base class for extraction strategies."""

    name: str = "strategy"
    # Strategies outside the quality gate are accepted on any non-empty text
    gated: bool = True

    @abstractmethod
    def supports(self, mime_type: str) -> bool:
        """Whether this strategy can handle the MIME type."""

    @abstractmethod
    async def try_extract(self, data: bytes, mime_type: str) -> ExtractionAttempt:
        """Extract text from the document. Must not raise for "no text"."""

    def _attempt(self, text: str, warnings: list[str] | None = None) -> ExtractionAttempt:
        quality = assess_text_quality(text) if self.gated else None
        return ExtractionAttempt(
            strategy=self.name,
            text=text,
            quality=quality,
            warnings=warnings or [],
        )


class DirectTextStrategy(ExtractionStrategy):
    """Read the embedded text layer of a PDF."""

    name = "direct_text"

    def __init__(self, pdf_service: PDFService):
        self.pdf_service = pdf_service

    def supports(self, mime_type: str) -> bool:
        return is_pdf(mime_type)

    async def try_extract(self, data: bytes, mime_type: str) -> ExtractionAttempt:
        try:
            raw = await asyncio.to_thread(self.pdf_service.extract_text_layer, data)
        except PDFConversionError as e:
            logger.warning("Text layer unavailable: %s", e)
            return self._attempt("", warnings=[str(e)])

        return self._attempt(clean_text_layer(raw))


class OCRStrategy(ExtractionStrategy):
    """
    Optical character recognition.

    PDFs are rasterized (first ``max_pages`` pages) and recognized page by
    page; images are recognized directly. A page that fails is recorded
    inline and the remaining pages are still processed.
    """

    name = "ocr"

    def __init__(
        self,
        pdf_service: PDFService,
        ocr_engine: OCREngine,
        language: str = "eng",
        max_pages: int = 5,
        dpi: int | None = None,
    ):
        self.pdf_service = pdf_service
        self.ocr_engine = ocr_engine
        self.language = language
        self.max_pages = max_pages
        self.dpi = dpi

    def supports(self, mime_type: str) -> bool:
        return is_pdf(mime_type) or is_image(mime_type)

    async def try_extract(self, data: bytes, mime_type: str) -> ExtractionAttempt:
        if is_pdf(mime_type):
            return await self._extract_pdf(data)
        return await self._extract_image(data)

    async def _extract_image(self, data: bytes) -> ExtractionAttempt:
        try:
            text = await asyncio.to_thread(self.ocr_engine.recognize, data, self.language)
        except Exception as e:
            logger.warning("OCR failed for image: %s", e)
            return self._attempt("", warnings=[f"OCR failed: {e}"])
        return self._attempt(clean_ocr_text(text))

    async def _extract_pdf(self, data: bytes) -> ExtractionAttempt:
        try:
            pages = await asyncio.to_thread(
                self.pdf_service.render_pages,
                data,
                1,
                self.max_pages,
                self.dpi,
            )
        except PDFConversionError as e:
            logger.warning("Rasterization failed, skipping OCR: %s", e)
            return self._attempt("", warnings=[str(e)])

        texts: list[str] = []
        warnings: list[str] = []
        for page_number, image in enumerate(pages, start=1):
            try:
                text = await asyncio.to_thread(
                    self.ocr_engine.recognize, image, self.language
                )
            except Exception as e:
                logger.warning("OCR failed for page %d: %s", page_number, e)
                warnings.append(f"Page {page_number}: {e}")
                texts.append(OCR_FAILURE_MARKER.format(page=page_number))
                continue
            logger.debug(
                "OCR progress: page %d/%d recognized", page_number, len(pages)
            )
            texts.append(clean_ocr_text(text))

        logger.info(
            "OCR finished: %d page(s), %d failed", len(pages), len(warnings)
        )
        return self._attempt("\n\n".join(texts).strip(), warnings=warnings)


class HeuristicSalvageStrategy(ExtractionStrategy):
    """
    Last resort: scan the raw bytes for text-shaped fragments.

    Picks up emails, dates, capitalised names and multi-word phrases that
    survive uncompressed in the file. Not subject to the quality gate.
    """

    name = "heuristic_salvage"
    gated = False

    PATTERNS = [
        re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
        re.compile(r"\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b"),
        re.compile(r"\b\d{4}-\d{2}-\d{2}\b"),
        re.compile(
            r"\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]* \d{1,2},? \d{4}\b"
        ),
        re.compile(r"\b[A-Z][a-z]+(?: [A-Z][a-z]+)+\b"),
        re.compile(r"\b[A-Za-z]{3,}(?: [A-Za-z]{3,}){2,}\b"),
    ]
    PDF_SYNTAX_WORDS = {"obj", "endobj", "stream", "endstream", "xref", "trailer", "startxref"}

    def __init__(self, max_fragments: int = 200):
        self.max_fragments = max_fragments

    def supports(self, mime_type: str) -> bool:
        return True

    async def try_extract(self, data: bytes, mime_type: str) -> ExtractionAttempt:
        text = data.decode("latin-1")

        fragments: list[str] = []
        seen: set[str] = set()
        for pattern in self.PATTERNS:
            for match in pattern.finditer(text):
                fragment = collapse_whitespace(match.group(0))
                words = set(fragment.lower().split())
                if fragment in seen or words <= self.PDF_SYNTAX_WORDS:
                    continue
                seen.add(fragment)
                fragments.append(fragment)
                if len(fragments) >= self.max_fragments:
                    break
            if len(fragments) >= self.max_fragments:
                break

        logger.info("Salvaged %d fragment(s) from raw bytes", len(fragments))
        return self._attempt(" ".join(fragments))
