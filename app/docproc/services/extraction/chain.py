"""
Escalating text extraction.

Runs the strategies in order (direct text, OCR, heuristic salvage) and
stops at the first one whose output is usable. Always produces some text.
"""

import logging
from dataclasses import dataclass, field

from ..exceptions import ExtractionDegraded, UnsupportedMediaTypeError
from .strategies import (
    OCR_FAILURE_PATTERN,
    DirectTextStrategy,
    ExtractionAttempt,
    ExtractionStrategy,
    HeuristicSalvageStrategy,
    OCRStrategy,
    is_image,
    is_pdf,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = "Document text could not be extracted."


@dataclass
class ExtractionOutcome:
    """
    Result of running the chain.

    Attributes:
        text: Extracted text, or the placeholder. Never empty.
        strategy: Name of the strategy that produced the text, or "placeholder".
        degraded: True when the text did not come from a quality-gated strategy.
        attempts: Every attempt made, in order.
    """

    text: str
    strategy: str
    degraded: bool
    attempts: list[ExtractionAttempt] = field(default_factory=list)


class ExtractionChain:
    """
    Ordered list of extraction strategies with a quality gate.

    Args:
        strategies: Strategies in escalation order.
    """

    def __init__(self, strategies: list[ExtractionStrategy]):
        self.strategies = strategies

    @staticmethod
    def supports(mime_type: str) -> bool:
        return is_pdf(mime_type) or is_image(mime_type)

    async def extract(self, data: bytes, mime_type: str) -> str:
        """
        Extract text from a document.

        Returns:
            Extracted text or a human-readable placeholder.

        Raises:
            UnsupportedMediaTypeError: If the MIME type is neither PDF nor image.
        """
        outcome = await self.run(data, mime_type)
        return outcome.text

    async def run(self, data: bytes, mime_type: str) -> ExtractionOutcome:
        """Like extract(), returning which strategy won and every attempt."""
        mime_type = (mime_type or "").lower()
        if not self.supports(mime_type):
            raise UnsupportedMediaTypeError(mime_type)

        attempts: list[ExtractionAttempt] = []
        try:
            return await self._run_strategies(data, mime_type, attempts)
        except ExtractionDegraded as e:
            logger.warning("Extraction degraded: %s", e)
            return self._best_effort(attempts)

    async def _run_strategies(
        self,
        data: bytes,
        mime_type: str,
        attempts: list[ExtractionAttempt],
    ) -> ExtractionOutcome:
        for strategy in self.strategies:
            if not strategy.supports(mime_type):
                continue

            # Salvage only runs when the gated strategies read nothing clean
            if not strategy.gated and self._best_candidate(attempts) is not None:
                logger.info("Skipping %s: a gated strategy produced clean text", strategy.name)
                break

            attempt = await strategy.try_extract(data, mime_type)
            attempts.append(attempt)

            if attempt.is_usable:
                logger.info(
                    "Extraction succeeded with %s (%d chars)",
                    strategy.name,
                    len(attempt.text),
                )
                return ExtractionOutcome(
                    text=attempt.text,
                    strategy=strategy.name,
                    degraded=not strategy.gated,
                    attempts=attempts,
                )

            logger.info(
                "Strategy %s did not yield usable text: %s",
                strategy.name,
                attempt.quality.metrics if attempt.quality else "empty",
            )

        raise ExtractionDegraded(
            f"no usable text after {len(attempts)} strategy attempt(s)"
        )

    @staticmethod
    def _best_candidate(attempts: list[ExtractionAttempt]) -> ExtractionAttempt | None:
        """Most readable rejected attempt without control characters or only failure markers."""
        candidates = [
            a
            for a in attempts
            if a.quality is not None
            and not a.quality.metrics.get("has_control_chars")
            and OCR_FAILURE_PATTERN.sub("", a.text).strip()
        ]
        if not candidates:
            return None
        return max(
            candidates,
            key=lambda a: (a.quality.metrics.get("readable_ratio", 0.0), len(a.text)),
        )

    def _best_effort(self, attempts: list[ExtractionAttempt]) -> ExtractionOutcome:
        """
        Pick the most readable rejected candidate, if any is clean enough.

        Short but genuine text (a photo of a single line) fails the length
        check yet beats both salvage and the placeholder.
        """
        best = self._best_candidate(attempts)
        if best is not None:
            logger.info("Using best-effort text from %s", best.strategy)
            return ExtractionOutcome(
                text=best.text,
                strategy=best.strategy,
                degraded=True,
                attempts=attempts,
            )

        return ExtractionOutcome(
            text=PLACEHOLDER_TEXT,
            strategy="placeholder",
            degraded=True,
            attempts=attempts,
        )


def build_extraction_chain(
    pdf_service=None,
    ocr_engine=None,
    settings=None,
) -> ExtractionChain:
    """
    Build the default direct text -> OCR -> salvage chain.

    Collaborators default to the process-wide singletons.
    """
    from ...config import get_settings
    from ..ocr_service import get_ocr_engine
    from ..pdf_service import get_pdf_service

    settings = settings or get_settings()
    pdf_service = pdf_service or get_pdf_service()
    ocr_engine = ocr_engine or get_ocr_engine()

    return ExtractionChain(
        [
            DirectTextStrategy(pdf_service),
            OCRStrategy(
                pdf_service,
                ocr_engine,
                language=settings.ocr_language,
                max_pages=settings.ocr_max_pages,
                dpi=settings.ocr_dpi,
            ),
            HeuristicSalvageStrategy(),
        ]
    )
