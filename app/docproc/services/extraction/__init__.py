"""
Text extraction package.

- cleaning: Text normalization helpers
- strategies: Direct text, OCR and heuristic salvage strategies
- chain: Quality-gated escalation across the strategies
"""

from .chain import PLACEHOLDER_TEXT, ExtractionChain, ExtractionOutcome, build_extraction_chain
from .strategies import (
    DirectTextStrategy,
    ExtractionAttempt,
    ExtractionStrategy,
    HeuristicSalvageStrategy,
    OCRStrategy,
)

__all__ = [
    "PLACEHOLDER_TEXT",
    "DirectTextStrategy",
    "ExtractionAttempt",
    "ExtractionChain",
    "ExtractionOutcome",
    "ExtractionStrategy",
    "HeuristicSalvageStrategy",
    "OCRStrategy",
    "build_extraction_chain",
]
