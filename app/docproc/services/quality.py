"""
Text quality assessment.

Separates genuine prose from the binary or garbled output that text
extraction produces for PDFs without a usable text layer.
"""

import re
from dataclasses import dataclass, field
from typing import Any

MIN_TEXT_LENGTH = 50
MIN_READABLE_RATIO = 0.6
MIN_AVG_WORD_LENGTH = 2.5

READABLE_CHARS = re.compile(r"[\w\s.,;:!?'\"()\[\]{}\-/@#$%&*+=<>]")
# C0 controls other than tab/newline/carriage return, DEL and the C1 range
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


@dataclass
class QualityReport:
    """Outcome of a quality check."""

    is_acceptable: bool
    metrics: dict[str, Any] = field(default_factory=dict)


def assess_text_quality(text: str | None) -> QualityReport:
    """
    Decide whether extracted text looks like real content.

    All of the following must hold:
    - more than 50 characters after trimming
    - more than 60% of characters are letters, digits, whitespace or
      common punctuation
    - words longer than 2 characters average more than 2.5 characters
    - no control or non-printable high-byte characters

    Args:
        text: Extracted text, possibly empty.

    Returns:
        QualityReport with the verdict and the measured values.
    """
    text = text or ""
    stripped = text.strip()
    length = len(stripped)

    readable = len(READABLE_CHARS.findall(stripped))
    readable_ratio = readable / length if length else 0.0

    words = [w for w in stripped.split() if len(w) > 2]
    avg_word_length = sum(len(w) for w in words) / len(words) if words else 0.0

    has_control_chars = bool(CONTROL_CHARS.search(text))

    is_acceptable = (
        length > MIN_TEXT_LENGTH
        and readable_ratio > MIN_READABLE_RATIO
        and avg_word_length > MIN_AVG_WORD_LENGTH
        and not has_control_chars
    )

    return QualityReport(
        is_acceptable=is_acceptable,
        metrics={
            "length": length,
            "readable_ratio": round(readable_ratio, 3),
            "avg_word_length": round(avg_word_length, 2),
            "has_control_chars": has_control_chars,
        },
    )
