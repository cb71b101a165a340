"""
Text normalization for extracted document text.
"""

import re

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
WHITESPACE_RUN = re.compile(r"\s+")
# "J O H N" -> "JOHN": an isolated capital followed by another isolated capital
SPACED_CAPITALS = re.compile(r"\b([A-Z]) (?=[A-Z]\b)")
# "end of lineNext line" -> "end of line. Next line"
MISSING_SENTENCE_BREAK = re.compile(r"(?<=[a-z]{2})(?=[A-Z][a-z])")
OCR_NOISE = re.compile(r"[^\w\s.,!?;:()\-@#$%&*+/=<>\[\]{}'\"]")


def strip_control_chars(text: str) -> str:
    return CONTROL_CHARS.sub(" ", text)


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_RUN.sub(" ", text).strip()


def clean_text_layer(text: str) -> str:
    """
    Normalize text read from a PDF text layer.

    Removes control characters, collapses whitespace, rejoins letters of
    spaced-out capitals and restores sentence breaks lost at line joins.
    """
    text = collapse_whitespace(strip_control_chars(text))
    text = SPACED_CAPITALS.sub(r"\1", text)
    text = MISSING_SENTENCE_BREAK.sub(". ", text)
    return text


def clean_ocr_text(text: str) -> str:
    """Collapse whitespace and drop stray symbols Tesseract emits for specks and lines."""
    text = collapse_whitespace(strip_control_chars(text))
    return OCR_NOISE.sub("", text)
