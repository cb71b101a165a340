"""
Best-effort JSON parsing of model answers.

Language models wrap JSON in markdown fences or surround it with prose.
parse_json_from_text() tries a fenced block first, then the first
balanced top-level object, and reports failure instead of raising.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

FENCED_BLOCK = re.compile(r"```(?:json|JSON)?[ \t]*\n?(.*?)```", re.DOTALL)

PARSE_FAILURE_MESSAGE = "AI response could not be parsed as JSON"


@dataclass
class ParseResult:
    """Outcome of a best-effort parse."""

    data: dict[str, Any] | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.data is not None


def find_balanced_object(text: str) -> str | None:
    """
    Return the first brace-balanced ``{...}`` span in text.

    Braces inside JSON string literals are ignored. Returns None when no
    opening brace exists or the object is never closed.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def json_candidates(text: str) -> list[str]:
    """
    Parts of a model answer that may hold the JSON payload, most likely first.

    A fenced block comes first, then the first balanced object anywhere in
    the answer, then the whole answer.
    """
    candidates = []
    fenced = FENCED_BLOCK.search(text)
    if fenced:
        candidates.append(fenced.group(1).strip())

    balanced = find_balanced_object(text)
    if balanced is not None:
        candidates.append(balanced)

    candidates.append(text.strip())
    return list(dict.fromkeys(candidates))


def parse_json_from_text(text: str | None) -> ParseResult:
    """
    Parse a JSON object out of free-form model output.

    Each candidate is tried in turn and the first JSON object wins. The
    error reported on failure is the one from the most likely candidate.

    Args:
        text: Raw model answer.

    Returns:
        ParseResult with the parsed object, or with ``error`` set.
    """
    if not text or not text.strip():
        return ParseResult(data=None, error="Empty response")

    first_error = None
    for candidate in json_candidates(text):
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError as e:
            error = f"Invalid JSON: {e}"
        else:
            if isinstance(data, dict):
                return ParseResult(data=data)
            error = f"Expected a JSON object, got {type(data).__name__}"
        first_error = first_error or error

    logger.warning("Failed to parse JSON from response: %s", first_error)
    return ParseResult(data=None, error=first_error)


def unparseable_record(raw_response: str) -> dict[str, Any]:
    """Degraded record returned when an answer cannot be parsed."""
    return {
        "rawResponse": raw_response,
        "error": PARSE_FAILURE_MESSAGE,
        "extractedData": raw_response,
    }
