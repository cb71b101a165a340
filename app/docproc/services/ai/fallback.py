"""
Deterministic local structuring.

Used when no AI service is configured or the service call fails. Finds
contact details, ID numbers, dates and addresses with regular expressions
and returns them in the same shape the AI service is asked for.
"""

import logging
import re
from datetime import date
from typing import Any

from ...models import ContactInfo, PersonalInfo, StructuredRecord
from ..utils import calculate_age

logger = logging.getLogger(__name__)

MAX_DATES = 5
MAX_ADDRESSES = 3

LOCAL_NOTE = "Generated by local pattern matching, not by AI. Configure OPENAI_API_KEY for AI extraction."
LOCAL_SUMMARY = "Structured locally with pattern matching; no AI summary is available."

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_PATTERN = re.compile(r"(?<![\w+])(?:\+\d{1,2}\s?)?\(?\d{3}\)?[\s.-]?\d{3}[\s.-]?\d{4}\b")
ID_NUMBER_PATTERN = re.compile(r"\b\d{3}-?\d{2}-?\d{4}\b")

DATE_PATTERNS = [
    re.compile(r"\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b"),
    re.compile(
        r"\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]* \d{1,2},? \d{4}\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b\d{4}[/-]\d{1,2}[/-]\d{1,2}\b"),
]

_STREET_WORD = r"(?:[A-Za-z0-9.]+\s+){1,5}"
ADDRESS_PATTERNS = [
    re.compile(
        r"\b\d{1,6}\s+" + _STREET_WORD
        + r"(?:Ave|St|Rd|Blvd|Dr|Ln)\.?,?\s+(?:[A-Za-z]+\s+){1,3}[A-Z]{2},?\s+\d{5}\b"
    ),
    re.compile(r"\bP\.?\s?O\.?\s+Box\s+\d+\b", re.IGNORECASE),
    re.compile(r"\b\d{1,6}\s+" + _STREET_WORD + r"(?:Street|Avenue|Road|Boulevard|Drive|Lane)\b"),
]


def _first_match(pattern: re.Pattern, text: str) -> list[str]:
    match = pattern.search(text)
    return [match.group(0).strip()] if match else []


def extract_dates(text: str, limit: int = MAX_DATES) -> list[str]:
    dates: list[str] = []
    for pattern in DATE_PATTERNS:
        for match in pattern.findall(text):
            if match not in dates:
                dates.append(match)
    return dates[:limit]


def extract_addresses(text: str, limit: int = MAX_ADDRESSES) -> list[str]:
    addresses: list[str] = []
    for pattern in ADDRESS_PATTERNS:
        for match in pattern.findall(text):
            match = " ".join(match.split())
            # The street-only pattern re-finds addresses the full pattern already has
            if any(match in found for found in addresses):
                continue
            addresses.append(match)
    return addresses[:limit]


def build_local_record(
    text: str,
    date_of_birth: date,
    today: date | None = None,
    error: str | None = None,
) -> dict[str, Any]:
    """
    Build a structured record without AI.

    Args:
        text: Extracted document text.
        date_of_birth: Caller-supplied date of birth.
        today: Reference date for the age, defaults to today.
        error: Reason the AI service was not used, if it failed.

    Returns:
        Record in the AI schema with a ``note`` marking it as locally derived.
    """
    text = text or ""
    record = StructuredRecord(
        personal_info=PersonalInfo(
            full_name=None,
            date_of_birth=date_of_birth.isoformat(),
            age=calculate_age(date_of_birth, today=today),
        ),
        contact_info=ContactInfo(
            emails=_first_match(EMAIL_PATTERN, text),
            phone_numbers=_first_match(PHONE_PATTERN, text),
        ),
        addresses=extract_addresses(text),
        identification_numbers=_first_match(ID_NUMBER_PATTERN, text),
        key_dates=extract_dates(text),
        summary=LOCAL_SUMMARY,
        note=LOCAL_NOTE,
        error=error,
    )
    logger.info(
        "Local structuring found %d email(s), %d phone(s), %d date(s), %d address(es)",
        len(record.contact_info.emails),
        len(record.contact_info.phone_numbers),
        len(record.key_dates),
        len(record.addresses),
    )
    return record.model_dump(
        by_alias=True,
        exclude={"error"} if error is None else None,
    )
