"""
Prompts for AI structuring of extracted document text.
"""

import json
from datetime import date

STRUCTURING_SYSTEM_PROMPT = """You are a meticulous document analyst.
You read text extracted from identity documents, letters, forms and records, and return the facts in it as JSON.

Rules:
1. Only report values that appear in the text. If a value is not present, use an empty list or null. DO NOT HALLUCINATE.
2. The subject's date of birth is supplied by the caller. Never extract a date of birth from the text.
3. Keep values as they appear in the document (dates, phone numbers, ID numbers).
4. Return ONLY the JSON object. No commentary."""


def _response_template(date_of_birth: date, age: int) -> dict:
    return {
        "personalInfo": {
            "fullName": "full name found in the document, or null",
            "dateOfBirth": date_of_birth.isoformat(),
            "age": age,
        },
        "contactInfo": {
            "emails": ["email1", "email2"],
            "phoneNumbers": ["phone1", "phone2"],
        },
        "addresses": ["address1", "address2"],
        "identificationNumbers": ["id1", "id2"],
        "keyDates": ["date1", "date2"],
        "summary": "brief summary of the document content",
    }


def build_structuring_prompt(text: str, date_of_birth: date, age: int) -> str:
    """
    Build the user prompt asking for the structured record.

    Args:
        text: Extracted document text, already truncated.
        date_of_birth: Caller-supplied date of birth.
        age: Age derived from the date of birth.

    Returns:
        The prompt string.
    """
    template = json.dumps(_response_template(date_of_birth, age), indent=2)

    return f"""Analyze the following text extracted from a document and extract structured information.
IMPORTANT: The subject's date of birth is {date_of_birth.isoformat()}. Use it as given; do not extract a date of birth from the text.

Look for:
1. Personal details (full name; use the provided date of birth)
2. Contact information (emails, phone numbers)
3. Addresses
4. Identification numbers
5. Key dates (other than the date of birth)
6. A short summary of the document

Return ONLY a JSON object with this structure:
{template}

Text to analyze:
{text}"""
