"""
Small helpers shared by the pipeline services.
"""

import re
from datetime import date, datetime

ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str | date) -> date:
    """
    Parse a YYYY-MM-DD string into a date.

    Raises:
        ValueError: If the value is not in YYYY-MM-DD form or not a real date.
    """
    if isinstance(value, date):
        return value
    value = value.strip()
    if not ISO_DATE_PATTERN.match(value):
        raise ValueError(f"Invalid date format (expected YYYY-MM-DD): {value!r}")
    return datetime.strptime(value, "%Y-%m-%d").date()


def calculate_age(date_of_birth: str | date, today: date | None = None) -> int:
    """
    Age in whole years on ``today``.

    The birthday itself counts: someone born 2000-06-15 is 24 on 2024-06-15
    and still 23 the day before.
    """
    dob = parse_iso_date(date_of_birth)
    today = today or date.today()
    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1
    return age
