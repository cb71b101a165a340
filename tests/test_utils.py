"""Tests for shared helpers."""

from datetime import date

import pytest

from app.docproc.services.utils import calculate_age, parse_iso_date


class TestCalculateAge:
    """Tests for age calculation."""

    def test_day_before_birthday(self):
        assert calculate_age("2000-06-15", today=date(2024, 6, 14)) == 23

    def test_on_birthday(self):
        """Test that the birthday itself counts."""
        assert calculate_age("2000-06-15", today=date(2024, 6, 15)) == 24

    def test_earlier_month(self):
        assert calculate_age(date(2000, 6, 15), today=date(2024, 5, 30)) == 23

    def test_leap_day_birthday(self):
        assert calculate_age("2000-02-29", today=date(2023, 2, 28)) == 22
        assert calculate_age("2000-02-29", today=date(2023, 3, 1)) == 23

    def test_defaults_to_today(self):
        assert calculate_age(date.today()) == 0


class TestParseIsoDate:
    """Tests for YYYY-MM-DD parsing."""

    def test_valid(self):
        assert parse_iso_date("1990-05-15") == date(1990, 5, 15)

    def test_surrounding_whitespace(self):
        assert parse_iso_date(" 1990-05-15 ") == date(1990, 5, 15)

    def test_date_passthrough(self):
        assert parse_iso_date(date(1990, 5, 15)) == date(1990, 5, 15)

    @pytest.mark.parametrize("value", ["1990/05/15", "15-05-1990", "1990-05-15T00:00", "1990-13-01"])
    def test_invalid(self, value: str):
        with pytest.raises(ValueError):
            parse_iso_date(value)
