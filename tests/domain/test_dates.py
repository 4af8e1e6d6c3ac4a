"""Tests for date suggestion and normalization."""

from __future__ import annotations

import pytest

from notectl.domain.dates import normalize_to_iso_date, suggest_iso_date


class TestSuggestIsoDate:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2026-01-07", "2026-01-07"),
            ("2026-01-07T10:00:00", "2026-01-07"),
            ("2026/1/7", "2026-01-07"),
            ("2026.01.07", "2026-01-07"),
        ],
    )
    def test_unambiguous_forms(self, raw: str, expected: str) -> None:
        assert suggest_iso_date(raw) == expected

    @pytest.mark.parametrize("raw", ["", "07/01/2026", "next week", "2026/13/01"])
    def test_no_suggestion(self, raw: str) -> None:
        assert suggest_iso_date(raw) is None


class TestNormalizeToIsoDate:
    def test_iso_with_time(self) -> None:
        assert normalize_to_iso_date("2026-01-07 10:30").value == "2026-01-07"

    def test_day_first_when_day_exceeds_twelve(self) -> None:
        assert normalize_to_iso_date("25/12/2026").value == "2026-12-25"

    def test_month_first_when_day_exceeds_twelve(self) -> None:
        assert normalize_to_iso_date("12-25-2026").value == "2026-12-25"

    def test_ambiguous_rejected(self) -> None:
        result = normalize_to_iso_date("01/02/2026")
        assert not result.valid
        assert "Ambiguous" in (result.error or "")

    def test_invalid_calendar_date(self) -> None:
        assert not normalize_to_iso_date("2026-02-30").valid
        assert "month" in (normalize_to_iso_date("2026-13-01").error or "")

    def test_empty_and_unrecognized(self) -> None:
        assert normalize_to_iso_date("  ").error == "Date value is required"
        assert "Unrecognized" in (normalize_to_iso_date("tomorrow").error or "")
