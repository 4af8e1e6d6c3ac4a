"""Date normalization for ``date`` fields.

Canonical form is ``YYYY-MM-DD``. Year-first variants (``2026/1/7``,
``2026.01.07``, ``2026-1-7``) and ISO timestamps normalize without any
guesswork. Day/month-first forms are accepted only when one component
exceeds 12; otherwise they are rejected as ambiguous.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ISO_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})[ T]")
_YEAR_FIRST = re.compile(r"^(\d{4})[./-](\d{1,2})[./-](\d{1,2})$")
_ISO_WITH_TIME = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:[ T]\d{2}:\d{2}(?::\d{2})?)?$")
_DAY_MONTH = re.compile(r"^(\d{1,2})([/-])(\d{1,2})\2(\d{4})$")


@dataclass(frozen=True)
class DateNormalization:
    """Outcome of :func:`normalize_to_iso_date`."""

    valid: bool
    value: str | None = None
    error: str | None = None


def suggest_iso_date(raw: str) -> str | None:
    """Return an unambiguous ``YYYY-MM-DD`` rendering of *raw*, or None."""
    trimmed = raw.strip()
    if not trimmed:
        return None
    if _ISO_DATE.match(trimmed):
        return trimmed

    prefix = _ISO_DATE_PREFIX.match(trimmed)
    if prefix:
        return prefix.group(1)

    match = _YEAR_FIRST.match(trimmed)
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None
    return f"{year:04d}-{month:02d}-{day:02d}"


def _build(year: int, month: int, day: int) -> DateNormalization:
    if not 1 <= year <= 9999:
        return DateNormalization(valid=False, error=f"Invalid year: {year}")
    if not 1 <= month <= 12:
        return DateNormalization(valid=False, error=f"Invalid month: {month}")
    try:
        parsed = date(year, month, day)
    except ValueError:
        return DateNormalization(valid=False, error=f"Invalid day {day} for month {month}")
    return DateNormalization(valid=True, value=parsed.isoformat())


def normalize_to_iso_date(raw: str) -> DateNormalization:
    """Parse *raw* in any accepted format and return it as ``YYYY-MM-DD``."""
    trimmed = raw.strip() if isinstance(raw, str) else ""
    if not trimmed:
        return DateNormalization(valid=False, error="Date value is required")

    iso = _ISO_WITH_TIME.match(trimmed)
    if iso:
        year, month, day = (int(part) for part in iso.groups())
        return _build(year, month, day)

    year_first = _YEAR_FIRST.match(trimmed)
    if year_first:
        year, month, day = (int(part) for part in year_first.groups())
        return _build(year, month, day)

    day_month = _DAY_MONTH.match(trimmed)
    if day_month:
        first, separator, second, year_text = day_month.groups()
        first_n, second_n, year = int(first), int(second), int(year_text)
        if first_n > 12:
            return _build(year, second_n, first_n)
        if second_n > 12:
            return _build(year, first_n, second_n)
        return DateNormalization(
            valid=False,
            error=(
                f"Ambiguous date: {trimmed!r} could be month{separator}day or "
                f"day{separator}month. Use YYYY-MM-DD format for clarity."
            ),
        )

    return DateNormalization(
        valid=False,
        error=f"Unrecognized date format: {trimmed!r}. Use YYYY-MM-DD",
    )
