"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, date, datetime


def now_iso() -> str:
    """Current UTC time as standard ISO 8601 (row timestamps)."""
    return datetime.now(UTC).isoformat()


def now_compact() -> str:
    """Current UTC time as compact ISO (YYYYMMDDTHHmmss, for backup filenames)."""
    return datetime.now(UTC).strftime("%Y%m%dT%H%M%S")


def parse_iso_date(value: date | str, *, label: str) -> tuple[date | None, str | None]:
    """Coerce *value* to a date.

    Returns ``(date, None)`` on success or ``(None, message)`` when a
    string is not in ``YYYY-MM-DD`` form.

    Examples:
        >>> parse_iso_date("2024-03-01", label="start date")
        (datetime.date(2024, 3, 1), None)
    """
    if isinstance(value, datetime):
        return value.date(), None
    if isinstance(value, date):
        return value, None
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d").date(), None
    except ValueError:
        return None, f"{label} must be a date in YYYY-MM-DD form, got {value!r}"
