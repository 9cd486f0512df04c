"""Custom-field values — the schema-less bag attached to each experience.

Stored values are plain JSON (string, list of strings, occasionally a
number or bool written by hand). Everything that compares values works
on the classified form instead of the raw JSON:

- :class:`Absent` — missing key, ``None`` or empty string
- :class:`Scalar` — a single string (numbers and bools are stringified)
- :class:`Multi` — a sequence of strings (multi-select dropdowns)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from expctl.domain.columns import Column


@dataclass(frozen=True)
class Absent:
    """No usable value stored under the key."""

    def texts(self) -> tuple[str, ...]:
        return ()


@dataclass(frozen=True)
class Scalar:
    """A single string value."""

    value: str

    def texts(self) -> tuple[str, ...]:
        return (self.value,)


@dataclass(frozen=True)
class Multi:
    """An ordered sequence of string values."""

    values: tuple[str, ...]

    def texts(self) -> tuple[str, ...]:
        return self.values


FieldValue = Absent | Scalar | Multi

ABSENT = Absent()


def _stringify(raw: Any) -> str:
    if isinstance(raw, bool):
        return "true" if raw else "false"
    return str(raw)


def classify(raw: Any) -> FieldValue:
    """Classify a raw JSON value into a :data:`FieldValue`."""
    if raw is None or raw == "":
        return ABSENT
    if isinstance(raw, (list, tuple)):
        return Multi(tuple(_stringify(v) for v in raw if v is not None))
    return Scalar(_stringify(raw))


def build_custom_fields(
    columns: Iterable[Column],
    pairs: Iterable[tuple[str, str]],
) -> dict[str, Any]:
    """Assemble a custom-field bag from ``(key, value)`` pairs.

    Multi-select dropdown keys collect every value into a list; any other
    key keeps the last value given. Keys without a column are kept as
    plain strings (the bag tolerates stale keys).
    """
    multi_keys = {c.key for c in columns if c.is_multi_select}
    fields: dict[str, Any] = {}
    for key, value in pairs:
        if key in multi_keys:
            fields.setdefault(key, [])
            if value not in fields[key]:
                fields[key].append(value)
        else:
            fields[key] = value
    return fields


def check_custom_fields(columns: Iterable[Column], fields: Mapping[str, Any]) -> list[str]:
    """Return advisory warnings for a custom-field bag.

    Nothing here is fatal: unknown keys, values outside the dropdown
    options and shape mismatches are all tolerated by search.
    """
    by_key = {c.key: c for c in columns}
    warnings: list[str] = []
    for key, raw in fields.items():
        column = by_key.get(key)
        if column is None:
            warnings.append(f"No column defined for field '{key}'")
            continue
        value = classify(raw)
        if isinstance(value, Multi) and not column.is_multi_select:
            warnings.append(f"Field '{key}' holds a list but column is single-valued")
        if column.dropdown_options:
            allowed = {o.lower() for o in column.dropdown_options}
            for text in value.texts():
                if text.lower() not in allowed:
                    warnings.append(f"Value '{text}' is not an option of column '{key}'")
    return warnings
