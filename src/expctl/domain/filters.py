"""Experience filtering — date bounds, tags, free text, and dropdown values.

Filtering runs in memory over a fully loaded snapshot rather than in SQL:
the custom-field bag has no fixed shape, and dropdown matching has to
tell single values from lists. Record counts are single-user scale.

Semantics:

- Categories combine with AND; a record failing any active predicate is
  dropped. Categories left unset impose no constraint.
- Inside ``tag_ids`` and inside one dropdown key's selection, values
  combine with OR.
- Text comparison lower-cases both sides; no locale folding.
- Input order is preserved; nothing is re-sorted.

Nothing in this module raises on malformed input: :meth:`FilterSpec.from_params`
drops fields it cannot interpret, which leaves that predicate inactive.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from expctl.domain.experiences import Experience
from expctl.domain.fields import FieldValue, Multi, Scalar, classify

Predicate = Callable[[Experience], bool]


@dataclass(frozen=True)
class FilterSpec:
    """Which experiences to keep. Every field is optional."""

    start_date: date | None = None
    end_date: date | None = None
    tag_ids: frozenset[int] = frozenset()
    search_term: str | None = None
    dropdown_filters: Mapping[str, frozenset[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Blank terms and empty selections filter nothing.
        if self.search_term is not None and not self.search_term.strip():
            object.__setattr__(self, "search_term", None)
        selections = {key: frozenset(sel) for key, sel in self.dropdown_filters.items() if sel}
        object.__setattr__(self, "dropdown_filters", selections)

    @classmethod
    def from_params(cls, params: Mapping[str, Any] | None) -> FilterSpec:
        """Build a spec from loosely typed request parameters.

        Accepts ``startDate``/``start_date``, ``endDate``/``end_date``,
        ``tagIds``/``tag_ids``, ``searchTerm``/``search_term`` and
        ``dropdownFilters``/``dropdown_filters``. Values that cannot be
        interpreted are ignored.
        """
        if not params:
            return cls()
        return cls(
            start_date=_parse_date(_pick(params, "startDate", "start_date")),
            end_date=_parse_date(_pick(params, "endDate", "end_date")),
            tag_ids=_parse_tag_ids(_pick(params, "tagIds", "tag_ids")),
            search_term=_parse_term(_pick(params, "searchTerm", "search_term")),
            dropdown_filters=_parse_dropdowns(_pick(params, "dropdownFilters", "dropdown_filters")),
        )

    @property
    def is_empty(self) -> bool:
        return not active_predicates(self)

    def to_dict(self) -> dict[str, Any]:
        """Return the active filters as a user-facing payload."""
        data: dict[str, Any] = {}
        if self.start_date is not None:
            data["start_date"] = self.start_date.isoformat()
        if self.end_date is not None:
            data["end_date"] = self.end_date.isoformat()
        if self.tag_ids:
            data["tag_ids"] = sorted(self.tag_ids)
        if self.search_term:
            data["search_term"] = self.search_term
        if self.dropdown_filters:
            data["dropdown_filters"] = {
                key: sorted(selected) for key, selected in sorted(self.dropdown_filters.items())
            }
        return data


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def starts_on_or_after(experience: Experience, bound: date) -> bool:
    return experience.start_date >= bound


def ends_on_or_before(experience: Experience, bound: date) -> bool:
    """Ongoing experiences (no end date) always pass."""
    return experience.end_date is None or experience.end_date <= bound


def has_any_tag(experience: Experience, tag_ids: frozenset[int]) -> bool:
    return not experience.tag_ids.isdisjoint(tag_ids)


def mentions(experience: Experience, term: str) -> bool:
    """Case-insensitive substring match over field values and tag names."""
    needle = term.lower()
    for raw in experience.custom_fields.values():
        if any(needle in text.lower() for text in classify(raw).texts()):
            return True
    return any(needle in tag.name.lower() for tag in experience.tags)


def value_matches_options(value: FieldValue, options: frozenset[str]) -> bool:
    """Whether a classified value hits any of the lower-cased *options*.

    Lists need a non-empty intersection; single values must equal one of
    the options. Absent values never match.
    """
    if isinstance(value, Multi):
        return any(v.lower() in options for v in value.values)
    if isinstance(value, Scalar):
        return value.value.lower() in options
    return False


def matches_dropdowns(experience: Experience, filters: Mapping[str, frozenset[str]]) -> bool:
    """Every filtered key must match (AND across keys)."""
    for key, selected in filters.items():
        options = frozenset(s.lower() for s in selected)
        if not value_matches_options(experience.value_of(key), options):
            return False
    return True


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


def active_predicates(spec: FilterSpec) -> list[Predicate]:
    """Bind one predicate per active category of *spec*."""
    predicates: list[Predicate] = []
    if spec.start_date is not None:
        predicates.append(functools.partial(starts_on_or_after, bound=spec.start_date))
    if spec.end_date is not None:
        predicates.append(functools.partial(ends_on_or_before, bound=spec.end_date))
    if spec.tag_ids:
        predicates.append(functools.partial(has_any_tag, tag_ids=spec.tag_ids))
    if spec.search_term:
        predicates.append(functools.partial(mentions, term=spec.search_term))
    if spec.dropdown_filters:
        predicates.append(functools.partial(matches_dropdowns, filters=spec.dropdown_filters))
    return predicates


def search(experiences: Sequence[Experience], spec: FilterSpec) -> list[Experience]:
    """Return the experiences satisfying every active predicate of *spec*."""
    predicates = active_predicates(spec)
    if not predicates:
        return list(experiences)
    return [exp for exp in experiences if all(p(exp) for p in predicates)]


# ---------------------------------------------------------------------------
# Tolerant parameter parsing
# ---------------------------------------------------------------------------


def _pick(params: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if params.get(name) is not None:
            return params[name]
    return None


def _parse_date(raw: Any) -> date | None:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = raw.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def _parse_int(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().lstrip("-").isdigit():
        return int(raw.strip())
    return None


def _parse_tag_ids(raw: Any) -> frozenset[int]:
    if raw is None:
        return frozenset()
    items: Iterable[Any] = raw if isinstance(raw, (list, tuple, set, frozenset)) else (raw,)
    parsed = (_parse_int(item) for item in items)
    return frozenset(tag_id for tag_id in parsed if tag_id is not None)


def _parse_term(raw: Any) -> str | None:
    if isinstance(raw, str) and raw.strip():
        return raw
    return None


def _parse_dropdowns(raw: Any) -> dict[str, frozenset[str]]:
    if not isinstance(raw, Mapping):
        return {}
    filters: dict[str, frozenset[str]] = {}
    for key, selected in raw.items():
        if not isinstance(key, str) or selected is None:
            continue
        if isinstance(selected, str):
            values = frozenset({selected})
        elif isinstance(selected, (list, tuple, set, frozenset)):
            values = frozenset(str(v) for v in selected if v is not None)
        else:
            values = frozenset({str(selected)})
        if values:
            filters[key] = values
    return filters
