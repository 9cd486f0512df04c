"""Tests for the Experience and Tag models."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from expctl.domain.experiences import Experience, Tag
from expctl.domain.fields import ABSENT, Multi, Scalar


class TestExperience:
    def test_value_of(self) -> None:
        exp = Experience(
            id=1,
            start_date=date(2022, 1, 1),
            custom_fields={"client": "Acme", "skills": ["Go"], "notes": ""},
        )
        assert exp.value_of("client") == Scalar("Acme")
        assert exp.value_of("skills") == Multi(("Go",))
        assert exp.value_of("notes") == ABSENT
        assert exp.value_of("missing") == ABSENT

    def test_tag_ids(self) -> None:
        exp = Experience(
            id=1, start_date=date(2022, 1, 1), tags=(Tag(id=3, name="a"), Tag(id=5, name="b"))
        )
        assert exp.tag_ids == frozenset({3, 5})

    def test_to_dict(self) -> None:
        exp = Experience(
            id=7,
            start_date=date(2022, 1, 1),
            end_date=date(2022, 6, 30),
            custom_fields={"client": "Acme"},
            tags=(Tag(id=1, name="remote"),),
        )
        assert exp.to_dict() == {
            "id": 7,
            "start_date": "2022-01-01",
            "end_date": "2022-06-30",
            "custom_fields": {"client": "Acme"},
            "tags": [{"id": 1, "name": "remote"}],
            "created": None,
            "modified": None,
        }

    def test_end_before_start_allowed(self) -> None:
        exp = Experience(id=1, start_date=date(2022, 6, 1), end_date=date(2022, 1, 1))
        assert exp.end_date < exp.start_date

    def test_iso_strings_coerced(self) -> None:
        exp = Experience(id=1, start_date="2022-01-01")  # type: ignore[arg-type]
        assert exp.start_date == date(2022, 1, 1)

    def test_frozen(self) -> None:
        exp = Experience(id=1, start_date=date(2022, 1, 1))
        with pytest.raises(ValidationError):
            exp.id = 2  # type: ignore[misc]
