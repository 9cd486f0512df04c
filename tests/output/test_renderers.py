"""Tests for the operation-specific Rich renderers."""

from __future__ import annotations

from typing import Any

from expctl.output.renderers import cell_text, render_quiet, render_result
from expctl.services.result import ServiceError, ServiceResult

_COLUMNS: list[dict[str, Any]] = [
    {"id": 1, "name": "Start Date", "key": "startDate", "type": "date", "order": 1},
    {"id": 2, "name": "End Date", "key": "endDate", "type": "date", "order": 2},
    {"id": 3, "name": "Client", "key": "client", "type": "short-text", "order": 3},
    {"id": 5, "name": "Skills", "key": "skills", "type": "dropdown", "order": 5},
    {"id": 6, "name": "Notes", "key": "notes", "type": "long-text", "order": 6},
]

_EXPERIENCE: dict[str, Any] = {
    "id": 4,
    "start_date": "2022-01-10",
    "end_date": None,
    "custom_fields": {"client": "Acme", "skills": ["React", "Python"], "legacy": "x"},
    "tags": [{"id": 1, "name": "Remote"}],
    "created": "2024-01-01T00:00:00+00:00",
    "modified": "2024-01-02T00:00:00+00:00",
}


class TestCellText:
    def test_record_dates(self) -> None:
        assert cell_text(_EXPERIENCE, _COLUMNS[0]) == "2022-01-10"
        assert cell_text(_EXPERIENCE, _COLUMNS[1]) == ""

    def test_list_joined(self) -> None:
        assert cell_text(_EXPERIENCE, _COLUMNS[3]) == "React, Python"

    def test_missing_value(self) -> None:
        assert cell_text(_EXPERIENCE, _COLUMNS[4]) == ""

    def test_long_text_truncated(self) -> None:
        item = {"custom_fields": {"notes": "word " * 30}}
        text = cell_text(item, _COLUMNS[4])
        assert len(text) == 40
        assert text.endswith("…")
        assert len(cell_text(item, _COLUMNS[4], truncate=False)) > 40


class TestRenderQuiet:
    def test_items(self) -> None:
        result = ServiceResult(ok=True, op="search", data={"items": [{"id": 1}, {"id": 9}]})
        assert render_quiet(result) == "1\n9"

    def test_entity(self) -> None:
        result = ServiceResult(ok=True, op="create_column", data={"column": {"id": 12}})
        assert render_quiet(result) == "12"

    def test_fallback(self) -> None:
        result = ServiceResult(ok=True, op="ensure_defaults", data={"seeded": False})
        assert render_quiet(result) == "OK: ensure_defaults"

    def test_error(self) -> None:
        result = ServiceResult(
            ok=False, op="move_column", error=ServiceError(code="CANNOT_MOVE", message="first")
        )
        assert render_quiet(result).startswith("ERROR: move_column")


class TestRenderResult:
    def test_error_with_detail(self) -> None:
        result = ServiceResult(
            ok=False,
            op="get_column",
            error=ServiceError(code="NOT_FOUND", message="No column", detail={"id": 3}),
        )
        output = render_result(result, verbose=True)
        assert "ERROR" in output
        assert "No column" in output
        assert "id: 3" in output

    def test_column_table(self) -> None:
        items = [
            {**_COLUMNS[2], "dropdown_options": [], "allow_multiple": False, "is_visible": True},
            {
                **_COLUMNS[3],
                "dropdown_options": ["React"],
                "allow_multiple": True,
                "is_visible": False,
            },
        ]
        result = ServiceResult(ok=True, op="list_columns", data={"count": 2, "items": items})
        output = render_result(result)
        assert "Client" in output
        assert "React (multi)" in output
        assert "hidden" in output
        assert "2 columns" in output

    def test_experience_table(self) -> None:
        result = ServiceResult(
            ok=True,
            op="search",
            data={"columns": _COLUMNS[:4], "items": [_EXPERIENCE], "count": 1, "total": 3},
        )
        output = render_result(result)
        assert "Client" in output
        assert "Acme" in output
        assert "Remote" in output
        assert "1 of 3 experiences" in output

    def test_experience_panel(self) -> None:
        result = ServiceResult(
            ok=True,
            op="get_experience",
            data={"experience": _EXPERIENCE, "columns": _COLUMNS},
        )
        output = render_result(result)
        assert "Experience 4" in output
        assert "2022-01-10 → ongoing" in output
        assert "Skills: React, Python" in output
        assert "legacy: x" in output
        assert "tags: Remote" in output

    def test_move(self) -> None:
        result = ServiceResult(
            ok=True,
            op="move_column",
            data={"id": 3, "direction": "up", "order": 2, "swapped_with": {"id": 2, "order": 3}},
        )
        output = render_result(result)
        assert "OK" in output
        assert "2 (now order 3)" in output

    def test_telemetry_tree(self) -> None:
        result = ServiceResult(
            ok=True,
            op="delete_experience",
            data={"id": 1},
            meta={
                "telemetry": {
                    "name": "ExperienceService.delete_experience",
                    "duration_ms": 1.5,
                    "children": [{"name": "inner", "duration_ms": 0.2}],
                }
            },
        )
        output = render_result(result, verbose=True)
        assert "ExperienceService.delete_experience" in output
        assert "inner" in output

    def test_generic_fallback(self) -> None:
        result = ServiceResult(ok=True, op="something_new", data={"answer": 42})
        output = render_result(result)
        assert "something_new" in output
        assert "answer: 42" in output
