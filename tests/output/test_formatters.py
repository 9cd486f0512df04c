"""Tests for output mode selection."""

import json

from expctl.output.formatters import OutputSettings, format_result
from expctl.services.result import ServiceError, ServiceResult

_LISTED = ServiceResult(
    ok=True,
    op="list_tags",
    data={"count": 2, "items": [{"id": 3, "name": "A", "usage": 0}, {"id": 5, "name": "B"}]},
)


class TestFormatResult:
    def test_json_mode(self) -> None:
        output = format_result(_LISTED, settings=OutputSettings(json_output=True))
        parsed = json.loads(output)
        assert parsed["ok"] is True
        assert parsed["data"]["count"] == 2

    def test_json_wins_over_quiet(self) -> None:
        output = format_result(_LISTED, settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["op"] == "list_tags"

    def test_quiet_mode(self) -> None:
        assert format_result(_LISTED, settings=OutputSettings(quiet=True)) == "3\n5"

    def test_default_is_rich(self) -> None:
        output = format_result(_LISTED)
        assert "2 tags" in output

    def test_error_json(self) -> None:
        failed = ServiceResult(
            ok=False, op="get_column", error=ServiceError(code="NOT_FOUND", message="missing")
        )
        parsed = json.loads(format_result(failed, settings=OutputSettings(json_output=True)))
        assert parsed["error"]["code"] == "NOT_FOUND"
