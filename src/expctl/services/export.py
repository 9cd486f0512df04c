"""ExportService — CSV export of experiences in column order."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any

from expctl.domain.columns import Column
from expctl.domain.experiences import Experience
from expctl.domain.fields import Multi, classify
from expctl.domain.filters import FilterSpec, search
from expctl.services.base import BaseService
from expctl.services.result import ServiceError, ServiceResult
from expctl.services.telemetry import traced


def cell_value(experience: Experience, column: Column, *, separator: str = ", ") -> str:
    """Render one CSV cell.

    ``startDate``/``endDate`` read the record's own dates (ISO); any other
    key reads the custom-field bag, joining list values with *separator*.
    """
    if column.key == "startDate":
        return experience.start_date.isoformat()
    if column.key == "endDate":
        return experience.end_date.isoformat() if experience.end_date else ""
    value = classify(experience.custom_fields.get(column.key))
    if isinstance(value, Multi):
        return separator.join(value.values)
    return "".join(value.texts())


class ExportService(BaseService):
    """Export experiences to portable formats."""

    @traced
    def export_csv(
        self,
        path: Path,
        *,
        spec: FilterSpec | None = None,
        visible_only: bool | None = None,
    ) -> ServiceResult:
        """Write experiences to *path* as CSV.

        The header holds column names in display order. *spec* narrows the
        rows first; *visible_only* defaults to ``[export] visible_only``.
        """
        op = "export_csv"
        settings = self._workspace.settings.export
        if visible_only is None:
            visible_only = settings.visible_only

        export_columns = self._workspace.columns.load(visible_only=visible_only)
        rows = self._workspace.experiences.load_all()
        if spec is not None:
            rows = search(rows, spec)

        path = path.resolve()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8", newline="") as fh:
                writer = csv.writer(fh)
                writer.writerow([c.name for c in export_columns])
                for experience in rows:
                    writer.writerow(
                        [
                            cell_value(experience, c, separator=settings.list_separator)
                            for c in export_columns
                        ]
                    )
        except OSError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="EXPORT_FAILED",
                    message=f"Cannot write {path}: {exc}",
                    detail={"path": str(path)},
                ),
            )

        warnings: list[str] = []
        if not export_columns:
            warnings.append("No columns to export; wrote an empty header")

        data: dict[str, Any] = {
            "path": str(path),
            "row_count": len(rows),
            "columns": [c.key for c in export_columns],
        }
        if spec is not None and not spec.is_empty:
            data["filters"] = spec.to_dict()
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)
