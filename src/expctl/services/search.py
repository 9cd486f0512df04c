"""SearchService — filter the experience snapshot."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from expctl.domain.filters import FilterSpec, search
from expctl.services.base import BaseService
from expctl.services.result import ServiceResult
from expctl.services.telemetry import trace_span, traced


class SearchService(BaseService):
    """Run a :class:`FilterSpec` over every stored experience."""

    @traced
    def search(self, spec: FilterSpec | Mapping[str, Any] | None = None) -> ServiceResult:
        """Return the experiences matching *spec*, in id order.

        *spec* may also be a loose parameter mapping (``startDate``,
        ``tagIds``, ``searchTerm``, ``dropdownFilters``...); anything that
        does not parse is ignored rather than rejected.
        """
        if not isinstance(spec, FilterSpec):
            spec = FilterSpec.from_params(spec)

        with trace_span("load_snapshot") as span:
            snapshot = self._workspace.experiences.load_all()
            if span is not None:
                span.annotate("count", len(snapshot))

        with trace_span("apply_filters"):
            matched = search(snapshot, spec)

        visible = self._workspace.columns.load(visible_only=True)
        return ServiceResult(
            ok=True,
            op="search",
            data={
                "filters": spec.to_dict(),
                "columns": [c.model_dump(mode="json") for c in visible],
                "total": len(snapshot),
                "count": len(matched),
                "items": [e.to_dict() for e in matched],
            },
        )
