"""Command group: experience export."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from expctl.commands._base import ExpGroup
from expctl.commands.search import build_filter_spec, filter_options

if TYPE_CHECKING:
    from datetime import datetime

    from expctl.commands._context import AppContext

_EXPORT_EXAMPLES = """\
  expctl export csv --output experiences.csv
  expctl export csv --output 2024.csv --start-date 2024-01-01
  expctl export csv --output visible.csv --visible-only"""


@click.group(cls=ExpGroup, examples=_EXPORT_EXAMPLES)
@click.pass_obj
def export(app: AppContext) -> None:
    """Export experiences in portable formats."""


@export.command(
    examples="""\
  expctl export csv --output experiences.csv
  expctl export csv --output python.csv --dropdown skills=Python
  expctl export csv --output all.csv --all-columns"""
)
@filter_options
@click.option(
    "--output",
    required=True,
    type=click.Path(dir_okay=False),
    help="CSV file to write.",
)
@click.option(
    "--visible-only/--all-columns",
    default=None,
    help="Export only visible columns (default from [export] visible_only).",
)
@click.pass_obj
def csv(
    app: AppContext,
    start_date: datetime | None,
    end_date: datetime | None,
    tag_ids: tuple[int, ...],
    term: str | None,
    dropdowns: tuple[tuple[str, str], ...],
    output: str,
    visible_only: bool | None,
) -> None:
    """Write experiences to CSV, one column per schema column."""
    from expctl.services.export import ExportService

    spec = build_filter_spec(
        start_date=start_date,
        end_date=end_date,
        tag_ids=tag_ids,
        term=term,
        dropdowns=dropdowns,
    )
    app.emit(
        ExportService(app.workspace).export_csv(
            Path(output),
            spec=None if spec.is_empty else spec,
            visible_only=visible_only,
        )
    )
