"""Command: filter experiences by dates, tags, text, and dropdown values."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, ParamSpec, TypeVar

import click

from expctl.commands._base import KEY_VALUE, ExpCommand
from expctl.domain.filters import FilterSpec

if TYPE_CHECKING:
    from datetime import datetime

    from expctl.commands._context import AppContext

ISO_DATE = click.DateTime(["%Y-%m-%d"])

P = ParamSpec("P")
R = TypeVar("R")


def filter_options(func: Callable[P, R]) -> Callable[P, R]:
    """Apply the shared experience filter flags to a command."""
    func = click.option(
        "--dropdown",
        "dropdowns",
        type=KEY_VALUE,
        multiple=True,
        help="Dropdown selection KEY=OPTION (repeatable; OR within a key).",
    )(func)
    func = click.option(
        "--term", default=None, help="Case-insensitive text in any field or tag name."
    )(func)
    func = click.option(
        "--tag-id", "tag_ids", type=int, multiple=True, help="Has any of these tags."
    )(func)
    func = click.option(
        "--end-date",
        type=ISO_DATE,
        default=None,
        help="Ended on or before (YYYY-MM-DD); ongoing always pass.",
    )(func)
    func = click.option(
        "--start-date", type=ISO_DATE, default=None, help="Started on or after (YYYY-MM-DD)."
    )(func)
    return func


def build_filter_spec(
    *,
    start_date: datetime | None,
    end_date: datetime | None,
    tag_ids: tuple[int, ...],
    term: str | None,
    dropdowns: tuple[tuple[str, str], ...],
) -> FilterSpec:
    """Turn filter flag values into a FilterSpec."""
    selections: dict[str, list[str]] = {}
    for key, option in dropdowns:
        selections.setdefault(key, []).append(option)
    return FilterSpec.from_params(
        {
            "startDate": start_date,
            "endDate": end_date,
            "tagIds": list(tag_ids),
            "searchTerm": term,
            "dropdownFilters": selections,
        }
    )


@click.command(
    cls=ExpCommand,
    examples="""\
  expctl search --term acme
  expctl search --start-date 2023-01-01 --end-date 2023-12-31
  expctl search --tag-id 1 --tag-id 4
  expctl search --dropdown skills=Python --dropdown skills=React
  expctl --json search --term react --dropdown skills=TypeScript""",
)
@filter_options
@click.pass_obj
def search(
    app: AppContext,
    start_date: datetime | None,
    end_date: datetime | None,
    tag_ids: tuple[int, ...],
    term: str | None,
    dropdowns: tuple[tuple[str, str], ...],
) -> None:
    """Find experiences matching every given filter."""
    from expctl.services.search import SearchService

    spec = build_filter_spec(
        start_date=start_date,
        end_date=end_date,
        tag_ids=tag_ids,
        term=term,
        dropdowns=dropdowns,
    )
    app.emit(SearchService(app.workspace).search(spec))
