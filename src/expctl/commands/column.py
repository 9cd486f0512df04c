"""Command group: the column schema (list, add, edit, reorder, visibility)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from expctl.commands._base import ExpGroup
from expctl.domain.columns import ColumnType
from expctl.services.columns import DIRECTIONS, ColumnService

if TYPE_CHECKING:
    from expctl.commands._context import AppContext

_COLUMN_EXAMPLES = """\
  expctl column list
  expctl column add "Team Size" --type short-text
  expctl column add Stack --type dropdown --option Go --option Rust --multiple
  expctl column move 4 up
  expctl column hide 6
  expctl column export columns.yaml"""

_TYPE_CHOICE = click.Choice([t.value for t in ColumnType], case_sensitive=False)


@click.group(cls=ExpGroup, examples=_COLUMN_EXAMPLES)
@click.pass_obj
def column(app: AppContext) -> None:
    """Manage the columns every experience is described by."""


@column.command(
    "list",
    examples="""\
  expctl column list
  expctl column list --visible
  expctl --json column list""",
)
@click.option("--visible", "visible_only", is_flag=True, help="Only visible columns.")
@click.pass_obj
def list_cmd(app: AppContext, visible_only: bool) -> None:
    """List columns in display order."""
    app.emit(ColumnService(app.workspace).list_columns(visible_only=visible_only))


@column.command(
    examples="""\
  expctl column get 3"""
)
@click.argument("column_id", type=int)
@click.pass_obj
def get(app: AppContext, column_id: int) -> None:
    """Show one column definition."""
    app.emit(ColumnService(app.workspace).get_column(column_id))


@column.command(
    examples="""\
  expctl column add Client
  expctl column add "Team Size" --key teamSize
  expctl column add Stack --type dropdown --option Go --option Rust --multiple
  expctl column add Summary --type long-text --hidden --order 2"""
)
@click.argument("name")
@click.option("--key", default=None, help="Field key (derived from NAME when omitted).")
@click.option(
    "--type", "column_type", type=_TYPE_CHOICE, default="short-text", help="Column type."
)
@click.option("--option", "options", multiple=True, help="Dropdown option (repeatable).")
@click.option("--multiple", "allow_multiple", is_flag=True, help="Allow several options.")
@click.option("--hidden", is_flag=True, help="Create the column hidden.")
@click.option("--order", type=int, default=None, help="Display position (default: last).")
@click.pass_obj
def add(
    app: AppContext,
    name: str,
    key: str | None,
    column_type: str,
    options: tuple[str, ...],
    allow_multiple: bool,
    hidden: bool,
    order: int | None,
) -> None:
    """Add a column."""
    app.emit(
        ColumnService(app.workspace).create_column(
            name,
            key=key,
            column_type=column_type.lower(),
            dropdown_options=list(options) or None,
            allow_multiple=allow_multiple,
            is_visible=not hidden,
            order=order,
        )
    )


@column.command(
    examples="""\
  expctl column edit 3 --name Customer
  expctl column edit 3 --name Customer --rederive-key
  expctl column edit 5 --option React --option Vue --single
  expctl column edit 7 --order 2"""
)
@click.argument("column_id", type=int)
@click.option("--name", default=None, help="New display name.")
@click.option("--key", default=None, help="New field key.")
@click.option("--rederive-key", is_flag=True, help="Derive the key again from the name.")
@click.option("--type", "column_type", type=_TYPE_CHOICE, default=None, help="New type.")
@click.option("--option", "options", multiple=True, help="Replace dropdown options.")
@click.option("--clear-options", is_flag=True, help="Remove all dropdown options.")
@click.option(
    "--multiple/--single", "allow_multiple", default=None, help="Allow several options or one."
)
@click.option("--order", type=int, default=None, help="New display position.")
@click.pass_obj
def edit(
    app: AppContext,
    column_id: int,
    name: str | None,
    key: str | None,
    rederive_key: bool,
    column_type: str | None,
    options: tuple[str, ...],
    clear_options: bool,
    allow_multiple: bool | None,
    order: int | None,
) -> None:
    """Edit a column's definition."""
    changes: dict[str, Any] = {}
    if name is not None:
        changes["name"] = name
    if rederive_key:
        changes["key"] = None
    elif key is not None:
        changes["key"] = key
    if column_type is not None:
        changes["type"] = column_type.lower()
    if clear_options:
        changes["dropdown_options"] = []
    elif options:
        changes["dropdown_options"] = list(options)
    if allow_multiple is not None:
        changes["allow_multiple"] = allow_multiple
    if order is not None:
        changes["order"] = order

    if not changes:
        raise click.UsageError("Nothing to change; pass at least one option.")
    app.emit(ColumnService(app.workspace).update_column(column_id, changes))


@column.command(
    examples="""\
  expctl column remove 7"""
)
@click.argument("column_id", type=int)
@click.pass_obj
def remove(app: AppContext, column_id: int) -> None:
    """Delete a column (stored values are kept on experiences)."""
    app.emit(ColumnService(app.workspace).delete_column(column_id))


@column.command(
    examples="""\
  expctl column move 4 up
  expctl column move 1 down"""
)
@click.argument("column_id", type=int)
@click.argument("direction", type=click.Choice(DIRECTIONS, case_sensitive=False))
@click.pass_obj
def move(app: AppContext, column_id: int, direction: str) -> None:
    """Swap a column with its neighbour above or below."""
    app.emit(ColumnService(app.workspace).move_column(column_id, direction.lower()))


@column.command(
    examples="""\
  expctl column show 6"""
)
@click.argument("column_id", type=int)
@click.pass_obj
def show(app: AppContext, column_id: int) -> None:
    """Make a column visible."""
    app.emit(ColumnService(app.workspace).set_visibility(column_id, True))


@column.command(
    examples="""\
  expctl column hide 6"""
)
@click.argument("column_id", type=int)
@click.pass_obj
def hide(app: AppContext, column_id: int) -> None:
    """Hide a column from tables and visible-only exports."""
    app.emit(ColumnService(app.workspace).set_visibility(column_id, False))


@column.command(
    "export",
    examples="""\
  expctl column export columns.yaml""",
)
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_obj
def export_cmd(app: AppContext, path: str) -> None:
    """Save the column configuration as YAML."""
    app.emit(ColumnService(app.workspace).export_config(Path(path)))


@column.command(
    "import",
    examples="""\
  expctl column import columns.yaml""",
)
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_cmd(app: AppContext, path: str) -> None:
    """Replace all columns with a saved YAML configuration."""
    app.emit(ColumnService(app.workspace).import_config(Path(path)))
