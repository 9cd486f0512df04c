"""Command group: experiences (record, inspect, edit, tag)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from expctl.commands._base import KEY_VALUE, ExpGroup
from expctl.domain.fields import build_custom_fields
from expctl.services.experiences import ExperienceService

if TYPE_CHECKING:
    from expctl.commands._context import AppContext

_EXPERIENCE_EXAMPLES = """\
  expctl experience add --start 2024-02-01 --field client=Acme --field skills=Python
  expctl experience list
  expctl experience get 3
  expctl experience edit 3 --end 2024-09-30
  expctl experience tag 3 1"""


@click.group(cls=ExpGroup, examples=_EXPERIENCE_EXAMPLES)
@click.pass_obj
def experience(app: AppContext) -> None:
    """Record and manage work experiences."""


@experience.command(
    examples="""\
  expctl experience add --start 2024-02-01
  expctl experience add --start 2023-03-01 --end 2023-11-30 --field client=Acme
  expctl experience add --start 2024-02-01 --field skills=Python --field skills=React
  expctl experience add --start 2024-02-01 --tag-id 1 --tag-id 2"""
)
@click.option("--start", "start_date", required=True, help="Start date (YYYY-MM-DD).")
@click.option("--end", "end_date", default=None, help="End date (omit while ongoing).")
@click.option(
    "--field",
    "fields",
    type=KEY_VALUE,
    multiple=True,
    help="Column value KEY=VALUE (repeat a multi-select key for several options).",
)
@click.option("--tag-id", "tag_ids", type=int, multiple=True, help="Tag to link (repeatable).")
@click.pass_obj
def add(
    app: AppContext,
    start_date: str,
    end_date: str | None,
    fields: tuple[tuple[str, str], ...],
    tag_ids: tuple[int, ...],
) -> None:
    """Record a new experience."""
    workspace = app.workspace
    custom_fields = build_custom_fields(workspace.columns.load(), fields)
    app.emit(
        ExperienceService(workspace).create_experience(
            start_date,
            end_date=end_date,
            custom_fields=custom_fields,
            tag_ids=list(tag_ids),
        )
    )


@experience.command(
    "list",
    examples="""\
  expctl experience list
  expctl -v experience list
  expctl --json experience list""",
)
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List every experience with its visible columns."""
    app.emit(ExperienceService(app.workspace).list_experiences())


@experience.command(
    examples="""\
  expctl experience get 3"""
)
@click.argument("experience_id", type=int)
@click.pass_obj
def get(app: AppContext, experience_id: int) -> None:
    """Show one experience."""
    app.emit(ExperienceService(app.workspace).get_experience(experience_id))


@experience.command(
    examples="""\
  expctl experience edit 3 --end 2024-09-30
  expctl experience edit 3 --clear-end
  expctl experience edit 3 --field project=Checkout --unset notes
  expctl experience edit 3 --tag-id 2 --tag-id 5
  expctl experience edit 3 --clear-tags"""
)
@click.argument("experience_id", type=int)
@click.option("--start", "start_date", default=None, help="New start date (YYYY-MM-DD).")
@click.option("--end", "end_date", default=None, help="New end date (YYYY-MM-DD).")
@click.option("--clear-end", is_flag=True, help="Mark the experience as ongoing.")
@click.option(
    "--field",
    "fields",
    type=KEY_VALUE,
    multiple=True,
    help="Set a column value KEY=VALUE; other fields are kept.",
)
@click.option("--unset", "unset_keys", multiple=True, help="Remove a field by key.")
@click.option("--tag-id", "tag_ids", type=int, multiple=True, help="Replace linked tags.")
@click.option("--clear-tags", is_flag=True, help="Unlink every tag.")
@click.pass_obj
def edit(
    app: AppContext,
    experience_id: int,
    start_date: str | None,
    end_date: str | None,
    clear_end: bool,
    fields: tuple[tuple[str, str], ...],
    unset_keys: tuple[str, ...],
    tag_ids: tuple[int, ...],
    clear_tags: bool,
) -> None:
    """Edit an experience's dates, fields, or tags."""
    if clear_end and end_date is not None:
        raise click.UsageError("--end and --clear-end are mutually exclusive.")
    if clear_tags and tag_ids:
        raise click.UsageError("--tag-id and --clear-tags are mutually exclusive.")

    svc = ExperienceService(app.workspace)
    changes: dict[str, Any] = {}
    if start_date is not None:
        changes["start_date"] = start_date
    if clear_end:
        changes["end_date"] = None
    elif end_date is not None:
        changes["end_date"] = end_date

    if fields or unset_keys:
        current = svc.get_experience(experience_id)
        if not current.ok:
            app.emit(current)
            return
        bag = dict(current.data["experience"]["custom_fields"])
        bag.update(build_custom_fields(app.workspace.columns.load(), fields))
        for key in unset_keys:
            bag.pop(key, None)
        changes["custom_fields"] = bag

    if clear_tags:
        changes["tag_ids"] = []
    elif tag_ids:
        changes["tag_ids"] = list(tag_ids)

    if not changes:
        raise click.UsageError("Nothing to change; pass at least one option.")
    app.emit(svc.update_experience(experience_id, changes))


@experience.command(
    examples="""\
  expctl experience remove 3"""
)
@click.argument("experience_id", type=int)
@click.pass_obj
def remove(app: AppContext, experience_id: int) -> None:
    """Delete an experience."""
    app.emit(ExperienceService(app.workspace).delete_experience(experience_id))


@experience.command(
    "tag",
    examples="""\
  expctl experience tag 3 1""",
)
@click.argument("experience_id", type=int)
@click.argument("tag_id", type=int)
@click.pass_obj
def tag_cmd(app: AppContext, experience_id: int, tag_id: int) -> None:
    """Link a tag to an experience."""
    app.emit(ExperienceService(app.workspace).add_tag(experience_id, tag_id))


@experience.command(
    "untag",
    examples="""\
  expctl experience untag 3 1""",
)
@click.argument("experience_id", type=int)
@click.argument("tag_id", type=int)
@click.pass_obj
def untag_cmd(app: AppContext, experience_id: int, tag_id: int) -> None:
    """Unlink a tag from an experience."""
    app.emit(ExperienceService(app.workspace).remove_tag(experience_id, tag_id))
