"""Command group: tags."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from expctl.commands._base import ExpGroup
from expctl.services.tags import TagService

if TYPE_CHECKING:
    from expctl.commands._context import AppContext

_TAG_EXAMPLES = """\
  expctl tag list
  expctl tag add remote
  expctl tag remove 3"""


@click.group(cls=ExpGroup, examples=_TAG_EXAMPLES)
@click.pass_obj
def tag(app: AppContext) -> None:
    """Manage tags attached to experiences."""


@tag.command(
    "list",
    examples="""\
  expctl tag list
  expctl -q tag list""",
)
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List tags by name."""
    app.emit(TagService(app.workspace).list_tags())


@tag.command(
    examples="""\
  expctl tag add remote
  expctl tag add freelance"""
)
@click.argument("name")
@click.pass_obj
def add(app: AppContext, name: str) -> None:
    """Create a tag (returns the existing one if the name is taken)."""
    app.emit(TagService(app.workspace).create_tag(name))


@tag.command(
    examples="""\
  expctl tag remove 3"""
)
@click.argument("tag_id", type=int)
@click.pass_obj
def remove(app: AppContext, tag_id: int) -> None:
    """Delete a tag and unlink it from every experience."""
    app.emit(TagService(app.workspace).delete_tag(tag_id))
