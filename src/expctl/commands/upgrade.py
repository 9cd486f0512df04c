"""Command: database schema migration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from expctl.commands._base import ExpCommand

if TYPE_CHECKING:
    from expctl.commands._context import AppContext


@click.command(
    cls=ExpCommand,
    examples="""\
  expctl upgrade
  expctl upgrade --check
  expctl --json upgrade --check""",
)
@click.option(
    "--check", "check_only", is_flag=True, help="Show pending migrations without applying."
)
@click.pass_obj
def upgrade(app: AppContext, check_only: bool) -> None:
    """Run pending database migrations."""
    from expctl.services.upgrade import UpgradeService

    svc = UpgradeService(app.workspace)
    app.emit(svc.check_pending() if check_only else svc.apply())
