"""Subcommand modules for expctl.

Provides register_commands(), which imports command modules lazily so
``expctl --help`` stays fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group.

    4 groups (have subcommands) + 2 standalone commands.
    """
    # --- Groups ---
    from expctl.commands.column import column
    from expctl.commands.experience import experience
    from expctl.commands.export import export
    from expctl.commands.tag import tag

    cli.add_command(column)
    cli.add_command(tag)
    cli.add_command(experience)
    cli.add_command(export)

    # --- Standalone commands ---
    from expctl.commands.search import search
    from expctl.commands.upgrade import upgrade

    cli.add_command(search)
    cli.add_command(upgrade)
