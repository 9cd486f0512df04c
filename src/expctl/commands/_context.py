"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Provides lazy Workspace initialization (including
the one-time default column seeding) and centralized result emission
(stdout/stderr routing and exit codes).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import click

from expctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from expctl.config.settings import ExpSettings
    from expctl.infrastructure.workspace import Workspace
    from expctl.services.result import ServiceResult

logger = logging.getLogger(__name__)


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The workspace is created on first use so ``--help``, ``--version``
    and ``--examples`` never touch the database.
    """

    def __init__(self, settings: ExpSettings) -> None:
        self.settings = settings
        self._workspace: Workspace | None = None

        from expctl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from expctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def workspace(self) -> Workspace:
        """The workspace instance (created lazily on first access)."""
        if self._workspace is None:
            from expctl.infrastructure.workspace import Workspace

            self._workspace = Workspace(self.settings)
            if self.settings.columns.seed_defaults:
                from expctl.services.columns import ColumnService

                seeded = ColumnService(self._workspace).ensure_defaults()
                if seeded.data.get("seeded"):
                    logger.debug("Default columns seeded in %s", self._workspace.root)
        return self._workspace

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout and returns. Warnings go to stderr so
          they stay out of piped output.
        * Failure: writes to stderr and exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
