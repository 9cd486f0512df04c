"""UpgradeService — database migration with Alembic.

Pipeline: BACKUP → MIGRATE (or STAMP) → REPORT
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Any

from alembic import command
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect

from expctl.infrastructure.database.engine import STATE_DIRNAME
from expctl.infrastructure.database.migrations import build_config, db_url_for
from expctl.services._helpers import now_compact
from expctl.services.base import BaseService
from expctl.services.result import ServiceError, ServiceResult
from expctl.services.telemetry import traced

logger = logging.getLogger(__name__)


class UpgradeService(BaseService):
    """Handles database schema migrations via Alembic."""

    def _db_url(self) -> str:
        return db_url_for(self._workspace.root)

    def _tables_exist(self) -> bool:
        """Whether core tables exist (database created without version tracking)."""
        return "columns" in inspect(self._workspace.engine).get_table_names()

    def _backup_db(self) -> Path:
        """Copy the database to a timestamped file under ``.expctl/backups``."""
        backup_dir = self._workspace.root / STATE_DIRNAME / "backups"
        backup_dir.mkdir(parents=True, exist_ok=True)

        backup_path = backup_dir / f"expctl-{now_compact()}.db"
        shutil.copy2(str(self._workspace.db_path), str(backup_path))

        keep = self._workspace.settings.upgrade.backup_max_count
        backups = sorted(backup_dir.glob("expctl-*.db"))
        if len(backups) > keep:
            for old in backups[: len(backups) - keep]:
                old.unlink(missing_ok=True)
        return backup_path

    @traced
    def check_pending(self) -> ServiceResult:
        """List pending migrations without applying."""
        op = "upgrade"

        try:
            cfg = build_config(self._db_url())
            script = ScriptDirectory.from_config(cfg)
            head = script.get_current_head()

            with self._workspace.engine.connect() as conn:
                current = MigrationContext.configure(conn).get_current_revision()

            # Walk from head down to current
            pending: list[dict[str, Any]] = []
            if current != head and head is not None:
                rev_obj = script.get_revision(head)
                while rev_obj is not None and rev_obj.revision != current:
                    pending.append(
                        {
                            "revision": rev_obj.revision,
                            "description": rev_obj.doc or "",
                        }
                    )
                    down = rev_obj.down_revision
                    if down is None:
                        break
                    rev_obj = script.get_revision(str(down))

            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "pending_count": len(pending),
                    "pending": pending,
                    "current": current,
                    "head": head,
                },
            )
        except Exception as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="CHECK_FAILED",
                    message=f"Failed to check migrations: {exc}",
                ),
            )

    @traced
    def apply(self) -> ServiceResult:
        """BACKUP → MIGRATE → REPORT pipeline."""
        op = "upgrade"

        check_result = self.check_pending()
        if not check_result.ok:
            return check_result

        pending_count = check_result.data["pending_count"]
        if pending_count == 0:
            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "applied_count": 0,
                    "current": check_result.data["head"],
                    "message": "Database is already up to date",
                },
            )

        # BACKUP
        try:
            backup_path = self._backup_db()
        except OSError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="BACKUP_FAILED",
                    message=f"Backup failed: {exc}",
                ),
            )

        # MIGRATE (or STAMP when tables exist without version tracking)
        stamped = False
        try:
            cfg = build_config(self._db_url())
            if check_result.data.get("current") is None and self._tables_exist():
                command.stamp(cfg, "head")
                stamped = True
            else:
                command.upgrade(cfg, "head")
        except Exception as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="MIGRATION_FAILED",
                    message=f"Migration failed: {exc}. Backup at: {backup_path}",
                    detail={"backup_path": str(backup_path)},
                ),
            )

        logger.info("Database upgraded to %s (stamped=%s)", check_result.data["head"], stamped)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "applied_count": pending_count,
                "current": check_result.data["head"],
                "backup_path": str(backup_path),
                "stamped": stamped,
            },
        )
