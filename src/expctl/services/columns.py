"""ColumnService — the column schema registry.

Columns describe the typed fields shown for every experience. Their
``order`` values drive display and export order; moving a column swaps
its order with the adjacent column inside one transaction.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError
from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError

from expctl.domain.columns import (
    DEFAULT_COLUMNS,
    Column,
    ColumnSpec,
    ColumnType,
    derive_key,
    next_order,
)
from expctl.infrastructure.database.schema import columns
from expctl.infrastructure.workspace import dump_json
from expctl.services.base import BaseService
from expctl.services.result import ServiceError, ServiceResult
from expctl.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from sqlalchemy import Connection

logger = logging.getLogger(__name__)

# Attributes accepted by update_column().
EDITABLE_ATTRIBUTES: tuple[str, ...] = (
    "name",
    "key",
    "type",
    "dropdown_options",
    "allow_multiple",
    "is_visible",
    "order",
)

DIRECTIONS: tuple[str, ...] = ("up", "down")


class _StaleOrder(Exception):
    """A guarded order update matched no row; the transaction must roll back."""


def _new_yaml() -> YAML:
    y = YAML()
    y.default_flow_style = False
    return y


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}" for err in exc.errors()
    )


def _clean_options(options: tuple[str, ...]) -> tuple[str, ...]:
    """Strip whitespace, drop blanks and duplicates, keep first-seen order."""
    seen: list[str] = []
    for option in options:
        text = option.strip()
        if text and text not in seen:
            seen.append(text)
    return tuple(seen)


def _resolve(spec: ColumnSpec, warnings: list[str]) -> tuple[str, tuple[str, ...], bool]:
    """Return ``(key, dropdown_options, allow_multiple)`` for a validated spec.

    Options and multi-select only apply to dropdown columns; anything given
    for another type is dropped with a warning.
    """
    key = (spec.key or "").strip() or derive_key(spec.name)
    options = _clean_options(spec.dropdown_options)
    allow_multiple = spec.allow_multiple
    if spec.type != ColumnType.DROPDOWN:
        if options or allow_multiple:
            warnings.append(f"Dropdown settings ignored for {spec.type} column '{spec.name}'")
        return key, (), False
    if not options:
        warnings.append(f"Dropdown column '{spec.name}' has no options")
    return key, options, allow_multiple


def _row_values(
    spec: ColumnSpec,
    key: str,
    options: tuple[str, ...],
    allow_multiple: bool,
    order: int,
) -> dict[str, Any]:
    return {
        "name": spec.name.strip(),
        "key": key,
        "type": str(spec.type),
        "dropdown_options": dump_json(list(options)) if options else None,
        "allow_multiple": int(allow_multiple),
        "is_visible": int(spec.is_visible),
        "order": order,
    }


def _column_payload(column: Column) -> dict[str, Any]:
    return column.model_dump(mode="json")


def _not_found(op: str, column_id: int) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(
            code="NOT_FOUND",
            message=f"No column found with ID: {column_id}",
            detail={"id": column_id},
        ),
    )


def _key_conflict(op: str, key: str) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(
            code="KEY_CONFLICT",
            message=f"A column with key '{key}' already exists",
            detail={"key": key},
        ),
    )


class ColumnService(BaseService):
    """Create, edit, reorder, and persist the column schema."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    def list_columns(self, *, visible_only: bool = False) -> ServiceResult:
        """All columns sorted by ``order``; optionally only visible ones."""
        items = self._workspace.columns.load(visible_only=visible_only)
        return ServiceResult(
            ok=True,
            op="list_columns",
            data={
                "count": len(items),
                "items": [_column_payload(c) for c in items],
                "visible_only": visible_only,
            },
        )

    @traced
    def get_column(self, column_id: int) -> ServiceResult:
        op = "get_column"
        column = self._workspace.columns.get(column_id)
        if column is None:
            return _not_found(op, column_id)
        return ServiceResult(ok=True, op=op, data={"column": _column_payload(column)})

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @traced
    def create_column(
        self,
        name: str,
        *,
        key: str | None = None,
        column_type: ColumnType | str = ColumnType.SHORT_TEXT,
        dropdown_options: list[str] | tuple[str, ...] | None = None,
        allow_multiple: bool = False,
        is_visible: bool = True,
        order: int | None = None,
    ) -> ServiceResult:
        """Add a column.

        The key is derived from *name* when omitted. Without an explicit
        *order* (or with order 0) the column lands after the current last
        one, or at 1 in an empty schema.
        """
        op = "create_column"
        warnings: list[str] = []

        try:
            spec = ColumnSpec(
                name=name,
                key=key,
                type=column_type,
                dropdown_options=dropdown_options,
                allow_multiple=allow_multiple,
                is_visible=is_visible,
                order=order or None,
            )
        except ValidationError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(code="VALIDATION_FAILED", message=_validation_message(exc)),
            )

        col_key, options, multiple = _resolve(spec, warnings)
        if not col_key:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="VALIDATION_FAILED",
                    message=f"Cannot derive a key from name '{spec.name}'; pass an explicit key",
                ),
            )

        try:
            with self._workspace.transaction() as txn:
                if spec.order is not None:
                    col_order = spec.order
                else:
                    orders = txn.conn.execute(select(columns.c.order)).scalars().all()
                    col_order = next_order(orders)
                result = txn.conn.execute(
                    insert(columns).values(
                        **_row_values(spec, col_key, options, multiple, col_order)
                    )
                )
                column_id = int(result.inserted_primary_key[0])
                created = self._workspace.columns.get(column_id, conn=txn.conn)
        except IntegrityError:
            return _key_conflict(op, col_key)

        assert created is not None
        logger.info("Created column %s (%s) at order %s", created.key, created.id, created.order)
        return ServiceResult(
            ok=True,
            op=op,
            data={"column": _column_payload(created)},
            warnings=warnings,
        )

    @traced
    def update_column(self, column_id: int, changes: dict[str, Any]) -> ServiceResult:
        """Apply a partial update.

        Unknown attributes are reported as warnings and skipped. Passing
        ``key=None`` re-derives the key from the (possibly new) name.
        """
        op = "update_column"
        warnings: list[str] = []

        existing = self._workspace.columns.get(column_id)
        if existing is None:
            return _not_found(op, column_id)

        merged: dict[str, Any] = existing.model_dump(exclude={"id"})
        fields_changed: list[str] = []
        for attr, value in changes.items():
            if attr not in EDITABLE_ATTRIBUTES:
                warnings.append(f"Unknown column attribute: {attr}")
                continue
            merged[attr] = value
            fields_changed.append(attr)

        try:
            spec = ColumnSpec(**merged)
        except ValidationError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(code="VALIDATION_FAILED", message=_validation_message(exc)),
            )

        col_key, options, multiple = _resolve(spec, warnings)
        if not col_key:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="VALIDATION_FAILED",
                    message=f"Cannot derive a key from name '{spec.name}'; pass an explicit key",
                ),
            )
        if col_key != existing.key:
            warnings.append(
                f"Key changed from '{existing.key}' to '{col_key}'; "
                f"stored values under '{existing.key}' are not moved"
            )

        col_order = spec.order if spec.order is not None else existing.order
        try:
            with self._workspace.transaction() as txn:
                txn.conn.execute(
                    update(columns)
                    .where(columns.c.id == column_id)
                    .values(**_row_values(spec, col_key, options, multiple, col_order))
                )
                updated = self._workspace.columns.get(column_id, conn=txn.conn)
        except IntegrityError:
            return _key_conflict(op, col_key)

        assert updated is not None
        return ServiceResult(
            ok=True,
            op=op,
            data={"column": _column_payload(updated), "fields_changed": fields_changed},
            warnings=warnings,
        )

    @traced
    def delete_column(self, column_id: int) -> ServiceResult:
        """Remove a column. Values stored under its key stay on experiences."""
        op = "delete_column"
        with self._workspace.transaction() as txn:
            existing = self._workspace.columns.get(column_id, conn=txn.conn)
            if existing is None:
                return _not_found(op, column_id)
            txn.conn.execute(delete(columns).where(columns.c.id == column_id))

        logger.info("Deleted column %s (%s)", existing.key, column_id)
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": column_id, "key": existing.key, "name": existing.name},
        )

    @traced
    def set_visibility(self, column_id: int, visible: bool) -> ServiceResult:
        """Show or hide a column in tables and visible-only exports."""
        op = "set_visibility"
        with self._workspace.transaction() as txn:
            result = txn.conn.execute(
                update(columns).where(columns.c.id == column_id).values(is_visible=int(visible))
            )
            if not result.rowcount:
                return _not_found(op, column_id)
            updated = self._workspace.columns.get(column_id, conn=txn.conn)

        assert updated is not None
        return ServiceResult(ok=True, op=op, data={"column": _column_payload(updated)})

    @traced
    def move_column(self, column_id: int, direction: str) -> ServiceResult:
        """Swap a column's order with its neighbour above or below.

        Both updates are guarded on the order values just read, so a
        concurrent reorder makes one of them miss its row; the whole
        transaction then rolls back and nothing changes. Other columns keep
        their orders; a neighbour with the same order cannot be swapped.
        """
        op = "move_column"

        if direction not in DIRECTIONS:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="VALIDATION_FAILED",
                    message=f"Direction must be one of {', '.join(DIRECTIONS)}, got {direction!r}",
                ),
            )

        try:
            with self._workspace.transaction() as txn:
                ordered = self._workspace.columns.load(conn=txn.conn)
                position = next((i for i, c in enumerate(ordered) if c.id == column_id), None)
                if position is None:
                    return _not_found(op, column_id)

                neighbour_pos = position - 1 if direction == "up" else position + 1
                if not 0 <= neighbour_pos < len(ordered):
                    edge = "first" if direction == "up" else "last"
                    return ServiceResult(
                        ok=False,
                        op=op,
                        error=ServiceError(
                            code="CANNOT_MOVE",
                            message=f"Column '{ordered[position].name}' is already {edge}",
                            detail={"id": column_id, "direction": direction},
                        ),
                    )

                target, neighbour = ordered[position], ordered[neighbour_pos]
                if target.order == neighbour.order:
                    return ServiceResult(
                        ok=False,
                        op=op,
                        error=ServiceError(
                            code="CANNOT_MOVE",
                            message=(
                                f"Column '{target.name}' shares order {target.order} with "
                                f"'{neighbour.name}'; give one a distinct --order first"
                            ),
                            detail={"id": column_id, "neighbour_id": neighbour.id},
                        ),
                    )

                with trace_span("swap_orders"):
                    self._guarded_set_order(txn.conn, target, neighbour.order)
                    self._guarded_set_order(txn.conn, neighbour, target.order)
        except _StaleOrder:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="CONCURRENT_MODIFICATION",
                    message="Column order changed while moving; nothing was applied",
                    detail={"id": column_id, "direction": direction},
                ),
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": target.id,
                "direction": direction,
                "order": neighbour.order,
                "swapped_with": {"id": neighbour.id, "order": target.order},
            },
        )

    @traced
    def ensure_defaults(self) -> ServiceResult:
        """Seed the starter columns when the schema is empty. Idempotent."""
        op = "ensure_defaults"
        with self._workspace.transaction() as txn:
            count = int(txn.conn.execute(select(func.count()).select_from(columns)).scalar_one())
            if count:
                return ServiceResult(ok=True, op=op, data={"seeded": False, "created": 0})
            for spec in DEFAULT_COLUMNS:
                key, options, multiple = _resolve(spec, [])
                assert spec.order is not None
                txn.conn.execute(
                    insert(columns).values(**_row_values(spec, key, options, multiple, spec.order))
                )

        logger.info("Seeded %d default columns", len(DEFAULT_COLUMNS))
        return ServiceResult(
            ok=True,
            op=op,
            data={"seeded": True, "created": len(DEFAULT_COLUMNS)},
        )

    # ------------------------------------------------------------------
    # Configuration files
    # ------------------------------------------------------------------

    @traced
    def export_config(self, path: Path) -> ServiceResult:
        """Write the column configuration to a YAML file."""
        op = "export_config"
        path = path.resolve()
        items = self._workspace.columns.load()

        entries: list[dict[str, Any]] = []
        for column in items:
            entry: dict[str, Any] = {
                "name": column.name,
                "key": column.key,
                "type": str(column.type),
                "order": column.order,
                "visible": column.is_visible,
            }
            if column.type == ColumnType.DROPDOWN:
                entry["dropdown_options"] = list(column.dropdown_options)
                entry["allow_multiple"] = column.allow_multiple
            entries.append(entry)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as fh:
                _new_yaml().dump({"columns": entries}, fh)
        except OSError as exc:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="EXPORT_FAILED",
                    message=f"Cannot write {path}: {exc}",
                    detail={"path": str(path)},
                ),
            )

        return ServiceResult(ok=True, op=op, data={"path": str(path), "count": len(entries)})

    @traced
    def import_config(self, path: Path) -> ServiceResult:
        """Replace every column with the entries of a YAML file.

        All entries are validated before anything is written; the swap
        itself happens in one transaction.
        """
        op = "import_config"
        warnings: list[str] = []

        def failed(message: str) -> ServiceResult:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="IMPORT_FAILED", message=message, detail={"path": str(path)}
                ),
            )

        try:
            data = YAML(typ="safe").load(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeError, YAMLError) as exc:
            return failed(f"Cannot read {path}: {exc}")

        entries = data.get("columns") if isinstance(data, dict) else None
        if not isinstance(entries, list) or not entries:
            return failed(f"{path} has no 'columns' list")

        rows: list[dict[str, Any]] = []
        seen_keys: set[str] = set()
        for index, entry in enumerate(entries, start=1):
            if not isinstance(entry, dict):
                return failed(f"Entry {index} is not a mapping")
            fields = dict(entry)
            if "visible" in fields:
                fields["is_visible"] = fields.pop("visible")
            try:
                spec = ColumnSpec(**fields)
            except (ValidationError, TypeError) as exc:
                detail = _validation_message(exc) if isinstance(exc, ValidationError) else exc
                return failed(f"Entry {index}: {detail}")
            key, options, multiple = _resolve(spec, warnings)
            if not key:
                return failed(f"Entry {index}: cannot derive a key from '{spec.name}'")
            if key in seen_keys:
                return failed(f"Entry {index}: duplicate key '{key}'")
            seen_keys.add(key)
            col_order = spec.order if spec.order is not None else index
            rows.append(_row_values(spec, key, options, multiple, col_order))

        with self._workspace.transaction() as txn:
            previous = {c.key for c in self._workspace.columns.load(conn=txn.conn)}
            txn.conn.execute(delete(columns))
            for values in rows:
                txn.conn.execute(insert(columns).values(**values))

        dropped = sorted(previous - seen_keys)
        if dropped:
            warnings.append(f"Columns removed by import: {', '.join(dropped)}")

        logger.info("Imported %d columns from %s", len(rows), path)
        return ServiceResult(
            ok=True,
            op=op,
            data={"path": str(path), "count": len(rows), "removed": dropped},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _guarded_set_order(conn: Connection, column: Column, new_order: int) -> None:
        result = conn.execute(
            update(columns)
            .where(columns.c.id == column.id, columns.c.order == column.order)
            .values(order=new_order)
        )
        if result.rowcount != 1:
            raise _StaleOrder(column.id)

