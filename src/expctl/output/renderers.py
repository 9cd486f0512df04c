"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from expctl.output.console import create_console, get_output, style_for_type

if TYPE_CHECKING:
    from rich.console import Console

    from expctl.services.result import ServiceResult

_LONG_TEXT_WIDTH = 40


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    # Lists print one id per line
    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(str(item["id"]) for item in items if isinstance(item, dict))

    for key in ("column", "experience", "tag"):
        entity = result.data.get(key)
        if isinstance(entity, dict) and "id" in entity:
            return str(entity["id"])

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="exp.ok")
    op = Text(f"  {result.op}", style="exp.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="exp.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="exp.id")
    elif key == "path":
        v = Text(str(value), style="exp.path")
    elif key == "name":
        v = Text(str(value), style="exp.name")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += f"  ({', '.join(f'{ak}={av}' for ak, av in annotations.items())})"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _truncate(text: str, width: int = _LONG_TEXT_WIDTH) -> str:
    text = " ".join(text.split())
    return text if len(text) <= width else text[: width - 1] + "…"


def cell_text(item: dict[str, Any], column: dict[str, Any], *, truncate: bool = True) -> str:
    """Display text for one experience payload under one column payload."""
    key = column.get("key", "")
    if key == "startDate":
        return str(item.get("start_date") or "")
    if key == "endDate":
        return str(item.get("end_date") or "")
    raw = item.get("custom_fields", {}).get(key)
    if raw is None:
        return ""
    if isinstance(raw, list):
        return ", ".join(str(v) for v in raw if v is not None)
    text = str(raw)
    if truncate and column.get("type") == "long-text":
        return _truncate(text)
    return text


def _tag_names(item: dict[str, Any]) -> str:
    return ", ".join(t["name"] for t in item.get("tags", []))


def _experience_table(
    items: list[dict[str, Any]],
    columns: list[dict[str, Any]],
    *,
    verbose: bool = False,
) -> Table:
    """Build a Rich Table with one column per schema column."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="exp.id", no_wrap=True)
    for column in columns:
        table.add_column(str(column.get("name", column.get("key", ""))))
    table.add_column("Tags", style="exp.tag")
    if verbose:
        table.add_column("Modified", style="dim")

    for item in items:
        row = [str(item.get("id", ""))]
        row.extend(cell_text(item, column) for column in columns)
        row.append(_tag_names(item))
        if verbose:
            row.append(str(item.get("modified") or ""))
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="exp.error")
    op = Text(f"  {result.op}", style="exp.op")
    sep = Text(" — ")
    console.print(label, op, sep, msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Column renderers ──────────────────────────────────────────────────


def _render_column_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    """Render list_columns as a table in display order."""
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="exp.id", no_wrap=True)
    table.add_column("Order", justify="right")
    table.add_column("Name", style="exp.name")
    table.add_column("Key")
    table.add_column("Type")
    table.add_column("Options")
    table.add_column("Visible")

    for item in items:
        column_type = str(item.get("type", ""))
        options = ", ".join(item.get("dropdown_options") or [])
        if options and item.get("allow_multiple"):
            options += " (multi)"
        visible = "yes" if item.get("is_visible") else Text("hidden", style="exp.hidden")
        table.add_row(
            str(item.get("id", "")),
            str(item.get("order", "")),
            str(item.get("name", "")),
            str(item.get("key", "")),
            Text(column_type, style=style_for_type(column_type)),
            options,
            visible,
        )
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} columns")
    if verbose:
        _render_meta(console, result)


def _render_column(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a single column (get/create/update/show/hide)."""
    _status_line(console, result)
    column = result.data.get("column", {})
    for key in ("id", "name", "key", "type", "order", "is_visible"):
        if key in column:
            _field(console, key, column[key])
    if column.get("dropdown_options"):
        _field(console, "dropdown_options", ", ".join(column["dropdown_options"]))
        _field(console, "allow_multiple", column.get("allow_multiple", False))
    if "fields_changed" in result.data:
        _field(console, "fields_changed", result.data["fields_changed"])
    if verbose:
        _render_meta(console, result)


def _render_move(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "id", d.get("id"))
    _field(console, "direction", d.get("direction"))
    _field(console, "order", d.get("order"))
    swapped = d.get("swapped_with") or {}
    if swapped:
        _field(console, "swapped_with", f"{swapped.get('id')} (now order {swapped.get('order')})")
    if verbose:
        _render_meta(console, result)


# ── Tag renderers ─────────────────────────────────────────────────────


def _render_tag_table(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="exp.id", no_wrap=True)
    table.add_column("Name", style="exp.tag")
    table.add_column("Used by", justify="right")
    for item in items:
        table.add_row(str(item.get("id", "")), str(item.get("name", "")), str(item.get("usage", 0)))
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} tags")


def _render_tag(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    tag = result.data.get("tag", {})
    _field(console, "id", tag.get("id"))
    _field(console, "name", tag.get("name"))
    if not result.data.get("created", True):
        _field(console, "created", "no (already existed)")


# ── Experience renderers ──────────────────────────────────────────────


def _render_experience_table(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    """Render list_experiences or search results as a table."""
    d = result.data
    items = d.get("items", [])
    console.print(_experience_table(items, d.get("columns", []), verbose=verbose))

    count = d.get("count", len(items))
    if "total" in d:
        console.print(f"\n{count} of {d['total']} experiences")
    else:
        console.print(f"\n{count} experiences")
    if d.get("filters"):
        console.print(Text(f"  filters: {_json.dumps(d['filters'])}", style="dim"))
    if verbose:
        _render_meta(console, result)


def _render_experience(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a single experience as a panel of its column values."""
    d = result.data
    item = d.get("experience", {})
    columns = d.get("columns") or []

    lines: list[str] = []
    end = item.get("end_date") or "ongoing"
    lines.append(f"dates: {item.get('start_date', '?')} → {end}")
    shown: set[str] = {"startDate", "endDate"}
    for column in columns:
        key = column.get("key", "")
        if key in shown:
            continue
        shown.add(key)
        text = cell_text(item, column, truncate=False)
        if text:
            lines.append(f"{column.get('name', key)}: {text}")
    for key in item.get("custom_fields", {}):
        if key not in shown:
            lines.append(f"{key}: {cell_text(item, {'key': key}, truncate=False)}")
    tags = _tag_names(item)
    if tags:
        lines.append(f"tags: {tags}")
    if verbose:
        for key in ("created", "modified"):
            if item.get(key):
                lines.append(f"{key}: {item[key]}")

    if result.op != "get_experience":
        _status_line(console, result)
    if "fields_changed" in d:
        _field(console, "fields_changed", d["fields_changed"])
    title = f"Experience {item.get('id', '?')}"
    console.print(Panel(Text("\n".join(lines)), title=title, border_style="dim", expand=False))
    if verbose:
        _render_meta(console, result)


# ── Export renderers ─────────────────────────────────────────────────


def _render_export(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render export/import results with path and counts."""
    _status_line(console, result)
    d = result.data
    if "path" in d:
        _field(console, "path", d["path"])
    for key in ("row_count", "count"):
        if key in d:
            _field(console, key, d[key])
    if d.get("removed"):
        _field(console, "removed", ", ".join(d["removed"]))
    if d.get("filters"):
        _field(console, "filters", d["filters"])
    if verbose and d.get("columns"):
        _field(console, "columns", ", ".join(d["columns"]))
    if verbose:
        _render_meta(console, result)


# ── Upgrade renderers ────────────────────────────────────────────────


def _render_upgrade(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render upgrade/migration results."""
    _status_line(console, result)
    d = result.data
    for key in ("applied_count", "pending_count", "current", "head", "backup_path", "message"):
        if key in d:
            _field(console, key, d[key])
    if d.get("stamped"):
        _field(console, "stamped", True)
    if verbose and d.get("pending"):
        console.print()
        for p in d["pending"]:
            console.print(f"  {p['revision']}: {p['description']}")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Columns
    "list_columns": _render_column_table,
    "get_column": _render_column,
    "create_column": _render_column,
    "update_column": _render_column,
    "set_visibility": _render_column,
    "move_column": _render_move,
    "delete_column": _render_generic,
    "ensure_defaults": _render_generic,
    "export_config": _render_export,
    "import_config": _render_export,
    # Tags
    "list_tags": _render_tag_table,
    "create_tag": _render_tag,
    "delete_tag": _render_generic,
    # Experiences
    "list_experiences": _render_experience_table,
    "get_experience": _render_experience,
    "create_experience": _render_experience,
    "update_experience": _render_experience,
    "add_tag": _render_experience,
    "remove_tag": _render_experience,
    "delete_experience": _render_generic,
    # Search / export
    "search": _render_experience_table,
    "export_csv": _render_export,
    # Upgrade
    "upgrade": _render_upgrade,
}
