"""Rich Console factory and theme for expctl output.

Consoles render to a StringIO buffer so formatting stays a pure
``ServiceResult -> str`` step. In non-TTY environments (tests, pipes)
Rich drops color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

EXP_THEME = Theme(
    {
        "exp.ok": "bold green",
        "exp.error": "bold red",
        "exp.warning": "bold yellow",
        "exp.op": "bold cyan",
        "exp.key": "dim",
        "exp.id": "bold blue",
        "exp.path": "dim",
        "exp.name": "bold",
        "exp.hidden": "dim italic",
        "exp.tag": "magenta",
        "exp.type.date": "cyan",
        "exp.type.short-text": "green",
        "exp.type.long-text": "blue",
        "exp.type.dropdown": "yellow",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=EXP_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_type(column_type: str) -> str:
    """Return the Rich style name for a column type."""
    style = f"exp.type.{column_type}"
    return style if style in EXP_THEME.styles else ""
