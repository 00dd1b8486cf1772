"""Rich Console factory and theme for xlog output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments (tests,
pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

XLOG_THEME = Theme(
    {
        "xlog.ok": "bold green",
        "xlog.error": "bold red",
        "xlog.warning": "bold yellow",
        "xlog.op": "bold cyan",
        "xlog.key": "dim",
        "xlog.id": "bold blue",
        "xlog.name": "bold",
        "xlog.gain": "green",
        "xlog.loss": "red",
        "xlog.focus": "bold magenta",
        "xlog.rank": "bold yellow",
        "xlog.type.quick": "green",
        "xlog.type.session": "cyan",
        "xlog.type.grind": "magenta",
    }
)

_TYPE_STYLES: dict[str, str] = {
    "quick": "xlog.type.quick",
    "session": "xlog.type.session",
    "grind": "xlog.type.grind",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=XLOG_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 100,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_type(task_type: str) -> str:
    """Return the Rich style name for a task type."""
    return _TYPE_STYLES.get(task_type, "")


def style_for_delta(delta: float) -> str:
    """Green for gains, red for losses, plain for zero."""
    if delta > 0:
        return "xlog.gain"
    if delta < 0:
        return "xlog.loss"
    return ""
