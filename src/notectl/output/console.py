"""Rich Console factory and theme for notectl output.

Two kinds of console are used:

- buffered consoles render to a StringIO buffer, preserving the
  ``format_result() -> str`` contract. In non-TTY environments (tests,
  pipes) Rich automatically disables color codes.
- the status console streams fix progress to stderr as it happens.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

NOTE_THEME = Theme(
    {
        "note.ok": "bold green",
        "note.error": "bold red",
        "note.warning": "bold yellow",
        "note.op": "bold cyan",
        "note.key": "dim",
        "note.path": "bold",
        "note.dim": "dim",
        "note.code": "cyan",
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
        theme=NOTE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def create_status_console(*, quiet: bool = False) -> Console:
    """Create the stderr console used for live fix progress."""
    return Console(stderr=True, theme=NOTE_THEME, highlight=False, quiet=quiet)


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
