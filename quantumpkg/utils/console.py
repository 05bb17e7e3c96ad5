"""
Terminal output for the ``quantum`` CLI, rendered with Rich.

Commands print results and one-line status messages through these helpers;
diagnostics belong to :mod:`quantumpkg.utils.logger`. Colour is disabled by
``NO_COLOR``, by ``CI`` and whenever stdout is not a terminal.
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Dict, List, Optional, Sequence

from rich.table import Table
from rich.theme import Theme
from rich.markup import escape
from rich.console import Console

QUANTUM_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "source.registry": "cyan",
        "source.path": "yellow",
        "source.git": "magenta",
    }
)

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color() -> bool:
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    stdout = sys.stdout
    return bool(stdout is not None and hasattr(stdout, "isatty") and stdout.isatty())


def _get_console() -> Console:
    """Return the process-wide console, building it on first use."""
    global _console

    with _console_lock:
        if _console is None:
            color = _should_use_color()
            _console = Console(theme=QUANTUM_THEME, no_color=not color, highlight=color)
        return _console


def reconfigure_console() -> None:
    """Forget the current console; the next print re-reads the environment."""
    global _console
    with _console_lock:
        _console = None


def get_raw_console() -> Console:
    """Direct access to the Rich console, for callers needing more than the helpers."""
    return _get_console()


def _status(prefix: str, message: str, style: str) -> None:
    # Messages carry paths and TOML snippets such as "[package]"; never parse them as markup
    _get_console().print(f"{prefix} {escape(message)}", style=style)


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    _status(prefix, message, "success")


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    _status(prefix, message, "error")


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    _status(prefix, message, "warning")


def print_table(
    data: List[Dict[str, Any]],
    *,
    headers: Optional[Sequence[str]] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
) -> None:
    """Print ``data`` (one dict per row) as a table.

    Cell values may contain Rich markup, e.g. from :func:`colorize_source`.
    Columns follow ``headers``, or the keys of the first row. Nothing is
    printed for an empty ``data``.
    """
    if not data:
        return

    columns = list(headers) if headers is not None else list(data[0])
    table = Table(title=title, caption=caption, header_style="bold")
    for column in columns:
        table.add_column(column, overflow="fold")
    for row in data:
        table.add_row(*(str(row.get(column, "")) for column in columns))

    _get_console().print(table)


def print_json(payload: Any) -> None:
    """Print ``payload`` as indented JSON."""
    _get_console().print_json(data=payload)


def colorize_source(source: str) -> str:
    """Wrap a lockfile ``source`` value in its theme style.

    Unknown values are returned unchanged.
    """
    style = f"source.{source.lower()}"
    if style not in QUANTUM_THEME.styles:
        return source
    return f"[{style}]{source}[/{style}]"
