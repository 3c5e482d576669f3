"""
Console output for the pipewright CLI, built on rich and questionary.

Colours follow the Nord palette. ``NO_COLOR`` and ``FORCE_COLOR`` are
honoured, and CI runners are treated as non-interactive.
"""

from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from typing import Iterator, Sequence

from questionary import Style as QStyle
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

PIPEWRIGHT_THEME = Theme(
    {
        "info": "#88C0D0",
        "success": "#A3BE8C",
        "warning": "#EBCB8B",
        "error": "#BF616A bold",
        "step": "#81A1C1 bold",
        "url": "#88C0D0 underline",
        "muted": "#D8DEE9",
    }
)

PROMPT_STYLE = QStyle(
    [
        ("qmark", "fg:#88C0D0 bold"),
        ("question", "bold"),
        ("answer", "fg:#A3BE8C"),
        ("pointer", "fg:#88C0D0 bold"),
        ("highlighted", "fg:#81A1C1 bold"),
        ("instruction", "fg:#D8DEE9 italic"),
    ]
)

CI_ENV_VARS = ("CI", "GITHUB_ACTIONS", "TF_BUILD", "GITLAB_CI", "JENKINS_URL")

console = Console(
    theme=PIPEWRIGHT_THEME,
    highlight=False,
    force_terminal=True if os.environ.get("FORCE_COLOR") else None,
    no_color=bool(os.environ.get("NO_COLOR")),
)

_SYMBOLS = {"success": "✓", "error": "✗", "warning": "⚠", "info": "ℹ"}


def is_interactive() -> bool:
    """True on a terminal that is not a CI runner."""
    if any(os.environ.get(var) for var in CI_ENV_VARS):
        return False
    return sys.stdin.isatty() and sys.stdout.isatty()


def _emit(kind: str, message: str) -> None:
    console.print(f"[{kind}]{_SYMBOLS[kind]} {message}[/{kind}]")


def success(message: str) -> None:
    _emit("success", message)


def error(message: str) -> None:
    _emit("error", message)


def warning(message: str) -> None:
    _emit("warning", message)


def info(message: str) -> None:
    _emit("info", message)


def header(title: str, subtitle: str | None = None) -> None:
    console.print()
    console.print(Panel.fit(f"[bold]{title}[/bold]", subtitle=subtitle, border_style="step"))


@contextmanager
def spinner(message: str) -> Iterator[None]:
    """Show a transient spinner while a remote call is running."""
    if not console.is_terminal:
        console.print(f"[muted]{message}...[/muted]")
        yield
        return
    with console.status(f"[info]{message}[/info]", spinner="dots"):
        yield


def print_table(title: str, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
    table = Table(title=title, title_justify="left", header_style="step")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    console.print(table)


def print_summary(title: str, items: dict[str, str | None]) -> None:
    """Key/value panel; empty values are left out."""
    lines = [f"[step]{key}:[/step] {value}" for key, value in items.items() if value]
    console.print(Panel("\n".join(lines), title=title, title_align="left", border_style="success"))
