"""Library for printing progress of a reconcile run to the terminal.

Lines that belong to the run are prefixed with a `│` gutter and dimmed so
that the output of the flux command stands out. Styles are only rendered when
writing to a terminal and colors are not disabled.
"""

import sys
from typing import TextIO

from rich.console import Console
from rich.text import Text

__all__ = [
    "Printer",
]

GUTTER = "│ "
SUBLOG_STYLE = "color(244)"
WARNING_STYLE = "yellow"
ERROR_STYLE = "red"


class Printer:
    """Prints formatted progress lines."""

    def __init__(self, file: TextIO | None = None, no_color: bool = False) -> None:
        """Initialize the Printer writing to `file`, stdout by default."""
        self._console = Console(
            file=file or sys.stdout,
            no_color=no_color,
            color_system=None if no_color else "auto",
            highlight=False,
            soft_wrap=True,
            emoji=False,
        )

    def _sublog(self, message: str, style: str | None = None) -> None:
        text = Text(GUTTER, style=SUBLOG_STYLE)
        text.append(message, style=style or SUBLOG_STYLE)
        self._console.print(text)

    def command(self, args: list[str]) -> None:
        """Print the command line about to be run."""
        self._sublog(" ".join(args))

    def status(self, message: str) -> None:
        """Print a progress update."""
        self._sublog(message)

    def waiting(self, kind: str) -> None:
        self._sublog(f"⏳ Waiting for {kind} reconciliation...")

    def success(self, kind: str) -> None:
        self._sublog(f"✅ {kind} reconciliation completed successfully")

    def error(self, message: str) -> None:
        self._sublog(f"❌ {message}", ERROR_STYLE)

    def warning(self, message: str) -> None:
        self._sublog(f"⚠️  {message}", WARNING_STYLE)

    def event(self, reason: str, message: str, warning: bool) -> None:
        """Print a kubernetes event about the resource."""
        if warning:
            self._sublog(f"⚠️  [{reason}] {message}", WARNING_STYLE)
        else:
            self._sublog(f"ℹ️  [{reason}] {message}")
