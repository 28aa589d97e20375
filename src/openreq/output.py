"""Terminal rendering for openreq with a strict stdout/stderr split.

Data (responses, the operation catalog, parameter listings, batch results)
goes to stdout; diagnostics (status lines, warnings, errors, debug traces)
go to stderr, so ``openreq --json call ... | jq`` always sees clean JSON.

Three renderings exist for every kind of data:

* ``json`` -- machine-readable, indented.
* ``plain`` -- tab-separated lines, for piping into ``cut``/``awk``.
* ``rich`` -- tables and highlighted JSON, picked automatically on a colour
  terminal (``auto``).

Colour is off when ``--no-color`` is passed, ``NO_COLOR`` is set to any
value, or ``TERM=dumb``.

The engine modules report through the process-wide manager returned by
:func:`get_output`; with ``--verbose`` that surfaces skipped parameters,
dropped query values, transport retries and per-item batch failures.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from openreq.models import CatalogEntry, OperationDefinition, SelectOption


class OutputFormat(str, Enum):
    """How data is rendered on stdout."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Renders data to stdout and diagnostics to stderr.

    Args:
        format: Requested rendering; ``AUTO`` becomes ``RICH`` on a colour
            terminal and ``PLAIN`` everywhere else.
        no_color: Strip colour and markup from both streams.
        quiet: Drop ``info`` lines. Warnings and errors are always shown.
        verbose: Show ``debug`` lines.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._format = _resolve_format(format, self._no_color)

        rich_mode = self._format is OutputFormat.RICH
        self._stdout = Console(file=sys.stdout, no_color=self._no_color, force_terminal=rich_mode)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # --- stdout ---

    def print_data(self, text: str) -> None:
        """Write one line of raw text to stdout."""
        print(text, file=sys.stdout, flush=True)

    def format_response(self, data: Any) -> None:
        """Render a decoded response body (or a dry-run result). ``None`` prints nothing."""
        if data is None:
            return
        if self._format is OutputFormat.JSON:
            self.print_data(_to_json(data))
        elif self._format is OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self.print_data(line)
        elif isinstance(data, (dict, list)):
            self._stdout.print(Syntax(_to_json(data), "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(data), markup=False)

    def print_table(
        self,
        headers: Sequence[str],
        rows: Sequence[Sequence[str]],
        title: Optional[str] = None,
    ) -> None:
        """Render rows as JSON records, tab-separated lines, or a Rich table."""
        if self._format is OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format is OutputFormat.PLAIN:
            for line in (headers, *rows):
                self.print_data("\t".join(line))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    def print_catalog(self, entries: Sequence[CatalogEntry]) -> None:
        """Render the operation catalog, or a notice when it is empty."""
        if not entries:
            self.info("No operations available.")
            return
        rows = [[entry.key, entry.name, entry.description] for entry in entries]
        self.print_table(["Key", "Name", "Description"], rows, title="Operations")

    def print_operation(
        self, operation: OperationDefinition, media_types: Sequence[SelectOption] = ()
    ) -> None:
        """Render one operation's parameters, then its request-body media types."""
        rows = [
            [
                param.key,
                "yes" if param.required else "no",
                param.type.value if param.type else "",
                param.format or "",
                param.description or "",
            ]
            for param in operation.parameters
        ]
        self.print_table(
            ["Key", "Required", "Type", "Format", "Description"], rows, title=operation.key
        )

        if media_types:
            media_rows = [[option.name, option.description] for option in media_types]
            self.print_table(["Media type", "Description"], media_rows, title="Request body")

    def print_batch_results(self, results: Sequence[Any]) -> None:
        """Render batch outputs in input order.

        JSON and plain output pass the result list through unchanged; the
        Rich view adds an index/status column so failed items stand out.
        """
        if self._format is not OutputFormat.RICH:
            self.format_response(list(results))
            return

        table = Table(title=f"Batch results ({len(results)})", header_style="bold cyan")
        table.add_column("#", justify="right")
        table.add_column("Status")
        table.add_column("Result")
        for index, result in enumerate(results):
            failed = isinstance(result, dict) and set(result) == {"error"}
            status = "[red]error[/red]" if failed else "[green]ok[/green]"
            detail = result["error"] if failed else _to_json(result)
            table.add_row(str(index), status, Text(detail))
        self._stdout.print(table)

    # --- stderr ---

    def info(self, message: str) -> None:
        """Status line; dropped in quiet mode."""
        if not self._quiet:
            self._diagnostic(message)

    def warning(self, message: str) -> None:
        self._diagnostic(message, prefix="Warning: ", style="yellow")

    def error(self, message: str) -> None:
        self._diagnostic(message, prefix="Error: ", style="bold red")

    def debug(self, message: str) -> None:
        """Trace line; only shown with ``--verbose``."""
        if self._verbose:
            self._diagnostic(f"[debug] {message}", dim=True)

    def _diagnostic(
        self, message: str, prefix: str = "", style: str = "", dim: bool = False
    ) -> None:
        if self._no_color:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
            return
        if prefix:
            self._stderr.print(prefix, style=style, end="", markup=False)
        self._stderr.print(message, style="dim" if dim else None, markup=False)


def _resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested is not OutputFormat.AUTO:
        return requested
    return OutputFormat.RICH if _is_tty() and not no_color else OutputFormat.PLAIN


def _plain_lines(data: Any) -> list[str]:
    """``key<TAB>value`` for objects, one row per element for arrays."""
    if isinstance(data, dict):
        return [f"{key}\t{value}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _should_disable_color() -> bool:
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# --- process-wide manager ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the active manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the active manager (used between tests)."""
    global _output
    _output = None
