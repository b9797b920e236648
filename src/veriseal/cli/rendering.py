"""CLI result rendering policies and Rich views."""

from __future__ import annotations

import json
from collections.abc import Callable

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from veriseal.cli.result import CliResult

VERIFY_CODES = frozenset({"verified", "verify_failed"})


class CliRenderer:
    """Render command results with Rich structures or as JSON lines."""

    def __init__(self, *, console: Console, err_console: Console) -> None:
        """Store consoles used for rendering.

        Args:
            console: Console for results (stdout).
            err_console: Console for failures (stderr).
        """
        self._console = console
        self._err_console = err_console

    def render(self, result: CliResult, *, json_output: bool = False) -> None:
        """Render one command result.

        Args:
            result: Structured command result.
            json_output: Emit the machine-readable `{ok, error}` shape instead.
        """
        if json_output:
            self._console.out(
                json.dumps(result.to_json_payload(), ensure_ascii=False),
                highlight=False,
            )
            return
        renderer = self._renderers().get(result.code)
        if renderer is not None:
            renderer(result)
            return
        if result.is_ok:
            self._console.print(result.message, highlight=False)
            return
        self._err_console.print(
            Panel(
                Text(result.message),
                title=Text(f"Error [{result.code}]"),
                subtitle=result.kind,
                border_style="bold red",
                expand=True,
            )
        )

    def _renderers(self) -> dict[str, Callable[[CliResult], None]]:
        return {code: self._render_verify for code in VERIFY_CODES}

    def _render_verify(self, result: CliResult) -> None:
        """Render signature and payload hash checks as a table."""
        data = result.data or {}
        table = Table(title="Verify", show_header=True, header_style="bold cyan")
        table.add_column("Check", style="bold")
        table.add_column("Status")
        table.add_column("Reason")
        table.add_row(
            "signature",
            _status_cell(data.get("signature_ok")),
            Text(str(data.get("signature_error") or "")),
        )
        table.add_row(
            "payload hash",
            _status_cell(data.get("payload_hash_ok")),
            Text(str(data.get("payload_error") or "")),
        )
        console = self._console if result.is_ok else self._err_console
        console.print(table)


def _status_cell(value: object) -> str:
    if value is None:
        return "[yellow]SKIPPED[/yellow]"
    return "[green]OK[/green]" if value else "[bold red]FAILED[/bold red]"
