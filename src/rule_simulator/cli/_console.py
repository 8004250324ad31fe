"""Rich consoles and the simulator's terminal rendering."""

import json as json_mod
from typing import Sequence

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from rule_simulator.aggregation import CategoryShare
from rule_simulator.runtime.view_model import ResultSummary
from rule_simulator.values import format_number, format_percent

# Status/progress to stderr so it doesn't pollute piped JSON output
console = Console(stderr=True)

# Data output to stdout (pipeable to jq)
stdout_console = Console()

BAR_WIDTH = 20


def print_ok(msg: str) -> None:
    console.print(f"[green]✓[/green] {escape(msg)}")


def print_err(msg: str) -> None:
    console.print(f"[red]✗[/red] {escape(msg)}")


def print_warn(msg: str) -> None:
    console.print(f"[yellow]![/yellow] {escape(msg)}")


def output_result(data: dict, *, ctx: typer.Context, title: str = "") -> None:
    """Print data as JSON (stdout) with --json, else as a Rich panel (stderr)."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=data)
    else:
        formatted = json_mod.dumps(data, indent=2, ensure_ascii=False, default=str)
        if title:
            console.print(Panel(escape(formatted), title=escape(title), border_style="blue"))
        else:
            console.print(formatted, markup=False)


def output_table(rows: list[dict], *, title: str = "", columns: list[str] | None = None) -> None:
    """Print rows as a Rich table to stderr. Cells are shown verbatim."""
    if not rows:
        console.print("[dim]No data[/dim]")
        return

    cols = columns or list(rows[0].keys())
    table = Table(title=escape(title), show_lines=False)
    for col in cols:
        table.add_column(col)
    for row in rows:
        table.add_row(*[escape(str(row.get(c, ""))) for c in cols])
    console.print(table)


def share_bar(percent: float, width: int = BAR_WIDTH) -> str:
    """Horizontal bar for a 0-100 share, clamped."""
    filled = round(min(max(percent, 0.0), 100.0) / 100 * width)
    return "█" * filled + "·" * (width - filled)


def output_total(result: ResultSummary) -> None:
    """Grand total line, with a warning when defaults were used."""
    console.print(f"[bold]{escape(result.title)}[/bold]: {escape(result.formatted or '-')}")
    if result.is_partial:
        print_warn(f"Partial result, {len(result.missing_variables)} question(s) unanswered")


def output_breakdown(breakdown: Sequence[CategoryShare], *, title: str = "Breakdown") -> None:
    """Category shares, largest first, with their sub-categories indented."""
    if not breakdown:
        console.print("[dim]No category evaluated[/dim]")
        return

    table = Table(title=escape(title), show_lines=False)
    table.add_column("category")
    table.add_column("value", justify="right")
    table.add_column("share", justify="right")
    table.add_column("")
    for share in breakdown:
        table.add_row(
            escape(share.title),
            format_number(share.value),
            format_percent(share.percent),
            f"[cyan]{share_bar(share.percent)}[/cyan]",
        )
        for sub in share.subcategories:
            table.add_row(
                f"[dim]  {escape(sub.title)}[/dim]",
                f"[dim]{format_number(sub.value)}[/dim]",
                f"[dim]{format_percent(sub.percent)}[/dim]",
                "",
            )
    console.print(table)
