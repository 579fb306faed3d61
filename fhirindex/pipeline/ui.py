"""Central UI handler for fhirindex.

Single source of truth for Rich console styling. Import this instead of
instantiating Console() in every command file.

Usage:
    from fhirindex.pipeline.ui import console, print_header, print_error

    console.print("[success]Index built[/success]")
    print_header("BUILD SUMMARY")
"""

import sys

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

FHIRINDEX_THEME = Theme({
    "info": "bold cyan",
    "warning": "bold yellow",
    "error": "bold red",
    "success": "bold green",
    "cmd": "bold magenta",
    "path": "bold cyan",
    "expr": "green",
    "dim": "dim white",
})

# Single console instance - import this, don't create your own
console = Console(
    theme=FHIRINDEX_THEME,
    force_terminal=sys.stdout.isatty()
)


def print_header(title: str) -> None:
    """Print a styled section header with horizontal rules."""
    console.rule(f"[bold]{title}[/bold]")


def print_error(msg: str) -> None:
    """Print an error message in red."""
    console.print(f"[error]ERROR:[/error] {msg}")


def print_warning(msg: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[warning]WARNING:[/warning] {msg}")


def print_success(msg: str) -> None:
    """Print a success message in green."""
    console.print(f"[success]OK:[/success] {msg}")


def format_size(size_bytes: int) -> str:
    """Format a byte count as MB with one decimal."""
    return f"{size_bytes / 1024 / 1024:.1f} MB"


def print_build_summary(summary) -> None:
    """Render a BuildSummary as a two-column table."""
    table = Table(show_header=False, box=None, padding=(0, 2, 0, 0))
    table.add_column("Metric", style="info")
    table.add_column("Value", style="white")

    table.add_row("Views", str(summary.view_count))
    table.add_row("Expressions", str(summary.expression_count))
    table.add_row("Resources processed", str(summary.record_count))
    table.add_row("Index rows created", str(summary.row_count))
    table.add_row("Total time", f"{summary.elapsed:.1f}s")
    table.add_row("Rate", f"{summary.records_per_second:.0f} resources/sec")
    if summary.failed_evaluations:
        table.add_row("Failed evaluations", str(summary.failed_evaluations))
    if summary.placeholder_records:
        table.add_row("Records missing id/type", str(summary.placeholder_records))
    if summary.skipped_lines:
        table.add_row("Skipped input lines", str(summary.skipped_lines))
    table.add_row("Output", f"[path]{summary.output_path}[/path]")
    table.add_row("Database size", format_size(summary.size_bytes))

    print_header("BUILD COMPLETE")
    console.print(table)
