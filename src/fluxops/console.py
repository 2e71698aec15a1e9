"""Rich console utilities for styled terminal output.

This module provides a consistent, visually appealing interface for all
CLI output using the Rich library.
"""

from collections.abc import Generator, Iterable
from contextlib import contextmanager

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from fluxops.models import CheckResult, CheckStatus, ValidationReport

# Custom theme with consistent colors
_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "header": "blue bold",
        "highlight": "cyan bold",
        "muted": "dim",
    }
)

_STATUS_STYLES = {
    CheckStatus.PASSED: "[success]✓ passed[/success]",
    CheckStatus.WARNING: "[warning]⚠ warning[/warning]",
    CheckStatus.FAILED: "[error]✗ failed[/error]",
    CheckStatus.SKIPPED: "[muted]- skipped[/muted]",
}

# Shared console instance
console = Console(theme=_THEME)


def info(message: str) -> None:
    """Print an informational message.

    Args:
        message: The message to display.

    """
    console.print(f"[info]ℹ[/info] {message}")


def success(message: str) -> None:
    """Print a success message.

    Args:
        message: The message to display.

    """
    console.print(f"[success]✓[/success] {message}")


def warning(message: str) -> None:
    """Print a warning message.

    Args:
        message: The message to display.

    """
    console.print(f"[warning]⚠[/warning] {message}")


def error(message: str) -> None:
    """Print an error message.

    Args:
        message: The message to display.

    """
    console.print(f"[error]✗[/error] {message}")


def action(message: str) -> None:
    """Print an action/progress message.

    Args:
        message: The message to display.

    """
    console.print(f"[info]→[/info] {message}")


def step(message: str) -> None:
    """Print a sub-step message.

    Args:
        message: The message to display.

    """
    console.print(f"[muted]•[/muted] {message}")


def header(message: str) -> None:
    """Print a workflow step header."""
    console.print(f"[header]▸[/header] [bold]{message}[/bold]")


def title(text: str) -> None:
    """Print the banner shown at the start of a command."""
    console.rule(f"[bold]{text}[/bold]")


def highlight(text: str) -> str:
    """Return text wrapped in highlight markup.

    Args:
        text: The text to highlight.

    Returns:
        Text wrapped in Rich markup for highlighting.

    """
    return f"[highlight]{text}[/highlight]"


def output_block(text: str, *, limit: int | None = None) -> None:
    """Print captured tool output verbatim, dimmed.

    Args:
        text: The captured output.
        limit: Maximum number of lines to show.

    """
    lines = text.splitlines()
    if limit is not None:
        lines = lines[:limit]
    for line in lines:
        console.print(f"  [muted]{escape(line)}[/muted]")


@contextmanager
def spinner(message: str) -> Generator[None, None, None]:
    """Display a spinner while performing an operation.

    Args:
        message: The status message to display.

    Yields:
        None

    """
    with console.status(f"[info]{message}[/info]", spinner="dots"):
        yield


def summary_panel(title: str, items: dict[str, str], *, border_style: str = "green") -> None:
    """Print a summary panel with key-value pairs.

    Args:
        title: Title for the panel.
        items: Dictionary of label -> value pairs to display. Values are
            printed literally, never read as markup.
        border_style: Rich style for the panel border.

    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(style="cyan")

    for label, value in items.items():
        table.add_row(f"{escape(label)}:", escape(str(value)))

    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style=border_style))


def next_steps(steps: Iterable[str]) -> None:
    """Print a numbered list of follow-up actions."""
    console.print("[bold]Next steps:[/bold]")
    for number, text in enumerate(steps, start=1):
        console.print(f"  {number}. {text}")


def check_result(result: CheckResult) -> None:
    """Print a single validation check as it completes."""
    text = f"{escape(result.name)}: {escape(result.message)}"
    match result.status:
        case CheckStatus.PASSED:
            success(text)
        case CheckStatus.WARNING:
            warning(text)
        case CheckStatus.FAILED:
            error(text)
        case CheckStatus.SKIPPED:
            step(f"[muted]{text}[/muted]")


def report_table(report: ValidationReport) -> None:
    """Print every check of a validation run as a table.

    Args:
        report: The completed validation report.

    """
    table = Table(title="Validation Report", title_style="bold", show_lines=False)
    table.add_column("Check", style="bold")
    table.add_column("Status")
    table.add_column("Details", overflow="fold")

    for result in report.results:
        table.add_row(escape(result.name), _STATUS_STYLES[result.status], escape(result.message))

    console.print(table)


def report_summary(report: ValidationReport) -> None:
    """Print the totals of a validation run."""
    summary_panel(
        "Validation Summary",
        {
            "Passed": str(report.passed),
            "Warnings": str(report.warnings),
            "Errors": str(report.errors),
            "Skipped": str(report.skipped),
        },
        border_style="green" if report.ok else "red",
    )


def newline() -> None:
    """Print an empty line."""
    console.print()
