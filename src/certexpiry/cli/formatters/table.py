"""Table formatter for CLI output."""

from datetime import datetime

from rich.console import Console
from rich.table import Table

from certexpiry.models import EvaluationResult, ResultStatus


def _format_date(date_value: datetime | None) -> str:
    if date_value is None:
        return "N/A"
    return date_value.strftime("%Y-%m-%d %H:%M UTC")


def _format_days(days: float) -> str:
    text = f"{days:.2f}"
    if days < 7:
        return f"[red]{text}[/red]"
    if days < 30:
        return f"[yellow]{text}[/yellow]"
    return f"[green]{text}[/green]"


def format_results(console: Console, results: list[EvaluationResult]) -> None:
    """Format and display evaluation results as a table."""
    table = Table(title="Certificate Chain Expiry", show_header=True)
    table.add_column("Service", style="cyan")
    table.add_column("Status")
    table.add_column("Days left", justify="right")
    table.add_column("Chain", justify="right")
    table.add_column("Details", style="dim")

    for result in results:
        if result.status == ResultStatus.VALID:
            status = "[green]OK[/green]"
            days = _format_days(result.days_remaining)
        elif result.status == ResultStatus.HOSTNAME_MISMATCH:
            status = "[red]Hostname mismatch[/red]"
            days = "[red]-1[/red]"
        else:
            status = "[yellow]Unavailable[/yellow]"
            days = "U"

        table.add_row(
            result.target,
            status,
            days,
            str(len(result.chain)) if result.chain else "-",
            result.message or "",
        )

    console.print(table)


def format_chains(
    console: Console,
    results: list[EvaluationResult],
    skip_hashes: frozenset[str] = frozenset(),
) -> None:
    """Display every certificate of every retrieved chain, in presented order."""
    for result in results:
        if not result.chain:
            continue

        table = Table(title=f"Chain: {result.target}", show_header=True)
        table.add_column("#", justify="right")
        table.add_column("Subject", style="cyan")
        table.add_column("Not after")
        table.add_column("Identity hash (SHA-256)", style="dim")

        for cert in result.chain:
            not_after = _format_date(cert.not_after)
            if cert.identity_hash in skip_hashes:
                not_after = f"[dim]{not_after} (skipped)[/dim]"
            table.add_row(
                str(cert.position),
                cert.subject or "N/A",
                not_after,
                cert.identity_hash,
            )

        console.print(table)
