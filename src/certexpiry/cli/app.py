"""Main CLI application using Typer."""

from datetime import timedelta
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from certexpiry.version import __version__
from certexpiry.core.config import Settings, get_settings
from certexpiry.core.exceptions import ConfigurationError
from certexpiry.core.logging import setup_logging
from certexpiry.models import EvaluationConfig

app = typer.Typer(
    name="certexpiry",
    help="certexpiry - days left on the TLS certificate chains of your services",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"certexpiry version {__version__}")
        raise typer.Exit()


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error: {e.message}[/red]")
        raise typer.Exit(2) from None


def _build_config(settings: Settings) -> EvaluationConfig:
    try:
        return settings.to_evaluation_config()
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error: {e.message}[/red]")
        raise typer.Exit(2) from None


@app.callback()
def main_callback(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """certexpiry - the weakest link of every chain, in days."""
    settings = _load_settings()
    setup_logging(settings.log_level, settings.log_format)


@app.command()
def check(
    services: Annotated[
        Optional[list[str]],
        typer.Argument(help="Services as host[_port[_starttlsProtocol]] (default: configured services)"),
    ] = None,
    proxy: Annotated[
        Optional[str],
        typer.Option("--proxy", help="CONNECT proxy as host:port"),
    ] = None,
    verify_hostname: Annotated[
        Optional[bool],
        typer.Option(
            "--verify-hostname/--no-verify-hostname",
            help="Check that the leaf certificate covers the host",
        ),
    ] = None,
    skip_hash: Annotated[
        Optional[list[str]],
        typer.Option("--skip-hash", "-s", help="Identity hash to ignore (repeatable)"),
    ] = None,
    timeout: Annotated[
        Optional[float],
        typer.Option("--timeout", "-t", help="Per-service connect/handshake timeout in seconds"),
    ] = None,
    show_chain: Annotated[
        bool,
        typer.Option("--chain", "-c", help="Show every certificate of each chain"),
    ] = False,
    format_type: Annotated[
        str,
        typer.Option("--format", help="Output format: table, json"),
    ] = "table",
) -> None:
    """
    Check the certificate chains of one or more services.

    Examples:
        certexpiry check example.com
        certexpiry check mail.example.com_25_smtp imap.example.com_143_imap
        certexpiry check example.com --verify-hostname --chain
    """
    from certexpiry.cli.formatters import format_chains, format_json, format_results
    from certexpiry.evaluation import run_evaluation

    if format_type not in ("table", "json"):
        err_console.print(f"[red]Unknown format: {format_type}[/red]")
        raise typer.Exit(2)

    settings = _load_settings()
    overrides = {
        "services": list(services) if services else None,
        "proxy": proxy,
        "verify_hostname": verify_hostname,
        "skip_hashes": list(skip_hash) if skip_hash else None,
        "timeout": timeout,
    }
    settings = settings.model_copy(
        update={
            key: value
            for key, value in overrides.items()
            if value is not None
        }
    )
    config = _build_config(settings)

    if not config.targets:
        err_console.print(
            "[yellow]No services given and CERTEXPIRY_SERVICES is empty[/yellow]"
        )
        raise typer.Exit(2)

    if format_type == "json":
        results = run_evaluation(config)
        format_json(console, results)
        return

    with console.status("[bold green]Checking certificate chains...[/bold green]"):
        results = run_evaluation(config)

    format_results(console, results)
    if show_chain:
        format_chains(console, results, config.skip_hashes)


@app.command()
def munin(
    mode: Annotated[
        Optional[str],
        typer.Argument(help="'config' for graph configuration, omit to fetch values"),
    ] = None,
) -> None:
    """Run as a munin plugin (config / fetch)."""
    from certexpiry.evaluation import run_evaluation
    from certexpiry.output import (
        SnapshotCache,
        clean_fieldname,
        render_config,
        render_values,
    )

    settings = _load_settings()
    config = _build_config(settings)

    if mode == "config":
        thresholds = {}
        for target in config.targets:
            field = clean_fieldname(target.service)
            thresholds[field] = settings.thresholds_for(field)
        typer.echo(render_config(config.targets, thresholds), nl=False)
        return

    if mode not in (None, "fetch"):
        err_console.print(f"[red]Unknown munin mode: {mode}[/red]")
        raise typer.Exit(2)

    cache = None
    if settings.snapshot_path:
        cache = SnapshotCache(
            settings.snapshot_path,
            max_age=timedelta(minutes=settings.snapshot_max_age),
        )
        cached = cache.load()
        if cached is not None:
            typer.echo(cached, nl=False)
            return

    output = render_values(run_evaluation(config))
    if cache:
        cache.store(output)
    typer.echo(output, nl=False)


@app.command()
def config() -> None:
    """Show the effective configuration."""
    settings = _load_settings()

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Services", ", ".join(settings.services) or "[red]None[/red]")
    table.add_row("Skip Hashes", str(len(settings.skip_hashes)))
    table.add_row("Proxy", settings.proxy or "Direct")
    table.add_row("Verify Hostname", "Yes" if settings.verify_hostname else "No")
    table.add_row("Timeout", f"{settings.timeout}s")
    table.add_row("Max Concurrent", str(settings.max_concurrent))
    table.add_row(
        "Run Deadline",
        f"{settings.deadline}s" if settings.deadline else "None",
    )
    table.add_row("Warning", settings.warning or "None")
    table.add_row("Critical", settings.critical or "None")
    table.add_row("Threshold Overrides", str(len(settings.thresholds)))
    table.add_row("Snapshot", str(settings.snapshot_path or "Disabled"))
    table.add_row("Snapshot Max Age", f"{settings.snapshot_max_age}m")
    table.add_row("Log Level", settings.log_level)
    table.add_row("Log Format", settings.log_format)

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
