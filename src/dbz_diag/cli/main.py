"""Main CLI entry point for dbz-oracle-diag."""

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from dbz_diag import __version__
from dbz_diag.config import SettingsNotConfiguredError, get_settings
from dbz_diag.collector import (
    DiagnosticSnapshot,
    InsufficientPrivilegesError,
    InsufficientSamplingError,
    OracleDatabase,
    SamplerInstaller,
    SnapshotReader,
    require_sampling_duration,
)
from dbz_diag.recommender import Recommendations, compute_recommendations
from dbz_diag.renderer import write_report

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else getattr(
        logging, get_settings().log_level.upper(), logging.INFO
    )
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _fail(command: str, error: Exception) -> None:
    """Report a failed command and exit with status 1."""
    if isinstance(error, SettingsNotConfiguredError):
        console.print(error.message)
    elif isinstance(error, InsufficientPrivilegesError):
        console.print(f"[red]Missing SELECT privileges on: {', '.join(error.missing_views)}[/red]")
        console.print("  Grant with (as SYS):")
        for grant in error.grants:
            console.print(f"    {grant}")
    console.print(f"\n[bold red]✗ {command} failed:[/bold red] {escape(str(error))}")
    logger.exception("%s failed", command)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def cli(verbose: bool) -> None:
    """dbz-oracle-diag - Debezium Oracle CDC diagnostic tool.

    Profiles an Oracle database over a sampling window and recommends
    LogMiner connector configuration.
    """
    setup_logging(verbose)


@cli.command()
def setup() -> None:
    """Create monitoring tables and start the sampling job.

    Run once, then let it collect for at least 24 hours
    (ideally a full business day) before running 'report'.
    """
    settings = get_settings()
    try:
        schema, table_pattern = settings.require_capture()
        database = OracleDatabase(settings)
        installer = SamplerInstaller(
            database,
            interval_minutes=settings.sample_interval_minutes,
        )
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress, database.session():
            tasks = []

            def show_step(description: str) -> None:
                if tasks:
                    progress.update(tasks[-1], completed=True)
                tasks.append(progress.add_task(f"{description}...", total=None))

            installer.setup(schema, table_pattern, on_step=show_step)
            if tasks:
                progress.update(tasks[-1], completed=True)
    except Exception as e:
        _fail("Setup", e)

    console.print("\n[bold green]✓ Setup complete.[/bold green]")
    console.print(
        f"  Sampling every {settings.sample_interval_minutes} minutes "
        f"into {settings.oracle_user}.DBZ_DIAG_SAMPLES"
    )
    console.print(f"  Static data in {settings.oracle_user}.DBZ_DIAG_STATIC")
    console.print("  Let it run for at least 24 hours (ideally a full business day).")
    console.print("  Then run: dbz-diag report")


@cli.command()
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for the report and .env file (default: OUTPUT_DIR or cwd)",
)
@click.option(
    "--snapshot-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read a previously saved snapshot (JSON) instead of querying Oracle",
)
@click.option(
    "--save-snapshot",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also save the snapshot as JSON for offline re-runs",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    default=False,
    help="Print recommendations as JSON instead of a summary",
)
def report(
    output_dir: Path | None,
    snapshot_file: Path | None,
    save_snapshot: Path | None,
    as_json: bool,
) -> None:
    """Generate the diagnostic report and recommended .env.

    Reads the collected samples, computes recommendations and writes
    dbz-diag-report.md and dbz-recommended.env.
    """
    settings = get_settings()
    output_dir = output_dir or settings.output_path

    try:
        if snapshot_file:
            with open(snapshot_file) as f:
                snapshot = DiagnosticSnapshot.from_dict(json.load(f))
        else:
            if not as_json:
                console.print("Reading collected data...\n")
            database = OracleDatabase(settings)
            with database.session():
                snapshot = SnapshotReader(database, settings.hour_multiplier).read()

        require_sampling_duration(snapshot.sampling_duration_hours)

        if save_snapshot:
            with open(save_snapshot, "w") as f:
                json.dump(snapshot.to_dict(), f, indent=2)
            if not as_json:
                console.print(f"[dim]Snapshot saved to {escape(str(save_snapshot))}[/dim]")

        recs = compute_recommendations(snapshot)
        report_path, env_path = write_report(snapshot, recs, output_dir)
    except InsufficientSamplingError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)
    except Exception as e:
        _fail("Report", e)

    if as_json:
        console.print_json(data=recs.to_dict())
        return

    console.print(f"Report:  {escape(str(report_path))}")
    console.print(f"Config:  {escape(str(env_path))}")
    console.print(f"\nSampling duration: {snapshot.sampling_duration_hours:.1f} hours")
    _display_summary(recs)


@cli.command()
@click.confirmation_option(prompt="Remove all diagnostic tables and the sampler job?")
def teardown() -> None:
    """Remove all diagnostic tables and scheduler jobs."""
    settings = get_settings()
    try:
        database = OracleDatabase(settings)
        console.print("Removing diagnostic objects...")
        with database.session():
            results = SamplerInstaller(database).teardown()
    except Exception as e:
        _fail("Teardown", e)

    for name, removed in results:
        if removed:
            console.print(f"  [green]Dropped {name}[/green]")
        else:
            console.print(f"  [dim]{name} not found (already removed)[/dim]")

    console.print("\n[bold green]✓ Teardown complete.[/bold green]")


@cli.command()
def config() -> None:
    """Show current configuration.

    Display connection, capture and sampling settings and list any
    required variable that is missing.
    """
    settings = get_settings()

    console.print(Panel.fit(
        "[bold]dbz-oracle-diag Configuration[/bold]",
        title="Config",
    ))

    table = Table(show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Connect string", settings.dsn)
    table.add_row("User", settings.oracle_user or "✗ Not set")
    table.add_row("Password", "✓ Configured" if settings.oracle_password else "✗ Not set")
    table.add_row("Privilege", settings.oracle_privilege or "(none)")
    table.add_row("Capture schema", settings.capture_schema or "✗ Not set")
    table.add_row("Table pattern", escape(settings.capture_table_pattern) or "✗ Not set")
    table.add_row("Sample interval", f"{settings.sample_interval_minutes} min")
    table.add_row("Output dir", str(settings.output_path))
    table.add_row("Log Level", settings.log_level)

    console.print(table)

    missing = settings.missing_connection_settings()
    if missing:
        console.print(f"\n[yellow]Missing connection settings: {', '.join(missing)}[/yellow]")


def _display_summary(recs: Recommendations) -> None:
    """Display recommendations and warnings in console."""
    console.print("\n")
    table = Table(title="💡 Recommendations")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right", style="green")

    table.add_row("Redo logs", f"{recs.redo_log_groups} groups x {recs.redo_log_size_gb:g} GB")
    table.add_row("Archive retention", f"{recs.archive_retention_hours} h (~{recs.archive_retention_disk_gb} GB)")
    table.add_row("transaction.retention.ms", str(recs.transaction_retention_ms))
    table.add_row("heartbeat.interval.ms", str(recs.heartbeat_interval_ms))
    table.add_row("batch.size.default / max", f"{recs.batch_size_default} / {recs.batch_size_max}")
    table.add_row("errors.max.retries", str(recs.max_retries))
    table.add_row("query.filter.mode", recs.query_filter_mode)
    table.add_row("lob.enabled", str(recs.lob_enabled).lower())

    console.print(table)

    if recs.warnings:
        console.print("\n[bold yellow]⚠ Warnings:[/bold yellow]")
        for w in recs.warnings:
            console.print(f"  - {escape(w)}")


if __name__ == "__main__":
    cli()
