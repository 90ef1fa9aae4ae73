"""CLI for moodlog registers and adherence analytics."""

import json
import logging
import shutil
from datetime import date, datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from moodlog import __version__
from moodlog.analytics import build_report
from moodlog.clock import SystemClock
from moodlog.config import (
    get_moodlog_home,
    get_template_registry_path,
    load_global_config,
    save_global_config,
)
from moodlog.errors import MoodlogError
from moodlog.io import read_entry_history
from moodlog.registry.templates import TemplateRegistry
from moodlog.validation.schema import SchemaValidator

app = typer.Typer(
    name="moodlog",
    help="Schema-driven self-report registers and adherence analytics.",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"moodlog version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level (default: from config.yaml)"),
    ] = None,
) -> None:
    """moodlog: Schema-driven self-report registers and adherence analytics."""
    level = (log_level or load_global_config().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def init(
    source: Annotated[
        Path | None,
        typer.Option(
            "--from",
            "-f",
            help="Directory containing register-templates (default: current directory)",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing template catalogue"),
    ] = False,
) -> None:
    """Initialize moodlog global configuration and sync the template catalogue.

    Creates:
      ~/.config/moodlog/config.yaml
      ~/.config/moodlog/register-templates/
    """
    home = get_moodlog_home()
    source_templates = (source or Path.cwd()) / "register-templates"
    dest_templates = home / "register-templates"

    if not source_templates.exists():
        console.print(f"[red]Error:[/red] register-templates not found at {source_templates}")
        console.print("Use --from to specify source directory")
        raise typer.Exit(1)

    if dest_templates.exists() and not force:
        console.print(f"[yellow]Warning:[/yellow] Templates already exist at {dest_templates}")
        console.print("Use --force to overwrite")
        raise typer.Exit(1)

    console.print(f"[bold]Initializing moodlog at {home}[/bold]")
    home.mkdir(parents=True, exist_ok=True)
    if dest_templates.exists():
        shutil.rmtree(dest_templates)
    shutil.copytree(source_templates, dest_templates)
    template_count = len(list(dest_templates.glob("templates/*.json")))
    console.print(f"  [green]✓[/green] {template_count} templates synced")

    config = load_global_config()
    config_path = save_global_config(
        config.model_copy(update={"template_registry_path": str(dest_templates)})
    )
    console.print(f"  [green]✓[/green] Wrote config to {config_path}")


@app.command()
def validate(
    schema_path: Annotated[
        Path,
        typer.Argument(help="Path to a register schema JSON file"),
    ],
) -> None:
    """Validate a register schema and print its normalised form."""
    if not schema_path.exists():
        console.print(f"[red]Error:[/red] Schema file not found: {schema_path}")
        raise typer.Exit(1)

    try:
        with open(schema_path) as f:
            candidate = json.load(f)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Invalid JSON in {schema_path}: {e}")
        raise typer.Exit(1)

    result = SchemaValidator().validate(candidate)
    if not result.valid:
        console.print(f"[red]Invalid:[/red] {schema_path}")
        for issue in result.issues:
            where = f" ({issue.field_id})" if issue.field_id else ""
            console.print(f"  [red]{issue.code}[/red]{where}: {issue.message}")
        raise typer.Exit(1)

    console.print(f"[green]Valid:[/green] {schema_path}")
    console.print_json(
        data={"version": result.schema_.version, "fields": result.schema_.to_contract()}
    )


@app.command()
def templates(
    registry: Annotated[
        Path | None,
        typer.Option(
            "--registry",
            "-r",
            envvar="MOODLOG_TEMPLATE_REGISTRY",
            help="Path to the register template catalogue",
        ),
    ] = None,
) -> None:
    """List the register templates in the catalogue."""
    registry_path = registry or get_template_registry_path()
    if not registry_path.exists():
        console.print(f"[red]Error:[/red] Template registry not found: {registry_path}")
        raise typer.Exit(1)

    schema_path = Path("schemas") / "register_template.schema.json"
    template_registry = TemplateRegistry(
        registry_path,
        schema_path=schema_path if schema_path.exists() else None,
    )

    try:
        loaded = template_registry.load_all()
    except MoodlogError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if not loaded:
        console.print(f"[yellow]No templates found in[/yellow] {registry_path}")
        return

    table = Table(title="Register templates")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Fields", justify="right")
    for template in loaded:
        table.add_row(template.template_id, template.name, str(len(template.schema_.fields)))
    console.print(table)


def _parse_day(value: str | None) -> date:
    if value is None:
        return SystemClock().today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value!r}") from None


@app.command()
def report(
    entries_path: Annotated[
        Path,
        typer.Argument(help="JSONL entry history ({entry_date, data} per line)"),
    ],
    as_of: Annotated[
        str | None,
        typer.Option("--as-of", help="Report day, YYYY-MM-DD (default: today)"),
    ] = None,
    window: Annotated[
        int | None,
        typer.Option("--window", "-w", help="Consistency window in days"),
    ] = None,
    fields: Annotated[
        list[str] | None,
        typer.Option("--field", "-f", help="Field id to summarise (repeatable)"),
    ] = None,
) -> None:
    """Print streaks, consistency and weekly frequency for an entry history."""
    if not entries_path.exists():
        console.print(f"[red]Error:[/red] Entries file not found: {entries_path}")
        raise typer.Exit(1)

    report_day = _parse_day(as_of)
    window_days = window or load_global_config().consistency_window_days

    try:
        history = read_entry_history(entries_path)
        result = build_report(history, report_day, window_days, fields or ())
    except (ValueError, MoodlogError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[bold]Adherence report[/bold] as of {result.as_of.isoformat()}")
    console.print(f"  Entries: {result.entry_count}")
    last = result.last_entry_date.isoformat() if result.last_entry_date else "never"
    console.print(f"  Last entry: {last}")
    console.print(f"  Current streak: {result.current_streak} day(s)")
    console.print(f"  Best streak: {result.best_streak} day(s)")
    console.print(f"  Consistency ({result.window_days}d): {result.consistency:.0f}%")

    if result.weekly_frequency:
        table = Table(title="Entries per week")
        table.add_column("Week of")
        table.add_column("Entries", justify="right")
        for week, count in result.weekly_frequency.items():
            table.add_row(week.isoformat(), str(count))
        console.print(table)

    for field_id in fields or ():
        stats = result.field_stats.get(field_id)
        if stats is None:
            console.print(f"\n[yellow]{field_id}:[/yellow] not enough numeric answers for stats")
        else:
            console.print(
                f"\n[bold]{field_id}[/bold]: mean {stats.mean:.2f}, "
                f"range {stats.minimum:g}-{stats.maximum:g}, "
                f"trend {stats.trend.value} ({stats.trend_percent:+d}%)"
            )
        distribution = result.distributions.get(field_id) or {}
        for value, count in distribution.items():
            console.print(f"  {value}: {count}")


if __name__ == "__main__":
    app()
