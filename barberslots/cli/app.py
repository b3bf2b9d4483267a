"""
Developer CLI for inspecting barber availability, using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.mock_store import MOCK_TODAY, MockScheduleStore
from ..adapters.supabase_store import SupabaseScheduleStore
from ..config import AppConfig, load_config
from ..domain.exceptions import SchedulingError
from ..domain.models import OpenWindow
from ..domain.timeutils import format_date, parse_date
from ..services.availability_service import AvailabilityService
from ..services.cache import ScheduleCache

app = typer.Typer(
    name="barberslots",
    help="Inspect barber availability and bookable appointment slots",
    add_completion=False,
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use bundled mock schedule data instead of the database."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show debug logging."),
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_service(config: AppConfig, mock: bool) -> AvailabilityService:
    """Wire the availability service to the configured store."""
    clock = None
    if mock:
        store = MockScheduleStore.from_json()
        mock_now = pendulum.parse(MOCK_TODAY, tz=config.timezone)
        clock = lambda: mock_now
    else:
        if not config.has_database:
            raise ValueError(
                "supabase_url and supabase_key must be set in the config file (or use --mock)."
            )
        store = SupabaseScheduleStore(
            base_url=config.supabase_url,
            api_key=config.supabase_key,
            timeout=config.request_timeout_seconds,
        )

    return AvailabilityService(
        store,
        ScheduleCache(ttl_seconds=config.cache_ttl_seconds),
        timezone=config.timezone,
        booking_lead_minutes=config.defaults.booking_lead_minutes,
        clock=clock,
    )


def _resolve_date(config: AppConfig, value: Optional[str], mock: bool = False):
    if value:
        return parse_date(value)
    if mock:
        return parse_date(MOCK_TODAY)
    return pendulum.now(config.timezone).date()


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def window(
    barber: Annotated[str, typer.Argument(help="Barber name (alias) or id")],
    on_date: Annotated[Optional[str], typer.Argument(help="Date (YYYY-MM-DD), defaults to today")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show the effective working window for a date.
    """
    _configure_logging(verbose)
    try:
        config = load_config(config_file, allow_missing=mock)
        barber_id = config.resolve_barber(barber)
        day = _resolve_date(config, on_date, mock)
        service = _build_service(config, mock)

        effective = asyncio.run(service.get_window(barber_id, day))
    except (FileNotFoundError, SchedulingError, ValueError) as e:
        _fail(e)

    if isinstance(effective, OpenWindow):
        console.print(f"[green]{barber}[/green] works {format_date(day)}: [bold]{effective}[/bold]")
    else:
        console.print(f"[yellow]{barber}[/yellow] is closed on {format_date(day)}")


@app.command()
def slots(
    barber: Annotated[str, typer.Argument(help="Barber name (alias) or id")],
    on_date: Annotated[Optional[str], typer.Argument(help="Date (YYYY-MM-DD), defaults to today")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    List bookable start times for a service on a date.

    Examples:

        barberslots slots b-marcus 2025-01-13 --mock

        barberslots slots marcus 2025-01-13 --duration 45
    """
    _configure_logging(verbose)
    try:
        config = load_config(config_file, allow_missing=mock)
        barber_id = config.resolve_barber(barber)
        day = _resolve_date(config, on_date, mock)
        minutes = duration if duration is not None else config.defaults.duration_minutes
        service = _build_service(config, mock)

        found = asyncio.run(service.get_available_slots(barber_id, day, minutes))
    except (FileNotFoundError, SchedulingError, ValueError) as e:
        _fail(e)

    if not found:
        console.print(f"[yellow]No available times for {barber} on {format_date(day)}.[/yellow]")
        return

    console.print(
        f"[bold green]{len(found)} available time(s) for {barber} on {format_date(day)}:[/bold green]\n"
    )
    for slot in found:
        console.print(f"  {slot.format_display()}")


@app.command()
def week(
    barber: Annotated[str, typer.Argument(help="Barber name (alias) or id")],
    week_of: Annotated[Optional[str], typer.Option("--week-of", help="Any date in the week (YYYY-MM-DD)")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Show the weekly overview: hours, capacity and utilisation.
    """
    _configure_logging(verbose)
    try:
        config = load_config(config_file, allow_missing=mock)
        barber_id = config.resolve_barber(barber)
        day = _resolve_date(config, week_of, mock)
        service = _build_service(config, mock)

        summary = asyncio.run(service.get_week_summary(barber_id, day))
    except (FileNotFoundError, SchedulingError, ValueError) as e:
        _fail(e)

    table = Table(
        title=f"{barber}: {format_date(summary.week_start)} - {format_date(summary.week_end)}",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Day", style="bold")
    table.add_column("Hours")
    table.add_column("30-min slots", justify="right")
    table.add_column("Booked", justify="right")

    for day_summary in summary.days:
        table.add_row(
            day_summary.date.format("ddd DD.MM."),
            str(day_summary.window),
            str(day_summary.capacity),
            str(day_summary.booked),
        )

    console.print()
    console.print(table)
    console.print(
        f"\n  {summary.total_hours:g} hours, {summary.working_days} working days, "
        f"average {summary.average_hours_per_day:g} hrs/day"
    )
    console.print(
        f"  {summary.booked} of {summary.available_slots} slots booked "
        f"({summary.utilization_pct}% utilization)\n"
    )


@app.command()
def list_barbers(
    config_file: ConfigOption = None,
):
    """
    List all configured barbers.
    """
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    if not config.barbers:
        console.print("[yellow]No barbers defined in the config file.[/yellow]")
        return

    table = Table(
        title="Configured barbers",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Name (Alias)", style="bold yellow")
    table.add_column("Barber ID", style="dim")

    for barber in config.barbers:
        table.add_row(barber.name, barber.barber_id)

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]barberslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
