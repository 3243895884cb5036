"""
Main CLI application using Typer.

A developer tool for inspecting engine output against a JSON data file.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional, Tuple

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.json_source import JsonAvailabilitySource
from ..config import AppConfig, get_default_config_path
from ..domain import clock
from ..domain.booking_window import BookingWindowCalculator
from ..domain.calendar_range import exclusive_end_date
from ..domain.exceptions import SlotResolverError
from ..services.availability_service import AvailabilityService

app = typer.Typer(
    name="slotresolver",
    help="Resolve availability plans, exceptions and time slots into bookable times",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
DataOption = Annotated[
    Optional[Path], typer.Option("--data", "-d", help="JSON data file. Overrides data_file from the config")
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Resolve availability plans, exceptions and time slots into bookable times.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def _load(config_file: Optional[Path], data_file: Optional[Path]) -> Tuple[AppConfig, AvailabilityService]:
    config_path = config_file or get_default_config_path()
    if config_file is None and not config_path.exists():
        logger.info("No config file at %s; using defaults", config_path)
        config = AppConfig()
    else:
        config = AppConfig.load_from_yaml(config_path)

    path = data_file or config.data_file
    if path is None:
        raise FileNotFoundError("No data file given. Use --data or set data_file in the config.")

    source = JsonAvailabilitySource(path, default_timezone=config.timezone)
    return config, AvailabilityService(source)


def _date_range(tz: str, start: Optional[str], end: Optional[str], days: int) -> Tuple[DateTime, DateTime]:
    """
    Resolve ``--start``/``--end`` (inclusive ``YYYY-MM-DD`` dates) into a
    ``[start, end)`` window in ``tz``.
    """
    if start:
        start_date = clock.parse_date_from_iso8601(start, tz)
    else:
        start_date = clock.start_of(pendulum.now(tz), "day", tz)

    if end:
        end_date = exclusive_end_date(clock.parse_date_from_iso8601(end, tz), tz)
    else:
        end_date = clock.start_of(start_date, "day", tz, days, "days")

    return start_date, end_date


@app.command()
def calendar(
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="First date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Last date, inclusive (YYYY-MM-DD)")] = None,
    days: Annotated[int, typer.Option("--days", help="Number of days when --end is not given")] = 7,
):
    """
    Show seat ranges per day resolved from the plan and its exceptions.

    Examples:

        slotresolver calendar --data listing.json
        slotresolver calendar --start 2024-07-01 --end 2024-07-07
    """
    try:
        _, service = _load(config_file, data_file)
        plan = asyncio.run(service.fetch_plan())
        range_start, range_end = _date_range(plan.timezone, start, end, days)
        per_date = asyncio.run(service.availability_for_range(start=range_start, end=range_end))
    except (FileNotFoundError, ValueError, SlotResolverError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(
        title=f"Availability ({plan.timezone})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Date", style="bold yellow")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Seats", justify="right")
    table.add_column("Source", style="dim")

    for date_id, day in per_date.items():
        for index, r in enumerate(day.ranges):
            table.add_row(
                str(date_id) if index == 0 else "",
                clock.format_time_of_day(r.start, plan.timezone),
                clock.format_time_of_day(r.end, plan.timezone),
                str(r.seats),
                r.source or "-",
                style=None if r.seats > 0 else "dim",
            )

    console.print()
    console.print(table)
    available = sum(1 for day in per_date.values() if day.has_availability)
    console.print(f"\n[green]{available}[/green] of {len(per_date)} day(s) have availability.\n")


@app.command()
def timeslots(
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="First date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Last date, inclusive (YYYY-MM-DD)")] = None,
    days: Annotated[int, typer.Option("--days", help="Number of days when --end is not given")] = 7,
    min_seats: Annotated[Optional[int], typer.Option("--min-seats", help="Minimum seats per slot")] = None,
):
    """
    Show time slots touching each day.
    """
    try:
        config, service = _load(config_file, data_file)
        tz = asyncio.run(service.fetch_plan()).timezone
        range_start, range_end = _date_range(tz, start, end, days)
        seats = min_seats if min_seats is not None else config.booking.min_seats
        per_date = asyncio.run(
            service.time_slots_for_range(start=range_start, end=range_end, timezone=tz, min_seats=seats)
        )
    except (FileNotFoundError, ValueError, SlotResolverError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Time slots ({tz}, min. {seats} seat(s))", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold yellow")
    table.add_column("Slot")
    table.add_column("Seats", justify="right")

    for date_id, bucket in per_date.items():
        if not bucket.has_availability:
            table.add_row(str(date_id), "[dim]no availability[/dim]", "")
            continue
        for index, ts in enumerate(bucket.time_slots):
            table.add_row(
                str(date_id) if index == 0 else "",
                f"{ts.start.in_timezone(tz).format('YYYY-MM-DD HH:mm')} - "
                f"{ts.end.in_timezone(tz).format('YYYY-MM-DD HH:mm')}",
                str(ts.seats),
            )

    console.print()
    console.print(table)
    console.print()


@app.command()
def start_times(
    date: Annotated[str, typer.Argument(help="Booking date (YYYY-MM-DD)")],
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    length: Annotated[Optional[int], typer.Option("--length", "-l", help="Booking length in minutes")] = None,
    interval: Annotated[Optional[str], typer.Option("--interval", help="Start time interval (hour, 30min, 15min...)")] = None,
    time_range: Annotated[bool, typer.Option("--time-range", help="Sharp-hour start and end times instead of a fixed length")] = False,
):
    """
    Show selectable booking start times for a date.
    """
    try:
        config, service = _load(config_file, data_file)
        tz = asyncio.run(service.fetch_plan()).timezone
        booking_length = None if time_range else (length or config.booking.booking_length_minutes)
        calculator = BookingWindowCalculator(
            timezone=tz,
            booking_length_minutes=booking_length,
            start_time_interval=interval or config.booking.start_time_interval,
            seats_enabled=config.booking.seats_enabled,
        )
        booking_date = clock.parse_date_from_iso8601(date, tz)
        values = asyncio.run(service.booking_values_for_date(date=booking_date, calculator=calculator))
    except (FileNotFoundError, ValueError, SlotResolverError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not values.start_times:
        console.print(f"\n[yellow]No start times available on {date}.[/yellow]\n")
        return

    table = Table(title=f"Start times on {date} ({tz})", show_header=True, header_style="bold cyan")
    table.add_column("Start", style="bold yellow")
    table.add_column("Timestamp (ms)", style="dim", justify="right")
    for option in values.start_times:
        table.add_row(option.time_of_day, str(option.timestamp_ms))

    console.print()
    console.print(table)
    if values.start_time is not None:
        end_label = (
            clock.format_time_of_day(values.end_time, tz) if values.end_time is not None else "-"
        )
        console.print(
            f"\nDefault booking: [bold]{clock.format_time_of_day(values.start_time, tz)}[/bold]"
            f" - [bold]{end_label}[/bold]"
        )
        if values.selected_time_slot is not None and config.booking.seats_enabled:
            console.print(f"Seats available: [bold]{values.selected_time_slot.seats}[/bold]")
    console.print()


@app.command()
def list_plan(
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List the weekly availability plan.
    """
    try:
        _, service = _load(config_file, data_file)
        plan = asyncio.run(service.fetch_plan())
    except (FileNotFoundError, ValueError, SlotResolverError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not plan.entries:
        console.print("[yellow]The availability plan has no entries.[/yellow]")
        return

    table = Table(
        title=f"Availability plan ({plan.timezone})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Day", style="bold yellow")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Seats", justify="right")

    ordered = sorted(plan.entries, key=lambda e: (clock.WEEKDAYS.index(e.day_of_week), e.start_time))
    for entry in ordered:
        table.add_row(
            entry.day_of_week,
            entry.start_time,
            "24:00" if entry.runs_through_midnight else entry.end_time,
            str(entry.seats),
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotresolver[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
