"""
Main CLI application using Typer.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..adapters.booking_store import JsonFileBookingStore
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import BookingValidationError, CounsellingSlotsError
from ..domain.models import Booking
from ..domain.slot_generator import SlotGenerator
from ..services.availability import AvailabilityService
from ..services.bookings import BookingService

app = typer.Typer(
    name="counselling-slots",
    help="Session availability and bookings for a counselling practice",
    add_completion=False
)

console = Console()
err_console = Console(stderr=True)

DEFAULT_BOOKINGS_FILE = "bookings.json"

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
JsonOption = Annotated[bool, typer.Option("--json", help="Print the result as JSON.")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Find free counselling sessions and manage bookings.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """
    Load the config file, falling back to defaults when none exists.

    An explicitly passed path must exist.
    """
    if config_file is not None:
        config = AppConfig.load_from_yaml(config_file)
    else:
        config_path = get_default_config_path()
        config = AppConfig.load_from_yaml(config_path) if config_path.exists() else AppConfig()

    return config.with_env_overrides()


def _build_services(config: AppConfig) -> Tuple[AvailabilityService, BookingService]:
    store = JsonFileBookingStore(config.bookings_file or Path.cwd() / DEFAULT_BOOKINGS_FILE)
    generator = SlotGenerator(
        window=config.get_operating_window(),
        catalog=config.get_service_catalog()
    )
    availability = AvailabilityService(
        booking_store=store,
        slot_generator=generator,
        timezone=config.timezone
    )
    return availability, BookingService(booking_store=store, availability=availability)


def _fail(exc: Exception, as_json: bool = False) -> None:
    """Report an error and exit with status 1."""
    if as_json and isinstance(exc, BookingValidationError):
        typer.echo(json.dumps(exc.to_dict(), indent=2))
    elif isinstance(exc, BookingValidationError):
        console.print(f"[bold red]Error ({exc.code}):[/bold red] {escape(exc.message)}")
    else:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
    raise typer.Exit(1)


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


def _print_booking(booking: Booking, title: str) -> None:
    console.print(Panel.fit(
        f"[bold]ID:[/bold] {booking.id}\n"
        f"[bold]Service:[/bold] {booking.service_name} ({booking.session_duration} min)\n"
        f"[bold]Date:[/bold] {booking.booking_date.format('dddd, YYYY-MM-DD', locale='en')}\n"
        f"[bold]Time:[/bold] {booking.start_time} - {booking.end_time}\n"
        f"[bold]Status:[/bold] {booking.status.value}",
        title=title
    ))


@app.command()
def slots(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    service: Annotated[str, typer.Argument(help="Service, e.g. individual")],
    customer_type: Annotated[Optional[str], typer.Option("--customer-type", help="new, existing or paid")] = None,
    as_json: JsonOption = False,
    config_file: ConfigOption = None,
):
    """
    Show free session slots for a service on a date.

    Examples:

        counselling-slots slots 2026-11-02 individual
        counselling-slots slots 2026-11-02 family --json
    """
    try:
        config = _load_config(config_file)
        availability, _ = _build_services(config)
        result = availability.get_slots(date, service, customer_type=customer_type)
    except (CounsellingSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e, as_json)

    if as_json:
        _echo_json({"success": True, **result.to_dict()})
        return

    day = result.date.format("dddd, YYYY-MM-DD", locale="en")
    console.print(f"\n[bold cyan]{result.service.value}[/bold cyan] ({result.duration} min) on {day}\n")

    if result.message:
        console.print(f"[yellow]{result.message}[/yellow]\n")
        return

    if not result.available_slots:
        console.print("[yellow]No free slots left on this date.[/yellow]\n")
        return

    console.print(f"[bold green]{result.free_slots} of {result.total_slots} slot(s) free:[/bold green]")
    console.print("  " + "  ".join(result.available_slots))
    console.print()


@app.command()
def dates(
    service: Annotated[str, typer.Argument(help="Service, e.g. individual")],
    days: Annotated[Optional[int], typer.Option("--days", "-d", min=1, help="Days to scan from today")] = None,
    as_json: JsonOption = False,
    config_file: ConfigOption = None,
):
    """
    List the coming dates that still have free slots for a service.
    """
    try:
        config = _load_config(config_file)
        availability, _ = _build_services(config)
        available = availability.get_available_dates(
            service,
            days=days or config.booking_window_days
        )
    except (CounsellingSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e, as_json)

    if as_json:
        _echo_json({
            "success": True,
            "service": service.strip().lower(),
            "availableDates": [entry.to_dict() for entry in available],
            "totalDaysWithAvailability": len(available),
        })
        return

    if not available:
        console.print("\n[yellow]No dates with free slots found.[/yellow]\n")
        return

    table = Table(
        title=f"Dates with free {service.strip().lower()} sessions",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Date", style="bold yellow")
    table.add_column("Weekday")
    table.add_column("Free slots", justify="right")

    for entry in available:
        table.add_row(entry.date.to_date_string(), entry.day_of_week, str(entry.available_slots))

    console.print()
    console.print(table)
    console.print()


@app.command()
def services(config_file: ConfigOption = None):
    """
    List the configured services and their session lengths.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    catalog = config.get_service_catalog()

    table = Table(title="Services", show_header=True, header_style="bold cyan")
    table.add_column("Service", style="bold yellow")
    table.add_column("Name")
    table.add_column("Duration", justify="right")

    for service in catalog.services():
        table.add_row(service.value, catalog.name_for(service), f"{catalog.duration_for(service)} min")

    console.print()
    console.print(table)
    console.print()


@app.command()
def book(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    service: Annotated[str, typer.Argument(help="Service, e.g. individual")],
    start_time: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    email: Annotated[str, typer.Option("--email", "-e", help="Customer email address")],
    session_type: Annotated[str, typer.Option("--session-type", help="in-person, virtual or phone")] = "in-person",
    customer_type: Annotated[str, typer.Option("--customer-type", help="new, existing or paid")] = "new",
    phone: Annotated[Optional[str], typer.Option("--phone", "-p", help="Customer phone number")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Notes from the customer")] = None,
    special_requests: Annotated[Optional[str], typer.Option("--special-requests", help="Special requests for the session")] = None,
    config_file: ConfigOption = None,
):
    """
    Book a session slot.
    """
    try:
        config = _load_config(config_file)
        _, booking_service = _build_services(config)
        booking = booking_service.create_booking(
            customer_email=email,
            service_id=service,
            date_str=date,
            start_time=start_time,
            session_type=session_type,
            customer_type=customer_type,
            phone=phone,
            customer_notes=notes,
            special_requests=special_requests,
        )
    except (CounsellingSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    _print_booking(booking, title="Booking created")


@app.command()
def reschedule(
    booking_id: Annotated[str, typer.Argument(help="Booking ID")],
    date: Annotated[str, typer.Argument(help="New date (YYYY-MM-DD)")],
    start_time: Annotated[str, typer.Argument(help="New start time (HH:MM)")],
    config_file: ConfigOption = None,
):
    """
    Move a booking to another slot.
    """
    try:
        config = _load_config(config_file)
        _, booking_service = _build_services(config)
        booking = booking_service.reschedule_booking(booking_id, date, start_time)
    except (CounsellingSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    _print_booking(booking, title="Booking rescheduled")


@app.command()
def cancel(
    booking_id: Annotated[str, typer.Argument(help="Booking ID")],
    reason: Annotated[Optional[str], typer.Option("--reason", "-r", help="Cancellation reason")] = None,
    config_file: ConfigOption = None,
):
    """
    Cancel a booking and free its slot.
    """
    try:
        config = _load_config(config_file)
        _, booking_service = _build_services(config)
        booking = booking_service.cancel_booking(booking_id, reason=reason)
    except (CounsellingSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    _print_booking(booking, title="Booking cancelled")


@app.command("bookings")
def list_bookings(
    status: Annotated[Optional[str], typer.Option("--status", "-s", help="Only show this status")] = None,
    config_file: ConfigOption = None,
):
    """
    List stored bookings.
    """
    try:
        config = _load_config(config_file)
        _, booking_service = _build_services(config)
        bookings = booking_service.list_bookings(status)
    except (CounsellingSlotsError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not bookings:
        console.print("\n[yellow]No bookings found.[/yellow]\n")
        return

    table = Table(title="Bookings", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Date", style="bold yellow")
    table.add_column("Time")
    table.add_column("Service")
    table.add_column("Customer")
    table.add_column("Status")

    for booking in bookings:
        table.add_row(
            booking.id,
            booking.booking_date.to_date_string(),
            f"{booking.start_time}-{booking.end_time}",
            booking.service.value,
            booking.customer_email,
            booking.status.value,
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
    console.print(f"\n[bold cyan]counselling-slots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
