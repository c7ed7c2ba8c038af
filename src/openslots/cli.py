"""openslots CLI - turn calendar free time into copy-pasteable slots."""

import json
import logging
import sys
from datetime import date

import click

from .adapters.errors import AuthenticationError, CalendarFetchError
from .config import load_config
from .core.availability_text import compose_email_body, format_duration, format_date_label, summarize
from .core.errors import InvalidArgumentError
from .core.selection import deselect_all, toggle_selection
from .core.slots import DayAvailability, parse_strategies
from .workflows import availability_text, build_source, compute_availability


def _parse_dates(values: tuple[str, ...]) -> list[date]:
    dates = []
    for value in values:
        try:
            dates.append(date.fromisoformat(value))
        except ValueError:
            raise click.BadParameter(f"{value!r} is not a YYYY-MM-DD date", param_hint="DATES") from None
    return sorted(set(dates))


def _setup_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


def _run(
    dates: tuple[str, ...],
    strategy_values: tuple[str, ...],
    custom: int | None,
    calendar_ids: tuple[str, ...],
    toggle: tuple[str, ...],
    none: bool,
) -> list[DayAvailability]:
    """Shared slot computation for slots/email commands."""
    config = load_config()
    custom_minutes = custom if custom is not None else config.custom_duration
    try:
        strategies = parse_strategies(list(strategy_values) or config.durations, custom_minutes)
        availability = compute_availability(
            config,
            _parse_dates(dates),
            strategies,
            calendar_ids=list(calendar_ids),
        )
    except InvalidArgumentError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if none:
        deselect_all(availability)
    for slot_id in toggle:
        toggle_selection(availability, slot_id)
    return availability


def _show_slots(availability: list[DayAvailability], as_json: bool) -> None:
    """Shared slot display logic."""
    if as_json:
        click.echo(
            json.dumps(
                [
                    {
                        "date": day.date.isoformat(),
                        "slots": [
                            {
                                "id": s.id,
                                "start": s.start.isoformat(),
                                "end": s.end.isoformat(),
                                "display_start": s.display_start,
                                "display_end": s.display_end,
                                "strategy": s.strategy.tag if s.strategy else None,
                                "selected": s.selected,
                            }
                            for s in day.slots
                        ],
                    }
                    for day in availability
                ],
                indent=2,
            )
        )
        return

    for index, day in enumerate(availability):
        if index:
            click.echo()
        click.echo(f"### {format_date_label(day.date)} ({day.date.strftime('%a, %b')} {day.date.day})")
        if not day.slots:
            click.echo("  No available slots.")
            continue
        for slot in day.slots:
            mark = "x" if slot.selected else " "
            length = format_duration(slot.duration_minutes())
            click.echo(f"  [{mark}] {slot.format():22} {length:7} {slot.id}")

    click.echo(f"\n{summarize(availability)}")


def slot_options(f):
    """Options shared by commands that compute slots."""
    f = click.option("--debug", is_flag=True, help="Enable debug logging")(f)
    f = click.option("--none", "none", is_flag=True, help="Start with every slot deselected")(f)
    f = click.option("--toggle", "-t", multiple=True, help="Slot ID to toggle (repeatable)")(f)
    f = click.option("--calendar", "-c", "calendar_ids", multiple=True, help="Calendar ID to include (repeatable)")(f)
    f = click.option("--custom", type=int, default=None, help="Custom duration in minutes (5-120)")(f)
    f = click.option(
        "--strategy",
        "-s",
        "strategy_values",
        multiple=True,
        help="15, 30, 60, both, grouped, custom or custom:N (repeatable)",
    )(f)
    f = click.argument("dates", nargs=-1, required=True)(f)
    return f


@click.group()
@click.version_option(package_name="openslots")
def main():
    """openslots - share your free time."""
    pass


@main.command()
@slot_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--text", "as_text", is_flag=True, help="Output selected slots as availability text")
def slots(dates, strategy_values, custom, calendar_ids, toggle, none, debug, as_json, as_text):
    """Show available slots for DATES (YYYY-MM-DD)."""
    _setup_logging(debug)
    availability = _run(dates, strategy_values, custom, calendar_ids, toggle, none)

    if as_text:
        text = availability_text(availability)
        click.echo(text or "No slots selected.")
        return
    _show_slots(availability, as_json)


@main.command()
@slot_options
def email(dates, strategy_values, custom, calendar_ids, toggle, none, debug):
    """Print an email body offering the selected slots for DATES."""
    _setup_logging(debug)
    availability = _run(dates, strategy_values, custom, calendar_ids, toggle, none)

    text = availability_text(availability)
    if not text:
        click.echo("Error: no slots selected", err=True)
        sys.exit(1)
    click.echo(compose_email_body(text))


@main.command()
def calendars():
    """List calendars from every configured source."""
    config = load_config()
    source = build_source(config)
    try:
        entries = source.list_calendars()
    except (AuthenticationError, CalendarFetchError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not entries:
        click.echo("No calendars configured.")
        return
    for cal_id, summary in entries:
        click.echo(f"  {summary:30} {cal_id}")


@main.command("cal-auth")
@click.option("--account", default=None, help="Label of account to authenticate (default: all)")
def cal_auth(account: str | None):
    """Authenticate with Google Calendar."""
    config = load_config()

    if not config.google_accounts:
        click.echo("No calendar accounts configured in openslots.conf", err=True)
        sys.exit(1)

    if not config.google_client_secret_file:
        click.echo("GOOGLE_CLIENT_SECRET_FILE not set in openslots.conf", err=True)
        sys.exit(1)

    from openslots.adapters.google_calendar import GoogleCalendarAdapter

    for acct in config.google_accounts:
        if account and acct.label != account:
            continue

        click.echo(f"\nAuthenticating: {acct.label or acct.config_folder}")
        adapter = GoogleCalendarAdapter(
            config_folder=acct.config_folder,
            label=acct.label,
            client_secret_file=config.google_client_secret_file,
            timezone=config.timezone,
        )
        if adapter.authenticate():
            click.echo(f"  ✓ Token saved to {adapter._token_path}")
        else:
            click.echo("  ✗ Authentication failed", err=True)
