"""weekview CLI - week strip and infinite agenda."""

import asyncio
import json
import logging
import sys
from datetime import date, datetime, timedelta

import click

from .adapters.deep_link import open_deep_link
from .adapters.ticktick_api import authorize
from .config import load_config
from .core.agenda import (
    REMINDER_LINK_PREFIX,
    CalendarEvent,
    DaySection,
    ReminderItem,
    day_subtitle,
    day_title,
)
from .core.dates import WeekStrip
from .core.errors import AuthenticationError, ConfigError
from .core.filters import group_by_source
from .core.window import WindowSnapshot
from .scheduler import setup_scheduler
from .sources import App, create_app

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
EMPTY_DAY = "NO EVENTS OR REMINDERS"


@click.group()
@click.version_option()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """weekview - calendar events and reminders, one week at a time."""
    logging.basicConfig(
        format=LOG_FORMAT,
        level=logging.DEBUG if debug else logging.WARNING,
    )


def _create_app() -> App:
    try:
        return create_app()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _today(app: App) -> date:
    return datetime.now(app.tz).date()


def _target(app: App, target_date: str | None) -> date:
    if not target_date:
        return _today(app)
    try:
        return date.fromisoformat(target_date)
    except ValueError:
        click.echo(f"Error: invalid date {target_date!r}, expected YYYY-MM-DD", err=True)
        sys.exit(1)


# Rendering


def _format_item(item: CalendarEvent | ReminderItem) -> str:
    if isinstance(item, CalendarEvent):
        location = item.simplified_location
        loc = f" @ {location}" if location else ""
        return f"  {item.duration_label:13} {item.title}{loc}"
    check = "x" if item.completed else " "
    return f"  [{check}] {item.due_label or '':9} {item.title}"


def _show_section(section: DaySection, today: date) -> None:
    click.echo(f"{day_title(section.day, today)}  {day_subtitle(section.day)}")
    if section.is_empty:
        click.echo(f"  {EMPTY_DAY}")
        return
    for event in section.all_day_events:
        click.echo(_format_item(event))
    for item in section.timed_items:
        click.echo(_format_item(item))


def _item_json(item: CalendarEvent | ReminderItem) -> dict:
    if isinstance(item, CalendarEvent):
        return {
            "type": "event",
            "id": item.id,
            "title": item.title,
            "start": item.start.isoformat(),
            "end": item.end.isoformat(),
            "all_day": item.all_day,
            "calendar": item.calendar_name,
            "location": item.simplified_location,
            "link": item.deep_link,
        }
    return {
        "type": "reminder",
        "id": item.id,
        "title": item.title,
        "due": item.due.isoformat() if item.due else None,
        "completed": item.completed,
        "list": item.list_name,
        "link": item.deep_link,
    }


def _section_json(section: DaySection) -> dict:
    return {
        "date": section.day.isoformat(),
        "all_day": [_item_json(e) for e in section.all_day_events],
        "items": [_item_json(i) for i in section.timed_items],
    }


def _show_sections(sections: list[DaySection], today: date, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps([_section_json(s) for s in sections], indent=2))
        return
    for i, section in enumerate(sections):
        if i:
            click.echo()
        _show_section(section, today)


def _show_strip(strip: WeekStrip) -> None:
    cells = []
    for d in strip.dates:
        label = f"{d.strftime('%a')[:2]} {d.day:2}"
        cells.append(f"[{label}]" if d == strip.selected else f" {label} ")
    click.echo(" ".join(cells))
    click.echo(f"{day_title(strip.selected, strip.today)}  {day_subtitle(strip.selected)}")


# Commands


async def _load_window(app: App, selected: date) -> WindowSnapshot | None:
    """Materialize the window around ``selected`` and wait for its first load."""
    status = await app.source.request_access()
    if not status.any_granted:
        return None
    await app.load_available()
    window = app.create_window()
    window.access = status
    try:
        window.initialize(selected)
        await window.initial_load.wait()
        return window.snapshot()
    finally:
        window.close()


@main.command()
@click.option("--date", "-d", "target_date", default=None,
              help="Date to start from (YYYY-MM-DD), defaults to today")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def agenda(target_date: str | None, as_json: bool):
    """Show the agenda around a date."""
    app = _create_app()
    selected = _target(app, target_date)
    snapshot = asyncio.run(_load_window(app, selected))
    if snapshot is None:
        click.echo("Error: no calendar or reminder access. Check config/weekview.conf", err=True)
        sys.exit(1)
    _show_sections(snapshot.sections(), _today(app), as_json)


@main.command()
@click.option("--date", "-d", "target_date", default=None,
              help="Date to select (YYYY-MM-DD), defaults to today")
@click.option("--offset", "-o", default=0, type=int, help="Weeks to page from the selected week")
def week(target_date: str | None, offset: int):
    """Show the week strip."""
    app = _create_app()
    strip = WeekStrip(today=_today(app), selected=_target(app, target_date))
    if offset:
        strip.page_to(strip.offset + offset)
    _show_strip(strip)


def _show_selection(app: App, kind: str) -> None:
    available = app.settings.available_calendars if kind == "event" else app.settings.available_reminder_lists
    is_selected = app.settings.is_calendar_selected if kind == "event" else app.settings.is_reminder_list_selected
    selected_count, available_count = app.settings.selection_count(kind)
    heading = "Calendars" if kind == "event" else "Reminder lists"
    click.echo(f"{heading} ({selected_count}/{available_count} selected)")
    for group in group_by_source(available):
        click.echo(f"\n{group.title}")
        for cal in group.calendars:
            mark = "x" if is_selected(cal.id) else " "
            click.echo(f"  [{mark}] {cal.title}  ({cal.id})")


def _toggle_selection(kind: str, item_id: str) -> None:
    app = _create_app()
    asyncio.run(app.load_available())
    available = app.settings.available_calendars if kind == "event" else app.settings.available_reminder_lists
    if item_id not in {c.id for c in available}:
        click.echo(f"Error: unknown id {item_id!r}", err=True)
        sys.exit(1)
    if kind == "event":
        app.settings.toggle_calendar(item_id)
    else:
        app.settings.toggle_reminder_list(item_id)
    _show_selection(app, kind)


@main.group(invoke_without_command=True)
@click.pass_context
def calendars(ctx):
    """List calendars and which are shown."""
    if ctx.invoked_subcommand is None:
        app = _create_app()
        asyncio.run(app.load_available())
        _show_selection(app, "event")


@calendars.command("toggle")
@click.argument("calendar_id")
def calendars_toggle(calendar_id: str):
    """Show or hide a calendar."""
    _toggle_selection("event", calendar_id)


@main.group(invoke_without_command=True)
@click.pass_context
def lists(ctx):
    """List reminder lists and which are shown."""
    if ctx.invoked_subcommand is None:
        app = _create_app()
        asyncio.run(app.load_available())
        _show_selection(app, "reminder")


@lists.command("toggle")
@click.argument("list_id")
def lists_toggle(list_id: str):
    """Show or hide a reminder list."""
    _toggle_selection("reminder", list_id)


@main.command()
def completed():
    """Toggle showing completed reminders."""
    app = _create_app()
    app.settings.toggle_show_completed()
    state = "shown" if app.settings.snapshot().show_completed else "hidden"
    click.echo(f"Completed reminders are now {state}.")


async def _toggle_reminder(app: App, reminder_id: str, day: date) -> tuple[ReminderItem | None, ReminderItem | None]:
    await app.load_available()
    filters = app.settings.snapshot()
    # Completed reminders must be found even while they are hidden
    agenda = await app.source.fetch_day(day, filters.calendar_ids, filters.reminder_list_ids, True)
    reminder = agenda.find_reminder(reminder_id)
    if reminder is None:
        return None, None

    window = app.create_window()
    try:
        return reminder, await window.toggle_reminder(reminder, day)
    finally:
        window.close()


@main.command()
@click.argument("reminder_id")
@click.option("--date", "-d", "target_date", default=None,
              help="Day the reminder is due (YYYY-MM-DD), defaults to today")
def toggle(reminder_id: str, target_date: str | None):
    """Mark a reminder done, or not done."""
    app = _create_app()
    day = _target(app, target_date)
    reminder, updated = asyncio.run(_toggle_reminder(app, reminder_id, day))
    if reminder is None:
        click.echo(f"Error: no reminder {reminder_id!r} on {day.isoformat()}", err=True)
        sys.exit(1)
    if updated is None:
        click.echo(f"Error: could not update {reminder.title!r}", err=True)
        sys.exit(1)
    click.echo(f"{'✓ Completed' if updated.completed else '○ Reopened'}: {updated.title}")


@main.group("open")
def open_link():
    """Open an event or reminder in the calendar app."""
    pass


async def _find_event(app: App, event_id: str, day: date) -> CalendarEvent | None:
    await app.load_available()
    filters = app.settings.snapshot()
    agenda = await app.source.fetch_day(
        day, filters.calendar_ids, filters.reminder_list_ids, filters.show_completed
    )
    return next((e for e in agenda.events if e.id == event_id), None)


@open_link.command("event")
@click.option("--event-id", required=True, help="Event id")
@click.option("--date", "-d", "target_date", default=None,
              help="Day of the event (YYYY-MM-DD), defaults to today")
def open_event(event_id: str, target_date: str | None):
    """Open an event at its start time."""
    app = _create_app()
    day = _target(app, target_date)
    event = asyncio.run(_find_event(app, event_id, day))
    if event is None:
        click.echo(f"Error: no event {event_id!r} on {day.isoformat()}", err=True)
        sys.exit(1)
    click.echo(event.deep_link)
    open_deep_link(event.deep_link)


@open_link.command("reminder")
@click.argument("reminder_id")
def open_reminder(reminder_id: str):
    """Open a reminder."""
    link = f"{REMINDER_LINK_PREFIX}{reminder_id}"
    click.echo(link)
    open_deep_link(link)


@main.command()
def weather():
    """Show current weather."""
    app = _create_app()
    report = asyncio.run(app.weather.load())
    if report is None:
        click.echo(f"Error: {app.weather.error_message}", err=True)
        sys.exit(1)
    label = f" in {app.weather.location.label}" if app.weather.location.label else ""
    click.echo(f"{app.weather.status_line()}{label}")


async def _watch(app: App, interval: int, days: int) -> None:
    def render(snapshot: WindowSnapshot) -> None:
        start = snapshot.selected or _today(app)
        end = start + timedelta(days=days)
        click.clear()
        status = app.weather.status_line()
        if status:
            click.echo(status)
            click.echo()
        _show_sections(
            [snapshot.section(d) for d in snapshot.dates if start <= d < end],
            _today(app),
            as_json=False,
        )

    await app.load_available()
    window = app.create_window()
    window.access = await app.source.request_access()
    window.initialize(_today(app))
    await app.weather.load()
    await window.initial_load.wait()
    render(window.snapshot())

    scheduler = setup_scheduler(window, interval, app.tz, on_refreshed=render)
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)
        window.close()


@main.command()
@click.option("--interval", "-i", default=None, type=int,
              help="Minutes between refreshes (default from config)")
@click.option("--days", default=3, type=int, help="Days to show")
def watch(interval: int | None, days: int):
    """Keep the agenda on screen and refresh it periodically."""
    app = _create_app()
    interval = interval or app.config.refresh_interval_minutes
    if interval < 1:
        click.echo("Error: --interval must be at least 1", err=True)
        sys.exit(1)

    try:
        asyncio.run(_watch(app, interval, days))
    except KeyboardInterrupt:
        click.echo("\nStopped.")


@main.command()
def auth():
    """Authenticate with TickTick."""
    try:
        authorize()
    except (AuthenticationError, ConfigError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command("cal-auth")
@click.option("--account", default=None, help="Label of account to authenticate (default: all)")
def cal_auth(account: str | None):
    """Authenticate with Google Calendar."""
    try:
        config = load_config()
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not config.google_accounts:
        click.echo("No Google accounts configured in weekview.conf", err=True)
        sys.exit(1)

    if not config.google_client_secret_file:
        click.echo("GOOGLE_CLIENT_SECRET_FILE not set in weekview.conf", err=True)
        sys.exit(1)

    from .adapters.google_calendar import GoogleCalendarSource
    from .core.dates import local_zone

    for acct in config.google_accounts:
        if account and acct.label != account:
            continue

        click.echo(f"\nAuthenticating: {acct.label or acct.config_folder}")
        source = GoogleCalendarSource(
            config_folder=acct.config_folder,
            tz=local_zone(config.timezone),
            label=acct.label,
            client_secret_file=config.google_client_secret_file,
        )
        if source.authenticate():
            click.echo(f"  ✓ Token saved to {source._token_path}")
        else:
            click.echo("  ✗ Authentication failed", err=True)


@main.command()
def status():
    """Show which sources are reachable."""
    app = _create_app()
    access = asyncio.run(app.source.request_access())
    calendar = "✓" if access.calendar_granted else "✗"
    reminders = "✓" if access.reminders_granted else "✗"
    click.echo(f"Calendars: {calendar} ({', '.join(app.config.event_sources) or 'none'})")
    click.echo(f"Reminders: {reminders} ({app.config.reminder_source})")
    click.echo(f"Timezone:  {app.tz}")
