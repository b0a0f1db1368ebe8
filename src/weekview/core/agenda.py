"""Pure agenda domain logic - events, reminders and day sections, no I/O."""

from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from urllib.parse import urlparse

# Reference instant of the platform calendar's calshow: scheme.
CALSHOW_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)
REMINDER_LINK_PREFIX = "x-apple-reminderkit://REMCDReminder/"

_MEETING_HOSTS = [
    ("zoom.us", "Zoom"),
    ("meet.google.com", "Google Meet"),
    ("teams.microsoft.com", "Microsoft Teams"),
    ("teams.live.com", "Microsoft Teams"),
    ("slack.com", "Slack"),
]


@dataclass(frozen=True)
class AccessStatus:
    """Whether the agenda source may read calendars and reminders."""

    calendar_granted: bool
    reminders_granted: bool

    @property
    def any_granted(self) -> bool:
        return self.calendar_granted or self.reminders_granted


@dataclass(frozen=True)
class CalendarEvent:
    """A calendar event."""

    id: str
    title: str
    start: datetime
    end: datetime
    all_day: bool
    calendar_id: str
    calendar_color: str
    calendar_name: str = ""
    location: str = ""
    url: str = ""
    source: str = ""

    @property
    def key(self) -> str:
        return f"event_{self.id}"

    @property
    def duration_label(self) -> str:
        if self.all_day:
            return "All Day"
        return f"{self.start.strftime('%H:%M')} - {self.end.strftime('%H:%M')}"

    @property
    def simplified_location(self) -> str:
        return simplify_location(self.location, self.url, self.calendar_name)

    @property
    def deep_link(self) -> str:
        return calshow_link(self.start)

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() / 60)


@dataclass(frozen=True)
class ReminderItem:
    """A reminder, optionally due on a day."""

    id: str
    title: str
    due: datetime | None
    completed: bool
    list_id: str
    list_color: str
    list_name: str = ""
    all_day: bool = False
    source: str = ""

    @property
    def key(self) -> str:
        return f"reminder_{self.id}"

    @property
    def sort_time(self) -> datetime | None:
        """Due instant, or None when the reminder has no time of day."""
        if self.due is None or self.all_day:
            return None
        return self.due

    @property
    def due_label(self) -> str | None:
        if self.sort_time is None:
            return None
        return self.due.strftime("%H:%M")

    @property
    def deep_link(self) -> str:
        return f"{REMINDER_LINK_PREFIX}{self.id}"

    def with_completed(self, completed: bool) -> "ReminderItem":
        return replace(self, completed=completed)


@dataclass(frozen=True)
class AgendaDay:
    """Events and reminders of one day, keyed by the day's midnight instant."""

    day: datetime
    events: tuple[CalendarEvent, ...] = ()
    reminders: tuple[ReminderItem, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.events and not self.reminders

    def find_reminder(self, reminder_id: str) -> ReminderItem | None:
        return next((r for r in self.reminders if r.id == reminder_id), None)


@dataclass(frozen=True)
class DaySection:
    """A day ready for display: all-day events first, then merged timed items."""

    day: date
    all_day_events: tuple[CalendarEvent, ...]
    timed_items: tuple[CalendarEvent | ReminderItem, ...]

    @property
    def is_empty(self) -> bool:
        return not self.all_day_events and not self.timed_items


def _host(value: str) -> str:
    parsed = urlparse(value.strip())
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return ""
    return parsed.hostname.lower()


def _matches(host: str, domain: str) -> bool:
    return host == domain or host.endswith("." + domain)


def simplify_location(location: str, url: str = "", calendar_name: str = "") -> str:
    """
    Short label for where an event happens.

    Known meeting hosts get their product name, any other link is reduced to
    its host without ``www.``, plain text is kept, and an event with no place
    at all shows its calendar's name.
    """
    host = _host(url) or _host(location)
    if host:
        for domain, label in _MEETING_HOSTS:
            if _matches(host, domain):
                return label
        return host.removeprefix("www.")
    if location.strip():
        return location.strip()
    return calendar_name


def calshow_link(start: datetime) -> str:
    """Platform calendar URI opening the day of ``start``."""
    if start.tzinfo is None:
        start = start.astimezone()
    seconds = (start - CALSHOW_EPOCH).total_seconds()
    if seconds.is_integer():
        return f"calshow:{int(seconds)}"
    return f"calshow:{seconds}"


def _sort_key(item: CalendarEvent | ReminderItem) -> tuple[int, float, str]:
    when = item.start if isinstance(item, CalendarEvent) else item.sort_time
    if when is None:
        return (1, 0.0, item.key)
    if when.tzinfo is None:
        when = when.astimezone()
    return (0, when.timestamp(), item.key)


def merge_timed_items(
    events: list[CalendarEvent] | tuple[CalendarEvent, ...],
    reminders: list[ReminderItem] | tuple[ReminderItem, ...],
) -> list[CalendarEvent | ReminderItem]:
    """
    Merge timed events and reminders into one time-ordered sequence.

    Untimed reminders sort after every timed item, and equal instants are
    ordered by item key so re-renders are deterministic.
    Pure function - no I/O.
    """
    items: list[CalendarEvent | ReminderItem] = [e for e in events if not e.all_day]
    items.extend(reminders)
    return sorted(items, key=_sort_key)


def build_day_section(day: date, agenda: AgendaDay | None) -> DaySection:
    """Arrange one day's agenda for display."""
    if agenda is None:
        return DaySection(day=day, all_day_events=(), timed_items=())
    all_day = tuple(sorted((e for e in agenda.events if e.all_day), key=lambda e: e.key))
    return DaySection(
        day=day,
        all_day_events=all_day,
        timed_items=tuple(merge_timed_items(agenda.events, agenda.reminders)),
    )


def day_title(day: date, today: date) -> str:
    """TODAY, TOMORROW, or the upper-cased weekday name."""
    delta = (day - today).days
    if delta == 0:
        return "TODAY"
    if delta == 1:
        return "TOMORROW"
    return day.strftime("%A").upper()


def day_subtitle(day: date) -> str:
    return day.strftime("%d/%m/%Y")
