"""Pure Monday-first week arithmetic - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo

DAYS_PER_WEEK = 7
STRIP_WEEK_RANGE = 52


def local_zone(name: str = "") -> tzinfo:
    """Resolve a zone name, falling back to the system local zone."""
    if name:
        return ZoneInfo(name)
    return datetime.now().astimezone().tzinfo


def as_local_date(value: date | datetime, tz: tzinfo | None = None) -> date:
    """
    Reduce a date or datetime to the calendar day it falls on.

    Aware datetimes are converted into ``tz`` first so that an instant late in
    the evening UTC lands on the right local day. Naive datetimes are taken at
    face value.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None and tz is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def day_key(value: date | datetime, tz: tzinfo) -> datetime:
    """Normalized midnight instant of the local day containing ``value``."""
    return datetime.combine(as_local_date(value, tz), time.min, tzinfo=tz)


def start_of_week(value: date | datetime, tz: tzinfo | None = None) -> date:
    """Monday of the week containing ``value``."""
    d = as_local_date(value, tz)
    return d - timedelta(days=d.weekday())


def week_of(value: date | datetime, tz: tzinfo | None = None) -> list[date]:
    """
    The seven days Monday..Sunday of the week containing ``value``.

    Pure function - no I/O. Arithmetic is on calendar dates, so DST changes
    and month/year boundaries need no special handling.
    """
    monday = start_of_week(value, tz)
    return [monday + timedelta(days=i) for i in range(DAYS_PER_WEEK)]


def week_offset(
    from_day: date | datetime,
    to_day: date | datetime,
    tz: tzinfo | None = None,
) -> int:
    """Signed number of Monday-first weeks from ``from_day``'s week to ``to_day``'s."""
    delta = start_of_week(to_day, tz) - start_of_week(from_day, tz)
    return delta.days // DAYS_PER_WEEK


def is_same_day(a: date | datetime, b: date | datetime, tz: tzinfo | None = None) -> bool:
    return as_local_date(a, tz) == as_local_date(b, tz)


@dataclass
class WeekStrip:
    """
    Paged week strip bound to a selected date.

    Pages are addressed by their offset from the week containing ``today``.
    Paging selects today when the page contains it, otherwise the page's
    Monday. Selecting a date pages to its week; the page change caused by a
    selection must not overwrite that selection, which the
    ``_updating_from_selection`` flag guards for one round trip.
    """

    today: date
    selected: date
    offset: int = 0
    _updating_from_selection: bool = field(default=False, repr=False)

    def __post_init__(self):
        self.offset = self.offset_for(self.selected)

    def dates_for_offset(self, offset: int) -> list[date]:
        monday = start_of_week(self.today) + timedelta(weeks=offset)
        return week_of(monday)

    def offset_for(self, day: date) -> int:
        return week_offset(self.today, day)

    @property
    def dates(self) -> list[date]:
        return self.dates_for_offset(self.offset)

    def page_to(self, offset: int) -> date:
        """Show the page at ``offset`` and return the resulting selection."""
        offset = max(-STRIP_WEEK_RANGE, min(STRIP_WEEK_RANGE, offset))
        self.offset = offset
        if self._updating_from_selection:
            self._updating_from_selection = False
            return self.selected

        page = self.dates_for_offset(offset)
        self.selected = self.today if self.today in page else page[0]
        return self.selected

    def select(self, day: date) -> None:
        """Select ``day`` and page the strip to its week if needed."""
        self.selected = day
        target = self.offset_for(day)
        if target != self.offset:
            self._updating_from_selection = True
            self.page_to(target)
