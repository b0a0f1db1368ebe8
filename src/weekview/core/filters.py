"""Calendar and reminder-list filtering - no I/O dependencies."""

from dataclasses import dataclass, field
from typing import Iterable

from .agenda import AgendaDay

# An id filter of None means "no filter"; an empty set means "show nothing".
ALL = None

IdFilter = frozenset[str] | None


@dataclass(frozen=True)
class FilterSettings:
    """Immutable snapshot of what the user chose to see."""

    calendar_ids: IdFilter = ALL
    reminder_list_ids: IdFilter = ALL
    show_completed: bool = False

    def allows_calendar(self, calendar_id: str) -> bool:
        return self.calendar_ids is None or calendar_id in self.calendar_ids

    def allows_reminder_list(self, list_id: str) -> bool:
        return self.reminder_list_ids is None or list_id in self.reminder_list_ids


@dataclass(frozen=True)
class CalendarInfo:
    """A calendar or reminder list the user can toggle."""

    id: str
    title: str
    color: str = ""
    source_title: str = ""
    kind: str = "event"


@dataclass
class SourceGroup:
    """Calendars of one account, in display order."""

    title: str
    calendars: list[CalendarInfo] = field(default_factory=list)


def apply_filters(
    agenda: AgendaDay,
    calendar_ids: IdFilter,
    reminder_list_ids: IdFilter,
    include_completed: bool,
) -> AgendaDay:
    """
    Restrict a day to the selected calendars and reminder lists.

    An explicitly empty selection yields no items of that kind.
    Pure function - no I/O.
    """
    events = tuple(
        e for e in agenda.events if calendar_ids is None or e.calendar_id in calendar_ids
    )
    reminders = tuple(
        r
        for r in agenda.reminders
        if (reminder_list_ids is None or r.list_id in reminder_list_ids)
        and (include_completed or not r.completed)
    )
    return AgendaDay(day=agenda.day, events=events, reminders=reminders)


def group_by_source(calendars: Iterable[CalendarInfo]) -> list[SourceGroup]:
    """Group calendars by account title, groups and members sorted by title."""
    groups: dict[str, SourceGroup] = {}
    for cal in calendars:
        title = cal.source_title or "Other"
        groups.setdefault(title, SourceGroup(title)).calendars.append(cal)

    result = sorted(groups.values(), key=lambda g: g.title.lower())
    for group in result:
        group.calendars.sort(key=lambda c: c.title.lower())
    return result
