"""Shared test fixtures.

Points WEEKVIEW_HOME at a scratch directory before any weekview import, and
provides fixed dates, item factories and an in-memory agenda source.
"""

import os
import tempfile

os.environ.setdefault("WEEKVIEW_HOME", tempfile.mkdtemp(prefix="weekview-tests-"))

import asyncio
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from weekview.adapters.json_preferences import MemoryPreferenceStore
from weekview.core.agenda import AccessStatus, AgendaDay, CalendarEvent, ReminderItem
from weekview.core.dates import as_local_date, day_key
from weekview.core.errors import AgendaSourceError, AgendaWriteError
from weekview.core.filters import CalendarInfo, apply_filters
from weekview.core.settings import SettingsModel


class FakeAgendaSource:
    """In-memory AgendaSource that records every fetch."""

    def __init__(self, tz):
        self.tz = tz
        self.events: list[CalendarEvent] = []
        self.reminders: list[ReminderItem] = []
        self.calendars: list[CalendarInfo] = []
        self.reminder_lists: list[CalendarInfo] = []
        self.access = AccessStatus(calendar_granted=True, reminders_granted=True)
        self.fetches: list[date] = []
        self.failing_days: set[date] = set()
        self.gate: asyncio.Event | None = None
        self.read_only = False

    async def request_access(self) -> AccessStatus:
        return self.access

    async def list_calendars(self) -> list[CalendarInfo]:
        return list(self.calendars)

    async def list_reminder_lists(self) -> list[CalendarInfo]:
        return list(self.reminder_lists)

    async def fetch_day(self, day, calendar_ids, reminder_list_ids, include_completed) -> AgendaDay:
        self.fetches.append(day)
        if self.gate is not None:
            await self.gate.wait()
        if day in self.failing_days:
            raise AgendaSourceError(f"backend down for {day}")
        events = tuple(e for e in self.events if as_local_date(e.start, self.tz) == day)
        reminders = tuple(
            r for r in self.reminders if r.due is not None and as_local_date(r.due, self.tz) == day
        )
        agenda = AgendaDay(day=day_key(day, self.tz), events=events, reminders=reminders)
        return apply_filters(agenda, calendar_ids, reminder_list_ids, include_completed)

    async def set_completed(self, reminder_id: str, completed: bool) -> ReminderItem:
        if self.read_only:
            raise AgendaWriteError("reminders are read-only")
        for i, reminder in enumerate(self.reminders):
            if reminder.id == reminder_id:
                self.reminders[i] = reminder.with_completed(completed)
                return self.reminders[i]
        raise AgendaWriteError(f"unknown reminder {reminder_id}")


@pytest.fixture
def tz():
    return ZoneInfo("America/Toronto")


@pytest.fixture
def today():
    # A Wednesday
    return date(2025, 1, 15)


@pytest.fixture
def make_event(tz, today):
    """Factory for creating events."""
    def _make(
        event_id: str,
        start_hour: int = 9,
        end_hour: int = 10,
        day: date | None = None,
        all_day: bool = False,
        calendar_id: str = "work",
        title: str | None = None,
        location: str = "",
        url: str = "",
    ) -> CalendarEvent:
        day = day or today
        if all_day:
            start = datetime.combine(day, time.min, tzinfo=tz)
            end = start
        else:
            start = datetime.combine(day, time(start_hour, 0), tzinfo=tz)
            end = datetime.combine(day, time(end_hour, 0), tzinfo=tz)
        return CalendarEvent(
            id=event_id,
            title=title or f"Event {event_id}",
            start=start,
            end=end,
            all_day=all_day,
            calendar_id=calendar_id,
            calendar_color="#4285F4",
            calendar_name=calendar_id.capitalize(),
            location=location,
            url=url,
            source="test",
        )
    return _make


@pytest.fixture
def make_reminder(tz, today):
    """Factory for creating reminders. ``hour=None`` means due on the day without a time."""
    def _make(
        reminder_id: str,
        hour: int | None = None,
        day: date | None = None,
        completed: bool = False,
        list_id: str = "inbox",
        title: str | None = None,
    ) -> ReminderItem:
        day = day or today
        due = datetime.combine(day, time(hour or 0, 0), tzinfo=tz)
        return ReminderItem(
            id=reminder_id,
            title=title or f"Reminder {reminder_id}",
            due=due,
            completed=completed,
            list_id=list_id,
            list_color="#FF9500",
            list_name=list_id.capitalize(),
            all_day=hour is None,
            source="test",
        )
    return _make


@pytest.fixture
def source(tz):
    return FakeAgendaSource(tz)


@pytest.fixture
def store():
    return MemoryPreferenceStore()


@pytest.fixture
def settings(store):
    return SettingsModel(store)
