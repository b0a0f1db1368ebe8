"""Agenda source interfaces."""

from datetime import date
from typing import Protocol

from weekview.core.agenda import AccessStatus, AgendaDay, CalendarEvent, ReminderItem
from weekview.core.filters import CalendarInfo, IdFilter


class AgendaSource(Protocol):
    """Interface for reading a day's events and reminders from any backend."""

    async def request_access(self) -> AccessStatus:
        """Ask for (or check) permission to read calendars and reminders."""
        ...

    async def list_calendars(self) -> list[CalendarInfo]:
        """Event calendars available for selection."""
        ...

    async def list_reminder_lists(self) -> list[CalendarInfo]:
        """Reminder lists available for selection."""
        ...

    async def fetch_day(
        self,
        day: date,
        calendar_ids: IdFilter,
        reminder_list_ids: IdFilter,
        include_completed: bool,
    ) -> AgendaDay:
        """
        Fetch the events and reminders of one day.

        ``None`` filters mean "all"; an empty set must yield no items of that
        kind. Raises AgendaSourceError on transient failures.
        """
        ...

    async def set_completed(self, reminder_id: str, completed: bool) -> ReminderItem:
        """Mark a reminder (un)completed. Raises AgendaWriteError on failure."""
        ...


class EventSource(Protocol):
    """Interface for a backend that only provides calendar events."""

    name: str

    def is_available(self) -> bool:
        ...

    def list_calendars(self) -> list[CalendarInfo]:
        ...

    def fetch_events(self, target_date: date) -> list[CalendarEvent]:
        """Fetch all events of a date. Raises AgendaSourceError on failure."""
        ...


class ReminderSource(Protocol):
    """Interface for a backend that provides reminders."""

    name: str

    def is_available(self) -> bool:
        ...

    def list_reminder_lists(self) -> list[CalendarInfo]:
        ...

    def fetch_reminders(self, target_date: date, include_completed: bool) -> list[ReminderItem]:
        """Fetch reminders due on a date. Raises AgendaSourceError on failure."""
        ...

    def set_completed(self, reminder_id: str, completed: bool) -> ReminderItem:
        ...
