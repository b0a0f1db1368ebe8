"""Composite agenda source - combines event sources with a reminder source."""

import asyncio
import logging
from datetime import date, tzinfo

from weekview.core.agenda import AccessStatus, AgendaDay, CalendarEvent, ReminderItem
from weekview.core.dates import day_key
from weekview.core.errors import AgendaWriteError, AuthenticationError
from weekview.core.filters import CalendarInfo, IdFilter, apply_filters
from weekview.ports import EventSource, ReminderSource

logger = logging.getLogger(__name__)


def sort_events_by_start(events: list[CalendarEvent]) -> list[CalendarEvent]:
    """Sort events by start time."""
    return sorted(events, key=lambda e: (e.start, e.id))


class CompositeAgendaSource:
    """
    Composite agenda source over blocking backends.

    Implements the AgendaSource protocol. Each backend call runs in a worker
    thread so the event loop keeps serving the window while icalPal or an
    HTTP request is busy.
    """

    def __init__(
        self,
        event_sources: list[EventSource],
        reminder_source: ReminderSource | None,
        tz: tzinfo,
    ):
        self.event_sources = event_sources
        self.reminder_source = reminder_source
        self.tz = tz

    async def request_access(self) -> AccessStatus:
        calendar_granted = False
        for source in self.event_sources:
            if await asyncio.to_thread(source.is_available):
                calendar_granted = True

        reminders_granted = False
        if self.reminder_source is not None:
            reminders_granted = await asyncio.to_thread(self.reminder_source.is_available)

        return AccessStatus(calendar_granted=calendar_granted, reminders_granted=reminders_granted)

    async def list_calendars(self) -> list[CalendarInfo]:
        calendars = []
        for source in self.event_sources:
            calendars.extend(await asyncio.to_thread(source.list_calendars))
        return calendars

    async def list_reminder_lists(self) -> list[CalendarInfo]:
        if self.reminder_source is None:
            return []
        try:
            return await asyncio.to_thread(self.reminder_source.list_reminder_lists)
        except AuthenticationError as e:
            logger.warning(f"Reminders unavailable: {e}")
            return []

    async def _events(self, day: date) -> list[CalendarEvent]:
        results = await asyncio.gather(
            *(asyncio.to_thread(source.fetch_events, day) for source in self.event_sources)
        )
        events = []
        for batch in results:
            events.extend(batch)
        return sort_events_by_start(events)

    async def _reminders(self, day: date, include_completed: bool) -> list[ReminderItem]:
        if self.reminder_source is None:
            return []
        try:
            return await asyncio.to_thread(
                self.reminder_source.fetch_reminders, day, include_completed
            )
        except AuthenticationError as e:
            logger.warning(f"Reminders unavailable: {e}")
            return []

    async def fetch_day(
        self,
        day: date,
        calendar_ids: IdFilter,
        reminder_list_ids: IdFilter,
        include_completed: bool,
    ) -> AgendaDay:
        """Fetch and filter one day. An empty id set skips that backend entirely."""
        events = [] if calendar_ids == frozenset() else await self._events(day)
        reminders = (
            [] if reminder_list_ids == frozenset() else await self._reminders(day, include_completed)
        )
        agenda = AgendaDay(day=day_key(day, self.tz), events=tuple(events), reminders=tuple(reminders))
        return apply_filters(agenda, calendar_ids, reminder_list_ids, include_completed)

    async def set_completed(self, reminder_id: str, completed: bool) -> ReminderItem:
        if self.reminder_source is None:
            raise AgendaWriteError("No reminder source configured")
        return await asyncio.to_thread(self.reminder_source.set_completed, reminder_id, completed)
