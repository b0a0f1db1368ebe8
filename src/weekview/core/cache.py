"""Per-day agenda cache with lazy fill and in-flight de-duplication."""

import asyncio
import logging
from datetime import date, datetime, tzinfo
from typing import TYPE_CHECKING

from .agenda import AgendaDay
from .dates import as_local_date, day_key
from .errors import AgendaSourceError
from .filters import FilterSettings

if TYPE_CHECKING:
    from weekview.ports import AgendaSource

logger = logging.getLogger(__name__)


class DayDataCache:
    """
    Maps a day's midnight instant to its AgendaDay.

    Every lookup normalizes its argument to the local midnight first, so a
    date, a midnight and 15:00 on the same day all hit the same entry.
    Concurrent ``ensure`` calls for one day share a single fetch. Fetches that
    were started before ``invalidate_all`` still answer their callers but do
    not write into the cache.
    """

    def __init__(self, tz: tzinfo):
        self.tz = tz
        self._entries: dict[datetime, AgendaDay] = {}
        self._pending: dict[datetime, tuple[int, asyncio.Task]] = {}
        self._generation = 0

    def key(self, day: date | datetime) -> datetime:
        return day_key(day, self.tz)

    def get(self, day: date | datetime) -> AgendaDay | None:
        return self._entries.get(self.key(day))

    def __contains__(self, day: date | datetime) -> bool:
        return self.key(day) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def days(self) -> list[datetime]:
        return sorted(self._entries)

    def invalidate_all(self) -> None:
        self._entries.clear()
        self._generation += 1

    async def _fetch(
        self,
        key: datetime,
        source: "AgendaSource",
        filters: FilterSettings,
        generation: int,
    ) -> AgendaDay:
        try:
            fetched = await source.fetch_day(
                as_local_date(key, self.tz),
                filters.calendar_ids,
                filters.reminder_list_ids,
                filters.show_completed,
            )
        except AgendaSourceError as e:
            logger.warning(f"Failed to load {key.date().isoformat()}: {e}")
            return AgendaDay(day=key)

        agenda = AgendaDay(day=key, events=tuple(fetched.events), reminders=tuple(fetched.reminders))
        if generation == self._generation:
            self._entries[key] = agenda
        else:
            logger.debug(f"Discarding stale result for {key.date().isoformat()}")
        return agenda

    async def ensure(
        self,
        day: date | datetime,
        source: "AgendaSource",
        filters: FilterSettings,
        force: bool = False,
    ) -> AgendaDay:
        """Cached day, fetching it from ``source`` when absent or forced."""
        key = self.key(day)

        if not force and key in self._entries:
            return self._entries[key]

        pending = self._pending.get(key)
        if pending is not None:
            generation, task = pending
            # Fetches from before an invalidation carry stale filters
            if not force and generation == self._generation:
                return await asyncio.shield(task)
            if force:
                # A forced refresh must observe writes made after the pending read began
                await asyncio.wait([task])

        generation = self._generation
        task = asyncio.ensure_future(self._fetch(key, source, filters, generation))
        self._pending[key] = (generation, task)
        task.add_done_callback(lambda t: self._forget(key, t))
        return await asyncio.shield(task)

    def _forget(self, key: datetime, task: asyncio.Task) -> None:
        pending = self._pending.get(key)
        if pending is not None and pending[1] is task:
            del self._pending[key]
