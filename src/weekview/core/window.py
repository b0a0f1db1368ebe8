"""Infinite day window - the growing list of materialized days and its cache."""

import asyncio
import bisect
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Mapping

from .agenda import AccessStatus, AgendaDay, DaySection, ReminderItem, build_day_section
from .cache import DayDataCache
from .dates import as_local_date, week_of
from .errors import AgendaWriteError
from .filters import FilterSettings

if TYPE_CHECKING:
    from weekview.ports import AgendaSource

    from .settings import SettingsModel

logger = logging.getLogger(__name__)

EDGE_THRESHOLD_DAYS = 3
EXTENSION_COOLDOWN = 0.3
INITIAL_WEEK_OFFSETS = (-1, 0, 1, 2)


@dataclass(frozen=True)
class WindowSnapshot:
    """Immutable view of the window for rendering."""

    dates: tuple[date, ...]
    days: Mapping[date, AgendaDay]
    selected: date | None
    scroll_target: date | None
    initial_load_complete: bool

    def section(self, day: date) -> DaySection:
        return build_day_section(day, self.days.get(day))

    def sections(self) -> list[DaySection]:
        return [self.section(d) for d in self.dates]


WindowListener = Callable[[WindowSnapshot], None]
SelectionListener = Callable[[date], None]


class InfiniteDayWindow:
    """
    Ordered, de-duplicated list of materialized days plus their agenda cache.

    The window starts empty, is initialized around a selected date and then
    only grows by whole Monday-first weeks. Structural changes happen
    synchronously on the event loop; day data is filled in by background
    tasks that write into the cache by key, so completion order is irrelevant.
    All methods must be called from the loop that runs the window.
    """

    def __init__(
        self,
        source: "AgendaSource",
        settings: "SettingsModel",
        tz: tzinfo,
        edge_threshold: int = EDGE_THRESHOLD_DAYS,
        cooldown: float = EXTENSION_COOLDOWN,
        discard_on_jump: bool = False,
    ):
        self._source = source
        self._settings = settings
        self.tz = tz
        self.edge_threshold = edge_threshold
        self.cooldown = cooldown
        self.discard_on_jump = discard_on_jump

        self._cache = DayDataCache(tz)
        self._dates: list[date] = []
        self.selected: date | None = None
        self.scroll_target: date | None = None
        self.access: AccessStatus | None = None
        self.initial_load = asyncio.Event()
        self._load_generation = 0

        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[WindowListener] = []
        self._selection_listeners: list[SelectionListener] = []
        self._extending = False
        self._cooldown_handle: asyncio.TimerHandle | None = None
        self._updating_from_scroll = False
        self._unsubscribe_settings = settings.subscribe(self._on_filters_changed)

    @property
    def state(self) -> str:
        return "loaded" if self._dates else "empty"

    @property
    def dates(self) -> tuple[date, ...]:
        return tuple(self._dates)

    @property
    def cache(self) -> DayDataCache:
        return self._cache

    # Observers

    @staticmethod
    def _register(listeners: list, listener) -> Callable[[], None]:
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def subscribe(self, listener: WindowListener) -> Callable[[], None]:
        return self._register(self._listeners, listener)

    def subscribe_selection(self, listener: SelectionListener) -> Callable[[], None]:
        """Listen for selections that originate from scrolling."""
        return self._register(self._selection_listeners, listener)

    def snapshot(self) -> WindowSnapshot:
        days = {}
        for d in self._dates:
            agenda = self._cache.get(d)
            if agenda is not None:
                days[d] = agenda
        return WindowSnapshot(
            dates=tuple(self._dates),
            days=MappingProxyType(days),
            selected=self.selected,
            scroll_target=self.scroll_target,
            initial_load_complete=self.initial_load.is_set(),
        )

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    # Structure

    def _merge(self, days: list[date]) -> list[date]:
        """Insert days not yet materialized, keeping the list sorted."""
        present = set(self._dates)
        added = []
        for d in days:
            if d in present:
                continue
            bisect.insort(self._dates, d)
            present.add(d)
            added.append(d)
        return added

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _populate_day(self, day: date, force: bool = False) -> None:
        # Snapshot the filters now so a concurrent toggle cannot tear this fetch
        filters: FilterSettings = self._settings.snapshot()
        try:
            await self._cache.ensure(day, self._source, filters, force=force)
        except Exception:
            logger.exception(f"Unexpected error loading {day.isoformat()}")
            return
        self._notify()

    def _populate(self, days: list[date]) -> list[asyncio.Task]:
        return [self._spawn(self._populate_day(d)) for d in days]

    async def _finish_initial_load(self, tasks: list[asyncio.Task], generation: int) -> None:
        await asyncio.gather(*tasks, return_exceptions=True)
        if generation != self._load_generation:
            # Superseded by a later initialize
            return
        self.initial_load.set()
        logger.debug(f"Initial load complete: {len(self._dates)} days")
        self._notify()

    def initialize(self, selected: date | datetime) -> None:
        """Materialize four weeks around ``selected`` and start loading them."""
        selected = as_local_date(selected, self.tz)
        self._dates = []
        self._load_generation += 1
        self.initial_load.clear()
        self.selected = selected
        self.scroll_target = selected

        days = []
        for weeks in INITIAL_WEEK_OFFSETS:
            days.extend(week_of(selected + timedelta(weeks=weeks)))
        added = self._merge(days)
        self._spawn(self._finish_initial_load(self._populate(added), self._load_generation))
        self._notify()

    def _end_extension(self) -> None:
        self._extending = False
        self._cooldown_handle = None

    def on_visible(self, day: date | datetime) -> list[date]:
        """
        Grow the window when ``day`` is near either edge.

        Returns the days that were added. Calls arriving during the cooldown
        after an extension are ignored; the next approach to the edge
        extends again.
        """
        if not self._dates or self._extending:
            return []

        day = as_local_date(day, self.tz)
        added = []
        if (day - self._dates[0]).days <= self.edge_threshold:
            added.extend(self._merge(week_of(self._dates[0] - timedelta(days=1))))
        if (self._dates[-1] - day).days <= self.edge_threshold:
            added.extend(self._merge(week_of(self._dates[-1] + timedelta(days=1))))

        if added:
            self._extending = True
            self._cooldown_handle = asyncio.get_running_loop().call_later(
                self.cooldown, self._end_extension
            )
            self._populate(added)
            self._notify()
        return added

    def select_date(self, day: date | datetime) -> None:
        """
        Apply a selection coming from outside (the week strip, a command).

        A date outside the window loads its whole week as one block. The rest
        of the window is kept, which can leave a gap, unless
        ``discard_on_jump`` is set, in which case the window is rebuilt
        around the date.
        """
        day = as_local_date(day, self.tz)
        if self._updating_from_scroll:
            self._updating_from_scroll = False
            if day == self.selected:
                return

        if not self._dates or (self.discard_on_jump and day not in self._dates):
            self.initialize(day)
            return

        self.selected = day
        if day not in self._dates:
            added = self._merge(week_of(day))
            logger.debug(f"Loading week of {day.isoformat()} ({len(added)} new days)")
            self._populate(added)
        self.scroll_target = day
        self._notify()

    def on_scroll(self, top_day: date | datetime) -> None:
        """Track the topmost visible day and publish it as the selection."""
        top_day = as_local_date(top_day, self.tz)
        self.on_visible(top_day)
        if top_day == self.selected:
            return

        self.selected = top_day
        self.scroll_target = None
        self._updating_from_scroll = True
        for listener in list(self._selection_listeners):
            listener(top_day)
        self._notify()

    # Invalidation

    def refresh_all(self) -> list[asyncio.Task]:
        """Drop every cached day and reload the whole window."""
        self._cache.invalidate_all()
        tasks = self._populate(list(self._dates))
        self._notify()
        return tasks

    def _on_filters_changed(self, settings: FilterSettings) -> None:
        logger.debug("Filter settings changed, reloading window")
        self.refresh_all()

    async def check_access(self) -> AccessStatus:
        """Re-check permissions and reload if they changed to granted."""
        status = await self._source.request_access()
        previous = self.access
        self.access = status
        if status != previous and status.any_granted and previous is not None:
            self.refresh_all()
        return status

    def on_foreground(self) -> None:
        self.refresh_all()

    async def toggle_reminder(
        self,
        reminder: ReminderItem,
        day: date | None = None,
    ) -> ReminderItem | None:
        """Flip a reminder's completion and reload only its day."""
        try:
            updated = await self._source.set_completed(reminder.id, not reminder.completed)
        except AgendaWriteError as e:
            logger.warning(f"Failed to toggle reminder {reminder.id}: {e}")
            return None

        target = day or updated.due or reminder.due
        if target is not None:
            await self._cache.ensure(target, self._source, self._settings.snapshot(), force=True)
            self._notify()
        return updated

    # Lifecycle

    async def wait_idle(self) -> None:
        """Wait until no populate task is outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        self._unsubscribe_settings()
        if self._cooldown_handle is not None:
            self._cooldown_handle.cancel()
        for task in list(self._tasks):
            task.cancel()
