"""Process-wide filter settings backed by a preference store."""

import logging
from typing import TYPE_CHECKING, Callable

from .filters import ALL, CalendarInfo, FilterSettings

if TYPE_CHECKING:
    from weekview.ports import PreferenceStore

logger = logging.getLogger(__name__)

SELECTED_CALENDARS_KEY = "selected_calendar_ids"
SELECTED_REMINDER_LISTS_KEY = "selected_reminder_list_ids"
SHOW_COMPLETED_KEY = "show_completed_reminders"
INITIALIZED_DEFAULTS_KEY = "has_initialized_defaults"

SettingsListener = Callable[[FilterSettings], None]


class SettingsModel:
    """
    Read model for the user's calendar and reminder-list selection.

    Loaded once from the store; every toggle is persisted immediately and
    published to subscribers as a new immutable FilterSettings snapshot.
    Until defaults were initialized against the available calendars, the
    selection is ALL rather than an empty set.
    """

    def __init__(self, store: "PreferenceStore"):
        self._store = store
        self._listeners: list[SettingsListener] = []
        self.available_calendars: list[CalendarInfo] = []
        self.available_reminder_lists: list[CalendarInfo] = []
        self._load()

    def _load(self) -> None:
        initialized = self._store.get_bool(INITIALIZED_DEFAULTS_KEY)
        calendars = self._store.get_string_list(SELECTED_CALENDARS_KEY)
        lists = self._store.get_string_list(SELECTED_REMINDER_LISTS_KEY)

        self._calendar_ids: set[str] | None = set(calendars) if initialized and calendars is not None else ALL
        self._reminder_list_ids: set[str] | None = set(lists) if initialized and lists is not None else ALL
        self._show_completed = self._store.get_bool(SHOW_COMPLETED_KEY)

    def _save(self) -> None:
        if self._calendar_ids is not None:
            self._store.set_string_list(SELECTED_CALENDARS_KEY, sorted(self._calendar_ids))
        if self._reminder_list_ids is not None:
            self._store.set_string_list(SELECTED_REMINDER_LISTS_KEY, sorted(self._reminder_list_ids))
        self._store.set_bool(SHOW_COMPLETED_KEY, self._show_completed)

    def snapshot(self) -> FilterSettings:
        return FilterSettings(
            calendar_ids=frozenset(self._calendar_ids) if self._calendar_ids is not None else ALL,
            reminder_list_ids=(
                frozenset(self._reminder_list_ids) if self._reminder_list_ids is not None else ALL
            ),
            show_completed=self._show_completed,
        )

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def set_available(
        self,
        calendars: list[CalendarInfo],
        reminder_lists: list[CalendarInfo],
    ) -> None:
        """
        Record what the source offers.

        On the very first run every available calendar and list is selected
        and that choice is persisted, so later deselecting everything really
        means "show nothing".
        """
        self.available_calendars = list(calendars)
        self.available_reminder_lists = list(reminder_lists)

        if self._store.get_bool(INITIALIZED_DEFAULTS_KEY):
            return

        self._calendar_ids = {c.id for c in calendars}
        self._reminder_list_ids = {r.id for r in reminder_lists}
        self._save()
        self._store.set_bool(INITIALIZED_DEFAULTS_KEY, True)
        logger.info(
            f"Selected {len(calendars)} calendars and {len(reminder_lists)} reminder lists by default"
        )
        self._publish()

    def _toggled(self, current: set[str] | None, item_id: str, available: list[CalendarInfo]) -> set[str]:
        ids = set(current) if current is not None else {c.id for c in available}
        if current is None:
            # ALL includes calendars we have not been told about yet
            ids.add(item_id)
        if item_id in ids:
            ids.remove(item_id)
        else:
            ids.add(item_id)
        return ids

    def toggle_calendar(self, calendar_id: str) -> None:
        self._calendar_ids = self._toggled(self._calendar_ids, calendar_id, self.available_calendars)
        self._store.set_bool(INITIALIZED_DEFAULTS_KEY, True)
        self._save()
        self._publish()

    def toggle_reminder_list(self, list_id: str) -> None:
        self._reminder_list_ids = self._toggled(
            self._reminder_list_ids, list_id, self.available_reminder_lists
        )
        self._store.set_bool(INITIALIZED_DEFAULTS_KEY, True)
        self._save()
        self._publish()

    def toggle_show_completed(self) -> None:
        self._show_completed = not self._show_completed
        self._save()
        self._publish()

    def is_calendar_selected(self, calendar_id: str) -> bool:
        return self.snapshot().allows_calendar(calendar_id)

    def is_reminder_list_selected(self, list_id: str) -> bool:
        return self.snapshot().allows_reminder_list(list_id)

    def selection_count(self, kind: str = "event") -> tuple[int, int]:
        """(selected, available) counts for the settings header."""
        available = self.available_calendars if kind == "event" else self.available_reminder_lists
        selected = self._calendar_ids if kind == "event" else self._reminder_list_ids
        if selected is None:
            return len(available), len(available)
        return len([c for c in available if c.id in selected]), len(available)
