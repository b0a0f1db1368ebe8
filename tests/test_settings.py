"""Tests for the persisted filter settings model."""

from weekview.adapters.json_preferences import JsonPreferenceStore, MemoryPreferenceStore
from weekview.core.filters import ALL, CalendarInfo
from weekview.core.settings import (
    INITIALIZED_DEFAULTS_KEY,
    SELECTED_CALENDARS_KEY,
    SHOW_COMPLETED_KEY,
    SettingsModel,
)

CALENDARS = [
    CalendarInfo("work", "Work", source_title="iCloud"),
    CalendarInfo("home", "Home", source_title="iCloud"),
]
LISTS = [CalendarInfo("inbox", "Inbox", kind="reminder")]


class TestDefaults:
    def test_unset_preferences_mean_all(self, settings):
        snapshot = settings.snapshot()
        assert snapshot.calendar_ids is ALL
        assert snapshot.reminder_list_ids is ALL
        assert snapshot.show_completed is False

    def test_first_run_selects_everything_and_persists(self, store, settings):
        settings.set_available(CALENDARS, LISTS)

        assert settings.snapshot().calendar_ids == frozenset({"work", "home"})
        assert settings.snapshot().reminder_list_ids == frozenset({"inbox"})
        assert store.get_bool(INITIALIZED_DEFAULTS_KEY) is True
        assert sorted(store.get_string_list(SELECTED_CALENDARS_KEY)) == ["home", "work"]

    def test_later_runs_keep_stored_selection(self, store, settings):
        settings.set_available(CALENDARS, LISTS)
        settings.toggle_calendar("work")

        reloaded = SettingsModel(store)
        reloaded.set_available(CALENDARS + [CalendarInfo("new", "New")], LISTS)
        assert reloaded.snapshot().calendar_ids == frozenset({"home"})

    def test_emptied_selection_survives_reload(self, store, settings):
        settings.set_available(CALENDARS, LISTS)
        settings.toggle_calendar("work")
        settings.toggle_calendar("home")

        reloaded = SettingsModel(store)
        assert reloaded.snapshot().calendar_ids == frozenset()


class TestToggles:
    def test_toggle_publishes_snapshot(self, settings):
        settings.set_available(CALENDARS, LISTS)
        received = []
        settings.subscribe(received.append)

        settings.toggle_calendar("home")

        assert len(received) == 1
        assert received[0].calendar_ids == frozenset({"work"})

    def test_toggle_back_on(self, settings):
        settings.set_available(CALENDARS, LISTS)
        settings.toggle_reminder_list("inbox")
        settings.toggle_reminder_list("inbox")
        assert settings.is_reminder_list_selected("inbox")

    def test_toggle_from_all_deselects_only_that_id(self, store):
        store.set_bool(INITIALIZED_DEFAULTS_KEY, True)
        settings = SettingsModel(store)
        settings.available_calendars = list(CALENDARS)

        settings.toggle_calendar("work")

        assert settings.snapshot().calendar_ids == frozenset({"home"})

    def test_toggle_show_completed_persists(self, store, settings):
        settings.toggle_show_completed()
        assert settings.snapshot().show_completed is True
        assert store.get_bool(SHOW_COMPLETED_KEY) is True

    def test_unsubscribe(self, settings):
        received = []
        unsubscribe = settings.subscribe(received.append)
        unsubscribe()
        settings.toggle_show_completed()
        assert received == []

    def test_selection_count(self, settings):
        settings.set_available(CALENDARS, LISTS)
        assert settings.selection_count("event") == (2, 2)
        settings.toggle_calendar("work")
        assert settings.selection_count("event") == (1, 2)
        assert settings.selection_count("reminder") == (1, 1)


class TestJsonPreferenceStore:
    def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "data" / "preferences.json"
        store = JsonPreferenceStore(path)
        store.set_string_list("ids", ["a", "b"])
        store.set_bool("flag", True)

        reopened = JsonPreferenceStore(path)
        assert reopened.get_string_list("ids") == ["a", "b"]
        assert reopened.get_bool("flag") is True
        assert not path.with_suffix(".tmp").exists()

    def test_missing_values(self, tmp_path):
        store = JsonPreferenceStore(tmp_path / "preferences.json")
        assert store.get_string_list("ids") is None
        assert store.get_bool("flag") is False

    def test_corrupt_file_starts_empty(self, tmp_path):
        path = tmp_path / "preferences.json"
        path.write_text("{not json")
        store = JsonPreferenceStore(path)
        assert store.get_string_list("ids") is None

    def test_settings_persist_to_file(self, tmp_path):
        path = tmp_path / "preferences.json"
        SettingsModel(JsonPreferenceStore(path)).set_available(CALENDARS, LISTS)

        reloaded = SettingsModel(JsonPreferenceStore(path))
        assert reloaded.snapshot().calendar_ids == frozenset({"work", "home"})


class TestMemoryPreferenceStore:
    def test_values_are_copied(self):
        ids = ["a"]
        store = MemoryPreferenceStore()
        store.set_string_list("ids", ids)
        ids.append("b")
        assert store.get_string_list("ids") == ["a"]
