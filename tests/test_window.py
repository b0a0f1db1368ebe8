"""Tests for the infinite day window."""

import asyncio
from datetime import date, timedelta

import pytest

from weekview.core.agenda import AccessStatus
from weekview.core.filters import CalendarInfo
from weekview.core.window import InfiniteDayWindow


@pytest.fixture
def make_window(source, settings, tz):
    """Factory for windows over the fake source; closes them afterwards."""
    windows = []

    def _make(**kwargs) -> InfiniteDayWindow:
        kwargs.setdefault("cooldown", 0.0)
        window = InfiniteDayWindow(source, settings, tz, **kwargs)
        windows.append(window)
        return window

    yield _make
    for window in windows:
        window.close()


async def _loaded(window: InfiniteDayWindow, selected: date) -> InfiniteDayWindow:
    window.initialize(selected)
    await window.initial_load.wait()
    await window.wait_idle()
    return window


class TestInitialize:
    def test_starts_empty(self, make_window):
        window = make_window()
        assert window.state == "empty"
        assert window.dates == ()

    @pytest.mark.asyncio
    async def test_four_weeks_around_selection(self, make_window, source, today):
        window = await _loaded(make_window(), today)

        assert window.state == "loaded"
        assert len(window.dates) == 28
        assert window.dates[0] == date(2025, 1, 6)
        assert window.dates[-1] == date(2025, 2, 2)
        assert today in window.dates
        assert sorted(source.fetches) == list(window.dates)

    @pytest.mark.asyncio
    async def test_snapshot_after_initial_load(self, make_window, today, source, make_event):
        source.events = [make_event("1")]
        window = await _loaded(make_window(), today)

        snapshot = window.snapshot()

        assert snapshot.initial_load_complete
        assert snapshot.selected == today
        assert snapshot.scroll_target == today
        assert [e.id for e in snapshot.section(today).timed_items] == ["1"]
        assert len(snapshot.sections()) == 28

    @pytest.mark.asyncio
    async def test_listeners_receive_snapshots(self, make_window, today):
        window = make_window()
        received = []
        window.subscribe(received.append)

        await _loaded(window, today)

        assert received
        assert received[-1].initial_load_complete

    @pytest.mark.asyncio
    async def test_failing_day_stays_unpopulated(self, make_window, source, today):
        source.failing_days = {today}
        window = await _loaded(make_window(), today)

        snapshot = window.snapshot()
        assert today not in snapshot.days
        assert snapshot.section(today).is_empty
        assert len(snapshot.days) == 27


class TestExtension:
    @pytest.mark.asyncio
    async def test_near_end_adds_next_week(self, make_window, today):
        window = await _loaded(make_window(), today)

        added = window.on_visible(date(2025, 2, 1))

        assert added == [date(2025, 2, 3) + timedelta(days=i) for i in range(7)]
        assert window.dates[-1] == date(2025, 2, 9)

    @pytest.mark.asyncio
    async def test_near_start_adds_previous_week(self, make_window, today):
        window = await _loaded(make_window(), today)

        added = window.on_visible(date(2025, 1, 7))

        assert added[0] == date(2024, 12, 30)
        assert window.dates[0] == date(2024, 12, 30)

    @pytest.mark.asyncio
    async def test_middle_day_does_nothing(self, make_window, today):
        window = await _loaded(make_window(), today)
        assert window.on_visible(today) == []
        assert len(window.dates) == 28

    @pytest.mark.asyncio
    async def test_cooldown_ignores_repeated_calls(self, make_window, today):
        window = await _loaded(make_window(cooldown=10.0), today)

        window.on_visible(date(2025, 2, 1))
        assert window.on_visible(date(2025, 2, 8)) == []
        assert len(window.dates) == 35

    @pytest.mark.asyncio
    async def test_extension_is_idempotent(self, make_window, today):
        window = await _loaded(make_window(), today)

        window.on_visible(date(2025, 2, 1))
        await asyncio.sleep(0.01)
        window.select_date(date(2025, 2, 5))
        window.select_date(date(2025, 1, 10))

        assert len(window.dates) == 35
        assert len(set(window.dates)) == len(window.dates)
        assert list(window.dates) == sorted(window.dates)

    @pytest.mark.asyncio
    async def test_extended_days_are_loaded(self, make_window, source, today):
        window = await _loaded(make_window(), today)
        window.on_visible(date(2025, 2, 1))
        await window.wait_idle()
        assert date(2025, 2, 9) in window.snapshot().days


class TestSelectDate:
    @pytest.mark.asyncio
    async def test_far_jump_loads_one_week_and_keeps_window(self, make_window, source, today):
        window = await _loaded(make_window(), today)
        before = set(window.dates)
        fetched_before = len(source.fetches)

        target = today + timedelta(days=30)
        window.select_date(target)
        await window.wait_idle()

        added = set(window.dates) - before
        assert added == {date(2025, 2, 10) + timedelta(days=i) for i in range(7)}
        assert before <= set(window.dates)
        assert date(2025, 2, 5) not in window.dates
        assert len(source.fetches) == fetched_before + 7
        assert window.selected == target
        assert window.scroll_target == target

    @pytest.mark.asyncio
    async def test_discard_on_jump_rebuilds(self, make_window, today):
        window = await _loaded(make_window(discard_on_jump=True), today)

        window.select_date(date(2025, 6, 18))
        await window.initial_load.wait()

        assert len(window.dates) == 28
        assert window.dates[0] == date(2025, 6, 9)
        assert today not in window.dates

    @pytest.mark.asyncio
    async def test_discard_jump_waits_for_its_own_batch(self, make_window, source, today):
        first_batch = asyncio.Event()
        source.gate = first_batch
        window = make_window(discard_on_jump=True)
        window.initialize(today)
        while len(source.fetches) < 28:
            await asyncio.sleep(0)

        second_batch = asyncio.Event()
        source.gate = second_batch
        window.select_date(date(2025, 6, 18))
        while len(source.fetches) < 56:
            await asyncio.sleep(0)

        first_batch.set()
        await asyncio.sleep(0.05)
        assert not window.initial_load.is_set()

        second_batch.set()
        await window.initial_load.wait()
        assert all(d in window.cache for d in window.dates)

    @pytest.mark.asyncio
    async def test_select_on_empty_window_initializes(self, make_window, today):
        window = make_window()
        window.select_date(today)
        await window.initial_load.wait()
        assert len(window.dates) == 28

    @pytest.mark.asyncio
    async def test_select_inside_window_only_scrolls(self, make_window, source, today):
        window = await _loaded(make_window(), today)
        fetched = len(source.fetches)

        window.select_date(date(2025, 1, 20))

        assert window.scroll_target == date(2025, 1, 20)
        assert len(source.fetches) == fetched


class TestScroll:
    @pytest.mark.asyncio
    async def test_scroll_publishes_selection_without_bounce(self, make_window, today):
        window = await _loaded(make_window(), today)
        selections = []
        window.subscribe_selection(selections.append)

        window.on_scroll(date(2025, 1, 17))
        # The week strip echoes the selection back
        window.select_date(date(2025, 1, 17))

        assert selections == [date(2025, 1, 17)]
        assert window.selected == date(2025, 1, 17)
        assert window.scroll_target is None

    @pytest.mark.asyncio
    async def test_selection_after_echo_scrolls_again(self, make_window, today):
        window = await _loaded(make_window(), today)
        window.on_scroll(date(2025, 1, 17))
        window.select_date(date(2025, 1, 17))

        window.select_date(date(2025, 1, 22))

        assert window.scroll_target == date(2025, 1, 22)

    @pytest.mark.asyncio
    async def test_scroll_to_same_day_is_silent(self, make_window, today):
        window = await _loaded(make_window(), today)
        selections = []
        window.subscribe_selection(selections.append)

        window.on_scroll(today)

        assert selections == []


class TestRefresh:
    @pytest.mark.asyncio
    async def test_filter_change_repopulates_every_day(self, make_window, source, settings, today, make_event):
        source.events = [make_event("w", calendar_id="work"), make_event("h", calendar_id="home")]
        settings.set_available([CalendarInfo("work", "Work"), CalendarInfo("home", "Home")], [])
        window = await _loaded(make_window(), today)
        fetched = len(source.fetches)

        settings.toggle_calendar("work")
        await window.wait_idle()

        assert len(source.fetches) == fetched + 28
        assert [e.id for e in window.snapshot().days[today].events] == ["h"]

    @pytest.mark.asyncio
    async def test_filter_change_during_initial_load(self, make_window, source, settings, today, make_event):
        source.events = [make_event("w", calendar_id="work"), make_event("h", calendar_id="home")]
        settings.set_available([CalendarInfo("work", "Work"), CalendarInfo("home", "Home")], [])
        source.gate = asyncio.Event()
        window = make_window()
        window.initialize(today)
        while len(source.fetches) < 28:
            await asyncio.sleep(0)

        settings.toggle_calendar("home")
        source.gate.set()
        await window.initial_load.wait()
        await window.wait_idle()

        assert len(window.cache) == 28
        assert [e.id for e in window.cache.get(today).events] == ["w"]
        assert [e.id for e in window.snapshot().days[today].events] == ["w"]

    @pytest.mark.asyncio
    async def test_emptied_filter_shows_no_events(self, make_window, source, settings, today, make_event):
        source.events = [make_event("w", calendar_id="work")]
        settings.set_available([CalendarInfo("work", "Work")], [])
        window = await _loaded(make_window(), today)

        settings.toggle_calendar("work")
        await window.wait_idle()

        assert window.snapshot().days[today].events == ()

    @pytest.mark.asyncio
    async def test_foreground_refetches(self, make_window, source, today):
        window = await _loaded(make_window(), today)
        fetched = len(source.fetches)

        window.on_foreground()
        await window.wait_idle()

        assert len(source.fetches) == fetched + 28

    @pytest.mark.asyncio
    async def test_access_granted_reloads(self, make_window, source, today):
        source.access = AccessStatus(calendar_granted=False, reminders_granted=False)
        window = await _loaded(make_window(), today)
        fetched = len(source.fetches)

        await window.check_access()
        await window.wait_idle()
        assert len(source.fetches) == fetched

        source.access = AccessStatus(calendar_granted=True, reminders_granted=False)
        status = await window.check_access()
        await window.wait_idle()

        assert status.calendar_granted
        assert len(source.fetches) == fetched + 28


class TestToggleReminder:
    @pytest.mark.asyncio
    async def test_toggle_refreshes_only_its_day(self, make_window, source, today, make_reminder):
        reminder = make_reminder("r", hour=9)
        source.reminders = [reminder]
        window = await _loaded(make_window(), today)
        fetched = len(source.fetches)

        updated = await window.toggle_reminder(reminder)

        assert updated.completed is True
        assert source.fetches[fetched:] == [today]
        # Completed reminders are hidden by default
        assert window.snapshot().days[today].reminders == ()

    @pytest.mark.asyncio
    async def test_write_failure_leaves_state(self, make_window, source, today, make_reminder):
        reminder = make_reminder("r", hour=9)
        source.reminders = [reminder]
        source.read_only = True
        window = await _loaded(make_window(), today)
        fetched = len(source.fetches)

        assert await window.toggle_reminder(reminder) is None
        assert len(source.fetches) == fetched
        assert [r.id for r in window.snapshot().days[today].reminders] == ["r"]
