"""icalPal adapter - subprocess wrapper for macOS Calendar and Reminders."""

import json
import logging
import shutil
import subprocess
from datetime import date, datetime, time, timedelta, tzinfo

from weekview.core.agenda import CalendarEvent, ReminderItem
from weekview.core.errors import AgendaSourceError, AgendaWriteError
from weekview.core.filters import CalendarInfo

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#8E8E93"


class IcalPalSource:
    """
    icalPal subprocess adapter.

    Reads events and reminders from the macOS Calendar and Reminders stores
    via the icalPal CLI tool. Implements both the EventSource and
    ReminderSource protocols. icalPal cannot write, so reminders are
    read-only here.
    """

    name = "icalpal"

    def __init__(
        self,
        tz: tzinfo,
        include_calendars: list[str] | None = None,
        exclude_calendars: list[str] | None = None,
        timeout: int = 30,
    ):
        self.tz = tz
        self.include_calendars = include_calendars
        self.exclude_calendars = exclude_calendars
        self.timeout = timeout

    def is_available(self) -> bool:
        return shutil.which("icalPal") is not None

    def _run(self, *args: str) -> list[dict]:
        """Run an icalPal command and return its JSON output."""
        cmd = ["icalPal", *args, "-o", "json"]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            logger.warning("icalPal not found - install with 'brew install icalpal'")
            return []
        except subprocess.CalledProcessError as e:
            raise AgendaSourceError(f"icalPal command failed: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise AgendaSourceError(f"icalPal timed out after {self.timeout}s") from e

        if not result.stdout.strip():
            return []
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise AgendaSourceError(f"Failed to parse icalPal output: {e}") from e

    def _allowed(self, calendar_name: str) -> bool:
        if self.include_calendars and calendar_name not in self.include_calendars:
            return False
        if self.exclude_calendars and calendar_name in self.exclude_calendars:
            return False
        return True

    def _parse_time(self, text: str | None, seconds: float | None) -> datetime | None:
        # sctime/ectime strings have correct dates for recurring events
        # Format: "2026-01-27 14:00:00 -0500"
        if text:
            try:
                return datetime.strptime(text[:25], "%Y-%m-%d %H:%M:%S %z").astimezone(self.tz)
            except ValueError:
                return datetime.strptime(text[:19], "%Y-%m-%d %H:%M:%S").replace(tzinfo=self.tz)
        if seconds:
            return datetime.fromtimestamp(seconds, self.tz)
        return None

    # Calendars

    def list_calendars(self) -> list[CalendarInfo]:
        result = []
        for item in self._run("calendars"):
            title = item.get("calendar") or ""
            if not title or not self._allowed(title):
                continue
            result.append(
                CalendarInfo(
                    id=item.get("calendar_id") or item.get("UUID") or title,
                    title=title,
                    color=item.get("color") or DEFAULT_COLOR,
                    source_title=item.get("account") or "iCloud",
                    kind="event",
                )
            )
        return result

    def list_reminder_lists(self) -> list[CalendarInfo]:
        lists: dict[str, CalendarInfo] = {}
        for item in self._run("tasks"):
            title = item.get("list_name") or ""
            if not title or not self._allowed(title):
                continue
            list_id = item.get("list_id") or title
            lists.setdefault(
                list_id,
                CalendarInfo(
                    id=list_id,
                    title=title,
                    color=item.get("color") or DEFAULT_COLOR,
                    source_title=item.get("account") or "iCloud",
                    kind="reminder",
                ),
            )
        return list(lists.values())

    # Events

    def fetch_events(self, target_date: date) -> list[CalendarEvent]:
        next_day = target_date + timedelta(days=1)
        data = self._run("events", "--from", target_date.isoformat(), "--to", next_day.isoformat())

        day_start = datetime.combine(target_date, time.min, tzinfo=self.tz)
        day_end = datetime.combine(next_day, time.min, tzinfo=self.tz)

        events = []
        for item in data:
            if not self._allowed(item.get("calendar", "")):
                continue
            try:
                event = self._parse_event(item)
            except (ValueError, KeyError, TypeError) as e:
                logger.debug(f"Skipping malformed event: {e}")
                continue
            if event is None:
                continue
            # Keep events overlapping the day; zero-length events count at their start
            if event.start < day_end and (event.end > day_start or event.start == day_start):
                events.append(event)
        return events

    def _parse_event(self, item: dict) -> CalendarEvent | None:
        start = self._parse_time(item.get("sctime"), item.get("sseconds"))
        if start is None:
            return None
        end = self._parse_time(item.get("ectime"), item.get("eseconds")) or start

        cal_name = item.get("calendar", "")
        return CalendarEvent(
            id=item.get("UUID") or item.get("event_id") or f"{cal_name}:{start.isoformat()}:{item.get('title')}",
            title=item.get("title") or "Untitled Event",
            start=start,
            end=end,
            all_day=item.get("all_day") == 1,
            calendar_id=item.get("calendar_id") or cal_name,
            calendar_color=item.get("color") or DEFAULT_COLOR,
            calendar_name=cal_name,
            location=item.get("location") or item.get("address") or "",
            url=item.get("url") or "",
            source=self.name,
        )

    # Reminders

    def fetch_reminders(self, target_date: date, include_completed: bool) -> list[ReminderItem]:
        reminders = []
        for item in self._run("tasks"):
            try:
                reminder = self._parse_reminder(item)
            except (ValueError, KeyError, TypeError) as e:
                logger.debug(f"Skipping malformed reminder: {e}")
                continue
            if reminder is None or reminder.due is None or not self._allowed(reminder.list_name):
                continue
            if reminder.due.date() != target_date:
                continue
            if reminder.completed and not include_completed:
                continue
            reminders.append(reminder)
        return reminders

    def _parse_reminder(self, item: dict) -> ReminderItem | None:
        title = item.get("title")
        if not title:
            return None

        due = None
        all_day = False
        due_text = item.get("due_date") or item.get("due") or ""
        if due_text:
            if len(due_text) <= 10:
                due = datetime.combine(date.fromisoformat(due_text), time.min, tzinfo=self.tz)
                all_day = True
            else:
                due = self._parse_time(due_text, None)

        list_name = item.get("list_name") or ""
        return ReminderItem(
            id=item.get("reminder_id") or item.get("UUID") or f"{list_name}:{title}",
            title=title,
            due=due,
            completed=bool(item.get("completed")),
            list_id=item.get("list_id") or list_name,
            list_color=item.get("color") or DEFAULT_COLOR,
            list_name=list_name,
            all_day=all_day,
            source=self.name,
        )

    def set_completed(self, reminder_id: str, completed: bool) -> ReminderItem:
        raise AgendaWriteError("icalPal is read-only; reminders cannot be updated")
