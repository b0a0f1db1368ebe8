"""Functional core - agenda model, week arithmetic and the day window."""

from .agenda import (
    AccessStatus,
    AgendaDay,
    CalendarEvent,
    DaySection,
    ReminderItem,
    build_day_section,
    merge_timed_items,
    simplify_location,
)
from .cache import DayDataCache
from .dates import WeekStrip, day_key, start_of_week, week_of, week_offset
from .errors import (
    AgendaSourceError,
    AgendaWriteError,
    AuthenticationError,
    ConfigError,
    WeatherError,
    WeekviewError,
)
from .filters import ALL, CalendarInfo, FilterSettings, apply_filters, group_by_source
from .settings import SettingsModel
from .weather import Location, WeatherLoader, WeatherReport
from .window import InfiniteDayWindow, WindowSnapshot

__all__ = [
    # Agenda
    "AccessStatus",
    "AgendaDay",
    "CalendarEvent",
    "DaySection",
    "ReminderItem",
    "build_day_section",
    "merge_timed_items",
    "simplify_location",
    # Dates
    "WeekStrip",
    "day_key",
    "start_of_week",
    "week_of",
    "week_offset",
    # Errors
    "WeekviewError",
    "AgendaSourceError",
    "AgendaWriteError",
    "AuthenticationError",
    "ConfigError",
    "WeatherError",
    # Filters and settings
    "ALL",
    "CalendarInfo",
    "FilterSettings",
    "apply_filters",
    "group_by_source",
    "SettingsModel",
    # Weather
    "Location",
    "WeatherLoader",
    "WeatherReport",
    # Window
    "DayDataCache",
    "InfiniteDayWindow",
    "WindowSnapshot",
]
