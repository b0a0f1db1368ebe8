"""Adapters - I/O implementations of ports."""

from .icalpal import IcalPalSource
from .google_calendar import GoogleCalendarSource
from .ticktick_api import TickTickReminderSource
from .composite import CompositeAgendaSource
from .json_preferences import JsonPreferenceStore, MemoryPreferenceStore
from .open_meteo import OpenMeteoWeather
from .location import IpLocationProvider, StaticLocationProvider
from .deep_link import open_deep_link

__all__ = [
    "IcalPalSource",
    "GoogleCalendarSource",
    "TickTickReminderSource",
    "CompositeAgendaSource",
    "JsonPreferenceStore",
    "MemoryPreferenceStore",
    "OpenMeteoWeather",
    "IpLocationProvider",
    "StaticLocationProvider",
    "open_deep_link",
]
