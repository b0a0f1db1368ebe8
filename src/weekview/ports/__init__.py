"""Ports - interfaces/protocols for external dependencies."""

from .agenda_source import AgendaSource, EventSource, ReminderSource
from .preference_store import PreferenceStore
from .weather_service import WeatherService
from .location_provider import LocationProvider

__all__ = [
    "AgendaSource",
    "EventSource",
    "ReminderSource",
    "PreferenceStore",
    "WeatherService",
    "LocationProvider",
]
