"""Wiring - build adapters and models from configuration."""

import logging
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path

from .adapters.composite import CompositeAgendaSource
from .adapters.google_calendar import GoogleCalendarSource
from .adapters.icalpal import IcalPalSource
from .adapters.json_preferences import JsonPreferenceStore
from .adapters.location import IpLocationProvider, StaticLocationProvider
from .adapters.open_meteo import OpenMeteoWeather
from .adapters.ticktick_api import TickTickReminderSource
from .config import PREFERENCES_FILE, Config, load_config
from .core.dates import local_zone
from .core.settings import SettingsModel
from .core.weather import Location, WeatherLoader
from .core.window import InfiniteDayWindow
from .ports import EventSource, PreferenceStore, ReminderSource

logger = logging.getLogger(__name__)


def build_event_sources(config: Config, tz: tzinfo) -> list[EventSource]:
    """One event source per configured backend (and per Google account)."""
    sources: list[EventSource] = []
    for name in config.event_sources:
        match name:
            case "icalpal":
                sources.append(
                    IcalPalSource(
                        tz,
                        include_calendars=config.icalpal_include_calendars or None,
                        exclude_calendars=config.icalpal_exclude_calendars or None,
                    )
                )
            case "google":
                if not config.google_accounts:
                    logger.warning("EVENT_SOURCES includes google but no GOOGLE_ACCOUNTS are set")
                for account in config.google_accounts:
                    sources.append(
                        GoogleCalendarSource(
                            config_folder=account.config_folder,
                            tz=tz,
                            label=account.label,
                            calendars=account.calendars or None,
                            client_secret_file=config.google_client_secret_file,
                        )
                    )
    return sources


def build_reminder_source(config: Config, tz: tzinfo) -> ReminderSource | None:
    match config.reminder_source:
        case "icalpal":
            return IcalPalSource(
                tz,
                include_calendars=config.icalpal_include_calendars or None,
                exclude_calendars=config.icalpal_exclude_calendars or None,
            )
        case "ticktick":
            return TickTickReminderSource(tz, config=config)
        case _:
            return None


def build_agenda_source(config: Config, tz: tzinfo) -> CompositeAgendaSource:
    return CompositeAgendaSource(
        build_event_sources(config, tz),
        build_reminder_source(config, tz),
        tz,
    )


def build_weather(config: Config) -> WeatherLoader:
    """Fixed coordinates when configured, otherwise IP geolocation."""
    if config.latitude is not None and config.longitude is not None:
        locations = StaticLocationProvider(
            Location(config.latitude, config.longitude, config.location_label)
        )
    else:
        locations = IpLocationProvider()
    return WeatherLoader(locations, OpenMeteoWeather())


@dataclass
class App:
    """Everything one CLI invocation works with."""

    config: Config
    tz: tzinfo
    source: CompositeAgendaSource
    store: PreferenceStore
    settings: SettingsModel
    weather: WeatherLoader

    def create_window(self) -> InfiniteDayWindow:
        """Must be called with a running event loop."""
        return InfiniteDayWindow(
            self.source,
            self.settings,
            self.tz,
            discard_on_jump=self.config.discard_on_jump,
        )

    async def load_available(self) -> None:
        """Tell the settings model which calendars and lists exist."""
        calendars = await self.source.list_calendars()
        reminder_lists = await self.source.list_reminder_lists()
        self.settings.set_available(calendars, reminder_lists)


def create_app(config: Config | None = None, preferences: Path | None = None) -> App:
    config = config or load_config()
    tz = local_zone(config.timezone)
    store = JsonPreferenceStore(preferences or PREFERENCES_FILE)
    return App(
        config=config,
        tz=tz,
        source=build_agenda_source(config, tz),
        store=store,
        settings=SettingsModel(store),
        weather=build_weather(config),
    )
