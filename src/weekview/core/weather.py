"""Weather banner state - single-shot location fix followed by a weather fetch."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import WeatherError

if TYPE_CHECKING:
    from weekview.ports import LocationProvider, WeatherService

logger = logging.getLogger(__name__)

LOCATION_UNAVAILABLE = "Location unavailable"
WEATHER_UNAVAILABLE = "Unable to load weather"


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    label: str = ""


@dataclass(frozen=True)
class WeatherReport:
    """Current conditions at a location."""

    temperature: float
    condition: str
    symbol: str

    @property
    def temperature_label(self) -> str:
        return f"{round(self.temperature)}°C"


class WeatherLoader:
    """
    Loads the weather banner once.

    Takes only the first location update, closes the location stream, then
    fetches current conditions. Failures end up in ``error_message`` and never
    propagate: the agenda renders without weather.
    """

    def __init__(self, locations: "LocationProvider", weather: "WeatherService"):
        self._locations = locations
        self._weather = weather
        self.location: Location | None = None
        self.report: WeatherReport | None = None
        self.error_message: str | None = None
        self.is_loading = False

    async def _first_location(self) -> Location:
        updates = self._locations.updates()
        try:
            async for location in updates:
                return location
        finally:
            await updates.aclose()
        raise WeatherError("Location stream ended without a fix")

    async def load(self) -> WeatherReport | None:
        if self.location is not None:
            return self.report

        self.is_loading = True
        self.error_message = None
        try:
            try:
                self.location = await self._first_location()
            except WeatherError as e:
                logger.warning(f"Location error: {e}")
                self.error_message = LOCATION_UNAVAILABLE
                return None

            try:
                self.report = await self._weather.current(self.location)
            except WeatherError as e:
                logger.warning(f"Error loading weather: {e}")
                self.error_message = WEATHER_UNAVAILABLE
        finally:
            self.is_loading = False
        return self.report

    def status_line(self) -> str:
        """One-line banner text."""
        if self.report:
            return f"{self.report.temperature_label} {self.report.condition.capitalize()}"
        if self.is_loading:
            return "Loading weather..."
        return self.error_message or ""
