"""Weather service interface."""

from typing import Protocol

from weekview.core.weather import Location, WeatherReport


class WeatherService(Protocol):
    """Interface for current weather conditions."""

    async def current(self, location: Location) -> WeatherReport:
        """Current conditions at a location. Raises WeatherError on failure."""
        ...
