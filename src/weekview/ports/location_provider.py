"""Location provider interface."""

from typing import AsyncGenerator, Protocol

from weekview.core.weather import Location


class LocationProvider(Protocol):
    """Interface for device location updates."""

    def updates(self) -> AsyncGenerator[Location, None]:
        """
        Stream of location fixes.

        Consumers may stop early by closing the iterator. Raises WeatherError
        when no fix can be obtained.
        """
        ...
