"""Location adapters - fixed coordinates or IP geolocation."""

import asyncio
import logging
from typing import AsyncGenerator

import requests

from weekview.core.errors import WeatherError
from weekview.core.weather import Location

logger = logging.getLogger(__name__)

IP_LOCATION_URL = "https://ipapi.co/json/"


class StaticLocationProvider:
    """Implements LocationProvider protocol with configured coordinates."""

    def __init__(self, location: Location):
        self.location = location

    async def updates(self) -> AsyncGenerator[Location, None]:
        yield self.location


class IpLocationProvider:
    """
    Implements LocationProvider protocol by polling an IP geolocation service.

    Keeps producing fixes every ``interval`` seconds until the consumer closes
    the stream.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        interval: float = 60.0,
        timeout: int = 10,
    ):
        self._session = session or requests.Session()
        self.interval = interval
        self.timeout = timeout

    def _lookup(self) -> Location:
        try:
            resp = self._session.get(IP_LOCATION_URL, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            return Location(
                latitude=float(data["latitude"]),
                longitude=float(data["longitude"]),
                label=data.get("city") or "",
            )
        except requests.RequestException as e:
            raise WeatherError(f"IP location lookup failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise WeatherError(f"Unexpected IP location response: {e}") from e

    async def updates(self) -> AsyncGenerator[Location, None]:
        while True:
            location = await asyncio.to_thread(self._lookup)
            logger.debug(f"Location fix: {location}")
            yield location
            await asyncio.sleep(self.interval)
