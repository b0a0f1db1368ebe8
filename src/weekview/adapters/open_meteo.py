"""Open-Meteo adapter - current weather over HTTP."""

import asyncio
import logging

import requests

from weekview.core.errors import WeatherError
from weekview.core.weather import Location, WeatherReport

logger = logging.getLogger(__name__)

API_URL = "https://api.open-meteo.com/v1/forecast"

# WMO weather interpretation codes
WMO_CODES: dict[int, tuple[str, str]] = {
    0: ("clear sky", "sun"),
    1: ("mainly clear", "sun"),
    2: ("partly cloudy", "cloud-sun"),
    3: ("overcast", "cloud"),
    45: ("fog", "fog"),
    48: ("rime fog", "fog"),
    51: ("light drizzle", "drizzle"),
    53: ("drizzle", "drizzle"),
    55: ("dense drizzle", "drizzle"),
    56: ("freezing drizzle", "drizzle"),
    57: ("freezing drizzle", "drizzle"),
    61: ("light rain", "rain"),
    63: ("rain", "rain"),
    65: ("heavy rain", "rain"),
    66: ("freezing rain", "rain"),
    67: ("freezing rain", "rain"),
    71: ("light snow", "snow"),
    73: ("snow", "snow"),
    75: ("heavy snow", "snow"),
    77: ("snow grains", "snow"),
    80: ("rain showers", "rain"),
    81: ("rain showers", "rain"),
    82: ("violent rain showers", "rain"),
    85: ("snow showers", "snow"),
    86: ("heavy snow showers", "snow"),
    95: ("thunderstorm", "bolt"),
    96: ("thunderstorm with hail", "bolt"),
    99: ("thunderstorm with hail", "bolt"),
}


def describe(code: int) -> tuple[str, str]:
    """(condition, symbol) for a WMO code."""
    return WMO_CODES.get(code, ("unknown", "questionmark"))


class OpenMeteoWeather:
    """Implements WeatherService protocol via the Open-Meteo forecast API."""

    def __init__(self, session: requests.Session | None = None, timeout: int = 10):
        self._session = session or requests.Session()
        self.timeout = timeout

    def _fetch(self, location: Location) -> WeatherReport:
        try:
            resp = self._session.get(
                API_URL,
                params={
                    "latitude": location.latitude,
                    "longitude": location.longitude,
                    "current": "temperature_2m,weather_code",
                    "temperature_unit": "celsius",
                },
                timeout=self.timeout,
            )
            resp.raise_for_status()
            current = resp.json()["current"]
            condition, symbol = describe(int(current["weather_code"]))
            return WeatherReport(
                temperature=float(current["temperature_2m"]),
                condition=condition,
                symbol=symbol,
            )
        except requests.RequestException as e:
            raise WeatherError(f"Open-Meteo request failed: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise WeatherError(f"Unexpected Open-Meteo response: {e}") from e

    async def current(self, location: Location) -> WeatherReport:
        return await asyncio.to_thread(self._fetch, location)
