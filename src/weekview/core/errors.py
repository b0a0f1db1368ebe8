"""Domain exceptions shared by the core and the adapters."""


class WeekviewError(Exception):
    """Base class for weekview errors."""

    pass


class ConfigError(WeekviewError):
    """Raised when a configuration value cannot be used."""

    pass


class AuthenticationError(WeekviewError):
    """Raised when third-party credentials are missing or rejected."""

    pass


class AgendaSourceError(WeekviewError):
    """Raised when an agenda source fails to read a day."""

    pass


class AgendaWriteError(WeekviewError):
    """Raised when an agenda source fails to write a reminder."""

    pass


class WeatherError(WeekviewError):
    """Raised when a weather or location lookup fails."""

    pass
