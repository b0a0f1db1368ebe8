"""Configuration management for weekview."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .core.errors import ConfigError

logger = logging.getLogger(__name__)

WEEKVIEW_HOME = Path(os.environ.get("WEEKVIEW_HOME", Path.home() / "weekview"))
CONFIG_FILE = WEEKVIEW_HOME / "config" / "weekview.conf"
TOKEN_FILE = WEEKVIEW_HOME / "config" / ".tokens.json"
DATA_DIR = WEEKVIEW_HOME / "data"
PREFERENCES_FILE = DATA_DIR / "preferences.json"

EVENT_SOURCES = ("icalpal", "google")
REMINDER_SOURCES = ("icalpal", "ticktick", "none")


@dataclass
class GoogleAccount:
    """A Google Calendar account configuration."""

    config_folder: str
    label: str | None = None
    calendars: list[str] = field(default_factory=list)


@dataclass
class Config:
    """weekview configuration."""

    timezone: str = ""
    event_sources: list[str] = field(default_factory=lambda: ["icalpal"])
    reminder_source: str = "icalpal"
    icalpal_include_calendars: list[str] = field(default_factory=list)
    icalpal_exclude_calendars: list[str] = field(default_factory=list)
    google_accounts: list[GoogleAccount] = field(default_factory=list)
    google_client_secret_file: str = ""
    ticktick_client_id: str = ""
    ticktick_client_secret: str = ""
    latitude: float | None = None
    longitude: float | None = None
    location_label: str = ""
    refresh_interval_minutes: int = 15
    discard_on_jump: bool = False

    def validate(self) -> None:
        """Raise ConfigError for values the app cannot work with."""
        if self.timezone:
            try:
                ZoneInfo(self.timezone)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ConfigError(f"Unknown timezone: {self.timezone!r}") from e
        for name in self.event_sources:
            if name not in EVENT_SOURCES:
                raise ConfigError(f"Unknown event source: {name!r}")
        if self.reminder_source not in REMINDER_SOURCES:
            raise ConfigError(f"Unknown reminder source: {self.reminder_source!r}")
        if (self.latitude is None) != (self.longitude is None):
            raise ConfigError("LATITUDE and LONGITUDE must be set together")
        if self.latitude is not None and not -90 <= self.latitude <= 90:
            raise ConfigError(f"Latitude out of range: {self.latitude}")
        if self.longitude is not None and not -180 <= self.longitude <= 180:
            raise ConfigError(f"Longitude out of range: {self.longitude}")
        if self.refresh_interval_minutes < 1:
            raise ConfigError("REFRESH_INTERVAL_MINUTES must be at least 1")


@dataclass
class Tokens:
    """OAuth tokens for TickTick."""

    access_token: str = ""
    refresh_token: str = ""
    expires_at: int = 0

    def save(self) -> None:
        """Save tokens to file."""
        TOKEN_FILE.parent.mkdir(parents=True, exist_ok=True)
        TOKEN_FILE.write_text(
            json.dumps(
                {
                    "access_token": self.access_token,
                    "refresh_token": self.refresh_token,
                    "expires_at": self.expires_at,
                }
            )
        )
        TOKEN_FILE.chmod(0o600)

    @classmethod
    def load(cls) -> "Tokens":
        """Load tokens from file."""
        if not TOKEN_FILE.exists():
            return cls()
        try:
            data = json.loads(TOKEN_FILE.read_text())
            return cls(
                access_token=data.get("access_token", ""),
                refresh_token=data.get("refresh_token", ""),
                expires_at=data.get("expires_at", 0),
            )
        except (json.JSONDecodeError, KeyError):
            return cls()


def _split_list(value: str) -> list[str]:
    return [v.strip() for v in value.split(",") if v.strip()]


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_float(key: str, value: str) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{key.upper()} must be a number, got {value!r}")


def _parse_google_accounts(value: str) -> list[GoogleAccount]:
    # JSON format: [{"config_folder": "...", "label": "...", "calendars": [...]}]
    # Simple format: "path1:label1,path2:label2"
    accounts = []
    if value.startswith("["):
        try:
            data = json.loads(value)
            for item in data:
                accounts.append(
                    GoogleAccount(
                        config_folder=item["config_folder"],
                        label=item.get("label"),
                        calendars=item.get("calendars", []),
                    )
                )
        except (json.JSONDecodeError, KeyError) as e:
            logger.warning(f"Failed to parse GOOGLE_ACCOUNTS JSON: {e}")
        return accounts

    for entry in _split_list(value):
        if ":" in entry:
            folder, label = entry.split(":", 1)
            accounts.append(GoogleAccount(folder.strip(), label.strip()))
        else:
            accounts.append(GoogleAccount(entry))
    return accounts


def _unquote(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    for quote in ('"', "'"):
        if value.startswith(quote):
            end_quote = value.find(quote, 1)
            return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from weekview.conf."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "timezone":
                config.timezone = value
            case "event_sources":
                config.event_sources = [s.lower() for s in _split_list(value)]
            case "reminder_source":
                config.reminder_source = value.lower() or "none"
            case "icalpal_include_calendars":
                config.icalpal_include_calendars = _split_list(value)
            case "icalpal_exclude_calendars":
                config.icalpal_exclude_calendars = _split_list(value)
            case "google_accounts":
                config.google_accounts = _parse_google_accounts(value)
            case "google_client_secret_file":
                config.google_client_secret_file = value
            case "ticktick_client_id":
                config.ticktick_client_id = value
            case "ticktick_client_secret":
                config.ticktick_client_secret = value
            case "latitude":
                config.latitude = _parse_float(key, value)
            case "longitude":
                config.longitude = _parse_float(key, value)
            case "location_label":
                config.location_label = value
            case "refresh_interval_minutes":
                try:
                    config.refresh_interval_minutes = int(value)
                except ValueError:
                    raise ConfigError(f"REFRESH_INTERVAL_MINUTES must be an integer, got {value!r}")
            case "discard_on_jump":
                config.discard_on_jump = _parse_bool(value)
            case _:
                logger.debug(f"Ignoring unknown config key: {key}")

    config.validate()
    return config
