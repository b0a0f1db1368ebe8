"""Google Calendar API adapter."""

import logging
from datetime import date, datetime, time, timedelta, tzinfo
from pathlib import Path

from weekview.core.agenda import CalendarEvent
from weekview.core.errors import AgendaSourceError
from weekview.core.filters import CalendarInfo

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]
DEFAULT_COLOR = "#4285F4"


class GoogleCalendarSource:
    """
    Fetches events from Google Calendar via the API.

    Implements the EventSource protocol for one Google account.
    """

    name = "google_calendar"

    def __init__(
        self,
        config_folder: str,
        tz: tzinfo,
        label: str | None = None,
        calendars: list[str] | None = None,
        client_secret_file: str = "",
    ):
        self.config_folder = config_folder
        self.tz = tz
        self.label = label or Path(config_folder).name
        self.calendars = calendars
        self.client_secret_file = client_secret_file
        self._token_path = Path(config_folder).expanduser() / "token.json"
        self._calendar_entries: list[dict] | None = None

    def _get_credentials(self):
        """Load credentials from token.json, refreshing if needed."""
        from google.auth.exceptions import RefreshError
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials

        if not self._token_path.exists():
            logger.warning(f"No token.json for {self.label} - run 'weekview cal-auth'")
            return None

        creds = Credentials.from_authorized_user_file(str(self._token_path), SCOPES)

        if creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
                self._token_path.write_text(creds.to_json())
                self._token_path.chmod(0o600)
            except RefreshError as e:
                logger.warning(f"Failed to refresh token for {self.label}: {e}")
                return None

        return creds

    def _build_service(self):
        """Build a Google Calendar API service."""
        from googleapiclient.discovery import build

        creds = self._get_credentials()
        if not creds:
            return None
        return build("calendar", "v3", credentials=creds, cache_discovery=False)

    def is_available(self) -> bool:
        return self._token_path.exists()

    def authenticate(self) -> bool:
        """Run OAuth flow for this account. Returns True on success."""
        from google_auth_oauthlib.flow import InstalledAppFlow

        if not self.client_secret_file:
            logger.error("No client secret file configured")
            return False

        secret_path = Path(self.client_secret_file).expanduser()
        if not secret_path.exists():
            logger.error(f"Client secret file not found: {secret_path}")
            return False

        flow = InstalledAppFlow.from_client_secrets_file(str(secret_path), SCOPES)
        creds = flow.run_local_server(port=0)

        token_dir = self._token_path.parent
        token_dir.mkdir(parents=True, exist_ok=True)
        self._token_path.write_text(creds.to_json())
        self._token_path.chmod(0o600)
        return True

    def _calendar_list(self, service) -> list[dict]:
        """Calendar list entries, narrowed to the configured display names."""
        if self._calendar_entries is None:
            result = service.calendarList().list().execute()
            entries = result.get("items", [])
            if self.calendars:
                names = {e.get("summary") for e in entries}
                for name in self.calendars:
                    if name not in names:
                        logger.warning(f"Calendar '{name}' not found for {self.label}")
                entries = [e for e in entries if e.get("summary") in self.calendars]
            self._calendar_entries = entries
        return self._calendar_entries

    def list_calendars(self) -> list[CalendarInfo]:
        service = self._build_service()
        if not service:
            return []
        try:
            entries = self._calendar_list(service)
        except Exception as e:
            raise AgendaSourceError(f"Google Calendar API error for {self.label}: {e}") from e
        return [
            CalendarInfo(
                id=entry["id"],
                title=entry.get("summaryOverride") or entry.get("summary", entry["id"]),
                color=entry.get("backgroundColor") or DEFAULT_COLOR,
                source_title=self.label,
                kind="event",
            )
            for entry in entries
        ]

    def fetch_events(self, target_date: date) -> list[CalendarEvent]:
        """Fetch events for a specific date."""
        try:
            return self._fetch_day_api(target_date)
        except AgendaSourceError:
            raise
        except Exception as e:
            raise AgendaSourceError(f"Google Calendar API error for {self.label}: {e}") from e

    def _fetch_day_api(self, target_date: date) -> list[CalendarEvent]:
        service = self._build_service()
        if not service:
            return []

        time_min = datetime.combine(target_date, time.min, tzinfo=self.tz).isoformat()
        time_max = datetime.combine(target_date + timedelta(days=1), time.min, tzinfo=self.tz).isoformat()

        events = []
        for entry in self._calendar_list(service):
            result = (
                service.events()
                .list(
                    calendarId=entry["id"],
                    timeMin=time_min,
                    timeMax=time_max,
                    singleEvents=True,
                    orderBy="startTime",
                )
                .execute()
            )

            for item in result.get("items", []):
                if _declined(item):
                    continue
                event = self._parse_event(item, entry)
                if event:
                    events.append(event)

        return events

    def _parse_event(self, item: dict, entry: dict) -> CalendarEvent | None:
        start_raw = item.get("start", {})
        end_raw = item.get("end", {})

        if "date" in start_raw:
            # All-day event: attach timezone so sorting with timed events works
            start_dt = datetime.combine(date.fromisoformat(start_raw["date"]), time.min, tzinfo=self.tz)
            end_dt = (
                datetime.combine(date.fromisoformat(end_raw["date"]), time.min, tzinfo=self.tz)
                if "date" in end_raw
                else start_dt + timedelta(days=1)
            )
            all_day = True
        elif "dateTime" in start_raw:
            start_dt = datetime.fromisoformat(start_raw["dateTime"]).astimezone(self.tz)
            end_dt = (
                datetime.fromisoformat(end_raw["dateTime"]).astimezone(self.tz)
                if "dateTime" in end_raw
                else start_dt
            )
            all_day = False
        else:
            return None

        return CalendarEvent(
            id=item.get("id") or f"{entry['id']}:{start_dt.isoformat()}",
            title=item.get("summary", "Untitled Event"),
            start=start_dt,
            end=end_dt,
            all_day=all_day,
            calendar_id=entry["id"],
            calendar_color=entry.get("backgroundColor") or DEFAULT_COLOR,
            calendar_name=entry.get("summaryOverride") or entry.get("summary", self.label),
            location=item.get("location", ""),
            url=item.get("hangoutLink", ""),
            source=self.name,
        )


def _declined(item: dict) -> bool:
    """True when the account owner declined the event."""
    for attendee in item.get("attendees", []):
        if attendee.get("self") and attendee.get("responseStatus") == "declined":
            return True
    return False
