"""TickTick API adapter - HTTP client for reminders."""

import logging
import threading
import time
import webbrowser
from datetime import date, datetime, tzinfo

import requests

from weekview.config import Config, Tokens, load_config
from weekview.core.agenda import ReminderItem
from weekview.core.errors import AgendaSourceError, AgendaWriteError, AuthenticationError
from weekview.core.filters import CalendarInfo

logger = logging.getLogger(__name__)

API_BASE = "https://api.ticktick.com/open/v1"
OAUTH_AUTHORIZE_URL = "https://ticktick.com/oauth/authorize"
OAUTH_TOKEN_URL = "https://ticktick.com/oauth/token"
REDIRECT_URI = "http://localhost:8080/callback"

STATUS_OPEN = 0
STATUS_COMPLETED = 2
DEFAULT_COLOR = "#4772FA"


def parse_due(value: str, tz: tzinfo) -> datetime:
    """Parse TickTick's "2026-01-15T14:00:00.000+0000" timestamps."""
    return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%f%z").astimezone(tz)


class TickTickReminderSource:
    """
    TickTick API adapter.

    Implements the ReminderSource protocol: projects are reminder lists, tasks
    with a due date are reminders. Handles authentication, token refresh and
    API calls. Task data is reused for ``cache_seconds`` because every day of
    the window asks for the same project data.
    """

    name = "ticktick"

    def __init__(
        self,
        tz: tzinfo,
        config: Config | None = None,
        tokens: Tokens | None = None,
        cache_seconds: float = 30.0,
        timeout: int = 30,
    ):
        self.tz = tz
        self.config = config or load_config()
        self.tokens = tokens or Tokens.load()
        self.cache_seconds = cache_seconds
        self.timeout = timeout
        self._session = requests.Session()
        self._lock = threading.Lock()
        self._projects: list[dict] | None = None
        self._tasks: list[dict] = []
        self._fetched_at: float | None = None

    def is_available(self) -> bool:
        return bool(self.tokens.access_token)

    def _ensure_valid_token(self) -> None:
        """Refresh token if expired or expiring soon."""
        if not self.tokens.access_token:
            raise AuthenticationError("No access token. Run 'weekview auth' first.")

        # Refresh if expiring within 5 minutes
        if self.tokens.expires_at and time.time() >= self.tokens.expires_at - 300:
            self._refresh_token()

    def _refresh_token(self) -> None:
        """Refresh the access token."""
        if not self.tokens.refresh_token:
            raise AuthenticationError("No refresh token. Run 'weekview auth' first.")

        resp = self._session.post(
            OAUTH_TOKEN_URL,
            data={
                "client_id": self.config.ticktick_client_id,
                "client_secret": self.config.ticktick_client_secret,
                "refresh_token": self.tokens.refresh_token,
                "grant_type": "refresh_token",
            },
            timeout=self.timeout,
        )

        if resp.status_code != 200:
            raise AuthenticationError(f"Token refresh failed: {resp.text}")

        data = resp.json()
        self.tokens.access_token = data["access_token"]
        if "refresh_token" in data:
            self.tokens.refresh_token = data["refresh_token"]
        self.tokens.expires_at = int(time.time()) + data.get("expires_in", 3600)
        self.tokens.save()

    def _api_request(self, method: str, endpoint: str, json_body: dict | None = None) -> dict | list:
        """Make authenticated API request."""
        self._ensure_valid_token()
        resp = self._session.request(
            method,
            f"{API_BASE}{endpoint}",
            headers={"Authorization": f"Bearer {self.tokens.access_token}"},
            json=json_body,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        if not resp.content:
            return {}
        return resp.json()

    def _load(self, force: bool = False) -> None:
        """Fetch projects and their tasks unless a fresh copy is cached."""
        with self._lock:
            fresh = (
                self._fetched_at is not None
                and time.monotonic() - self._fetched_at < self.cache_seconds
            )
            if fresh and not force:
                return

            try:
                projects = self._api_request("GET", "/project")
                tasks = []
                for project in projects:
                    data = self._api_request("GET", f"/project/{project['id']}/data")
                    tasks.extend(data.get("tasks", []))
            except requests.RequestException as e:
                raise AgendaSourceError(f"TickTick request failed: {e}") from e

            self._projects = projects
            self._tasks = tasks
            self._fetched_at = time.monotonic()

    def _project(self, project_id: str) -> dict:
        for project in self._projects or []:
            if project["id"] == project_id:
                return project
        return {"id": project_id, "name": ""}

    def _to_reminder(self, data: dict) -> ReminderItem:
        project = self._project(data.get("projectId", ""))
        due = parse_due(data["dueDate"], self.tz) if data.get("dueDate") else None
        return ReminderItem(
            id=data["id"],
            title=data.get("title") or "Untitled Reminder",
            due=due,
            completed=data.get("status", STATUS_OPEN) == STATUS_COMPLETED,
            list_id=project["id"],
            list_color=project.get("color") or DEFAULT_COLOR,
            list_name=project.get("name", ""),
            all_day=bool(data.get("isAllDay")),
            source=self.name,
        )

    def list_reminder_lists(self) -> list[CalendarInfo]:
        self._load()
        return [
            CalendarInfo(
                id=p["id"],
                title=p["name"],
                color=p.get("color") or DEFAULT_COLOR,
                source_title="TickTick",
                kind="reminder",
            )
            for p in self._projects or []
        ]

    def fetch_reminders(self, target_date: date, include_completed: bool) -> list[ReminderItem]:
        self._load()
        reminders = []
        for data in self._tasks:
            if not data.get("dueDate"):
                continue
            try:
                reminder = self._to_reminder(data)
            except (ValueError, KeyError) as e:
                logger.debug(f"Skipping malformed TickTick task: {e}")
                continue
            if reminder.due.date() != target_date:
                continue
            if reminder.completed and not include_completed:
                continue
            reminders.append(reminder)
        return reminders

    def set_completed(self, reminder_id: str, completed: bool) -> ReminderItem:
        """Complete or reopen a task and return its new state."""
        with self._lock:
            data = next((t for t in self._tasks if t["id"] == reminder_id), None)
        if data is None:
            raise AgendaWriteError(f"Unknown TickTick task: {reminder_id}")

        project_id = data.get("projectId", "")
        try:
            if completed:
                self._api_request("POST", f"/project/{project_id}/task/{reminder_id}/complete")
            else:
                self._api_request(
                    "POST",
                    f"/task/{reminder_id}",
                    {"id": reminder_id, "projectId": project_id, "status": STATUS_OPEN},
                )
        except (requests.RequestException, AuthenticationError) as e:
            raise AgendaWriteError(f"Failed to update TickTick task {reminder_id}: {e}") from e

        updated = dict(data, status=STATUS_COMPLETED if completed else STATUS_OPEN)
        with self._lock:
            self._tasks = [updated if t["id"] == reminder_id else t for t in self._tasks]
        return self._to_reminder(updated)


def authorize(config: Config | None = None) -> Tokens:
    """Run OAuth authorization flow."""
    config = config or load_config()

    if not config.ticktick_client_id or not config.ticktick_client_secret:
        raise AuthenticationError(
            "Missing TickTick credentials. Add them to config/weekview.conf"
        )

    auth_url = (
        f"{OAUTH_AUTHORIZE_URL}"
        f"?client_id={config.ticktick_client_id}"
        f"&scope=tasks:read%20tasks:write"
        f"&redirect_uri={REDIRECT_URI}"
        f"&response_type=code"
    )

    print("Opening browser for TickTick authorization...")
    webbrowser.open(auth_url)

    print("\nAfter authorizing, you'll be redirected to a page that won't load.")
    print("Copy the 'code' parameter from the URL.\n")

    code = input("Paste the code here: ").strip()
    if not code:
        raise AuthenticationError("No code provided")

    print("Exchanging code for tokens...")
    resp = requests.post(
        OAUTH_TOKEN_URL,
        data={
            "client_id": config.ticktick_client_id,
            "client_secret": config.ticktick_client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": REDIRECT_URI,
        },
        timeout=30,
    )

    if resp.status_code != 200:
        raise AuthenticationError(f"Token exchange failed: {resp.text}")

    data = resp.json()
    tokens = Tokens(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token", ""),
        expires_at=int(time.time()) + data.get("expires_in", 3600),
    )
    tokens.save()

    print("Authentication successful!")
    return tokens
