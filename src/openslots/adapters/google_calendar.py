"""Google Calendar API adapter (OAuth)."""

import logging
from datetime import date, datetime, time, timedelta
from pathlib import Path

from openslots.core.errors import InvalidArgumentError
from openslots.core.intervals import BusyInterval, resolve_timezone

from .errors import AuthenticationError, CalendarFetchError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]


def day_bounds(target_date: date, timezone: str) -> tuple[str, str]:
    """RFC 3339 timeMin/timeMax covering target_date in timezone (empty means the host zone)."""
    tz = resolve_timezone(timezone)
    start = datetime.combine(target_date, time(0, 0), tzinfo=tz)
    end = datetime.combine(target_date + timedelta(days=1), time(0, 0), tzinfo=tz)
    return start.isoformat(), end.isoformat()


def parse_event_item(item: dict, calendar_id: str, color: str = "") -> BusyInterval | None:
    """
    Turn one Calendar API event resource into a BusyInterval.

    Returns None for all-day, cancelled, or malformed events.
    """
    if item.get("status") == "cancelled":
        return None

    start_raw = item.get("start", {})
    end_raw = item.get("end", {})
    if "dateTime" not in start_raw or "dateTime" not in end_raw:
        # All-day events carry "date" instead of "dateTime"
        return None

    try:
        return BusyInterval(
            start=datetime.fromisoformat(start_raw["dateTime"]),
            end=datetime.fromisoformat(end_raw["dateTime"]),
            source_calendar_id=calendar_id,
            label=item.get("summary", "Untitled"),
            color=color,
        )
    except (ValueError, InvalidArgumentError) as e:
        logger.debug(f"Skipping malformed event {item.get('id', '?')}: {e}")
        return None


class GoogleCalendarAdapter:
    """
    Fetches busy time from Google Calendar via the API.

    Implements BusyIntervalSource protocol.
    """

    def __init__(
        self,
        config_folder: str,
        label: str | None = None,
        calendars: list[str] | None = None,
        client_secret_file: str = "",
        timezone: str = "America/Toronto",
    ):
        self.config_folder = config_folder
        self.label = label or Path(config_folder).name
        self.calendars = calendars
        self.client_secret_file = client_secret_file
        self.timezone = timezone
        self._token_path = Path(config_folder).expanduser() / "token.json"

    def _get_credentials(self):
        """Load credentials from token.json, refreshing if needed."""
        from google.auth.exceptions import RefreshError
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials

        if not self._token_path.exists():
            raise AuthenticationError(f"No token.json for {self.label} - run 'openslots cal-auth'")

        creds = Credentials.from_authorized_user_file(str(self._token_path), SCOPES)

        if creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
            except RefreshError as e:
                raise AuthenticationError(f"Failed to refresh token for {self.label}: {e}") from e
            self._token_path.write_text(creds.to_json())
            self._token_path.chmod(0o600)

        return creds

    def _build_service(self):
        """Build a Google Calendar API service."""
        from googleapiclient.discovery import build

        creds = self._get_credentials()
        return build("calendar", "v3", credentials=creds)

    def _calendar_entries(self, service) -> list[dict]:
        result = service.calendarList().list().execute()
        return result.get("items", [])

    def _resolve_calendars(self, service, calendar_ids: list[str]) -> list[tuple[str, str]]:
        """Resolve requested IDs or display names to (id, color) pairs."""
        wanted = calendar_ids or self.calendars
        if not wanted:
            return [("primary", "")]

        by_id = {}
        by_name = {}
        for entry in self._calendar_entries(service):
            pair = (entry["id"], entry.get("backgroundColor", ""))
            by_id[entry["id"]] = pair
            by_name[entry.get("summary", "")] = pair

        resolved = []
        for name in wanted:
            pair = by_id.get(name) or by_name.get(name)
            if pair:
                resolved.append(pair)
            else:
                logger.debug(f"Calendar '{name}' not found for {self.label}")
        return resolved

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

    def fetch_busy_intervals(self, calendar_ids: list[str], target_date: date) -> list[BusyInterval]:
        """Fetch busy intervals for a specific date."""
        from googleapiclient.errors import HttpError

        try:
            return self._fetch_day_api(calendar_ids, target_date)
        except HttpError as e:
            if e.resp.status in (401, 403):
                raise AuthenticationError(f"Google Calendar rejected credentials for {self.label}") from e
            raise CalendarFetchError(f"Google Calendar API error for {self.label}: {e}") from e

    def _fetch_day_api(self, calendar_ids: list[str], target_date: date) -> list[BusyInterval]:
        service = self._build_service()
        time_min, time_max = day_bounds(target_date, self.timezone)

        busy = []
        for cal_id, color in self._resolve_calendars(service, calendar_ids):
            page_token = None
            while True:
                result = (
                    service.events()
                    .list(
                        calendarId=cal_id,
                        timeMin=time_min,
                        timeMax=time_max,
                        singleEvents=True,
                        orderBy="startTime",
                        timeZone=self.timezone or None,
                        pageToken=page_token,
                    )
                    .execute()
                )

                for item in result.get("items", []):
                    interval = parse_event_item(item, cal_id, color)
                    if interval:
                        busy.append(interval)

                page_token = result.get("nextPageToken")
                if not page_token:
                    break

        logger.debug(f"{self.label}: {len(busy)} busy intervals on {target_date}")
        return busy

    def list_calendars(self) -> list[tuple[str, str]]:
        """List calendars as (id, summary) tuples."""
        service = self._build_service()
        return [(entry["id"], entry.get("summary", "")) for entry in self._calendar_entries(service)]
