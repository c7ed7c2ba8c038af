"""Google Calendar REST adapter for public calendars (API key)."""

import logging
from datetime import date
from urllib.parse import quote

import requests

from openslots.core.intervals import BusyInterval

from .errors import AuthenticationError, CalendarFetchError
from .google_calendar import day_bounds, parse_event_item

logger = logging.getLogger(__name__)

API_BASE = "https://www.googleapis.com/calendar/v3"


class GoogleApiKeyAdapter:
    """
    Public Google calendars over plain HTTP with an API key.

    Implements BusyIntervalSource protocol. No business logic - just I/O.
    """

    def __init__(
        self,
        api_key: str,
        calendars: list[str],
        timezone: str = "America/Toronto",
        timeout: int = 30,
    ):
        self.api_key = api_key
        self.calendars = calendars
        self.timezone = timezone
        self.timeout = timeout
        self._session = requests.Session()

    def _api_request(self, endpoint: str, params: dict | None = None) -> dict:
        """Make an API-key request."""
        if not self.api_key:
            raise AuthenticationError("No Google API key configured (GOOGLE_API_KEY)")

        try:
            resp = self._session.get(
                f"{API_BASE}{endpoint}",
                params={"key": self.api_key, **(params or {})},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise CalendarFetchError(f"Google Calendar request failed: {e}") from e

        if resp.status_code in (401, 403):
            raise AuthenticationError(f"Google Calendar rejected API key: {resp.status_code}")
        if resp.status_code != 200:
            raise CalendarFetchError(f"Google Calendar API error: {resp.status_code} {resp.reason}")
        return resp.json()

    def fetch_busy_intervals(self, calendar_ids: list[str], target_date: date) -> list[BusyInterval]:
        """Fetch busy intervals for a specific date."""
        wanted = [c for c in calendar_ids if c in self.calendars] if calendar_ids else self.calendars
        time_min, time_max = day_bounds(target_date, self.timezone)

        busy = []
        for cal_id in wanted:
            params = {
                "timeMin": time_min,
                "timeMax": time_max,
                "orderBy": "startTime",
                "singleEvents": "true",
                "timeZone": self.timezone or None,
            }
            while True:
                data = self._api_request(f"/calendars/{quote(cal_id, safe='')}/events", params)
                for item in data.get("items", []):
                    interval = parse_event_item(item, cal_id)
                    if interval:
                        busy.append(interval)

                page_token = data.get("nextPageToken")
                if not page_token:
                    break
                params = {**params, "pageToken": page_token}

        return busy

    def list_calendars(self) -> list[tuple[str, str]]:
        """List configured public calendars as (id, summary) tuples."""
        calendars = []
        for cal_id in self.calendars:
            data = self._api_request(f"/calendars/{quote(cal_id, safe='')}")
            calendars.append((cal_id, data.get("summary", cal_id)))
        return calendars

    def test_connection(self) -> bool:
        """Check that the API key can read the first configured calendar."""
        if not self.calendars:
            return False
        try:
            self._api_request(f"/calendars/{quote(self.calendars[0], safe='')}")
        except (AuthenticationError, CalendarFetchError) as e:
            logger.warning(f"Google Calendar connection test failed: {e}")
            return False
        return True
