"""Composite calendar adapter - combines multiple calendar sources."""

from datetime import date

from openslots.config import Config
from openslots.core.intervals import BusyInterval
from openslots.ports.calendar_source import BusyIntervalSource

from .google_api_key import GoogleApiKeyAdapter
from .google_calendar import GoogleCalendarAdapter
from .ics_file import IcsFileAdapter


class CompositeCalendarAdapter:
    """
    Composite adapter over every configured calendar source.

    Implements BusyIntervalSource protocol. Each source only fetches the
    requested IDs it owns; an empty ID list fetches all configured calendars.
    """

    def __init__(self, sources: list[BusyIntervalSource]):
        self.sources = sources

    @classmethod
    def from_config(cls, config: Config) -> "CompositeCalendarAdapter":
        sources: list[BusyIntervalSource] = []
        for account in config.google_accounts:
            sources.append(
                GoogleCalendarAdapter(
                    config_folder=account.config_folder,
                    label=account.label,
                    calendars=account.calendars or None,
                    client_secret_file=config.google_client_secret_file,
                    timezone=config.timezone,
                )
            )
        if config.public_calendars:
            sources.append(
                GoogleApiKeyAdapter(
                    api_key=config.google_api_key,
                    calendars=config.public_calendars,
                    timezone=config.timezone,
                )
            )
        if config.ics_files:
            sources.append(IcsFileAdapter(config.ics_files, timezone=config.timezone))
        return cls(sources)

    def fetch_busy_intervals(self, calendar_ids: list[str], target_date: date) -> list[BusyInterval]:
        """Fetch busy intervals from all sources, sorted by start."""
        busy = []
        for source in self.sources:
            busy.extend(source.fetch_busy_intervals(calendar_ids, target_date))
        return sorted(busy, key=lambda b: b.start)

    def list_calendars(self) -> list[tuple[str, str]]:
        calendars = []
        for source in self.sources:
            calendars.extend(source.list_calendars())
        return calendars
