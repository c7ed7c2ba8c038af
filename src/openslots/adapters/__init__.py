"""Adapters - I/O implementations of ports."""

from .errors import AuthenticationError, CalendarFetchError, IcsParseError
from .google_calendar import GoogleCalendarAdapter
from .google_api_key import GoogleApiKeyAdapter
from .ics_file import IcsFileAdapter
from .cached_source import CachedBusySource
from .composite_calendar import CompositeCalendarAdapter

__all__ = [
    "AuthenticationError",
    "CalendarFetchError",
    "IcsParseError",
    "GoogleCalendarAdapter",
    "GoogleApiKeyAdapter",
    "IcsFileAdapter",
    "CachedBusySource",
    "CompositeCalendarAdapter",
]
