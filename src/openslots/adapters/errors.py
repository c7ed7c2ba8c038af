"""Errors raised by calendar adapters."""


class AuthenticationError(Exception):
    """Raised when credentials are missing, expired or rejected."""

    pass


class CalendarFetchError(Exception):
    """Raised when a calendar backend fails to return events."""

    pass


class IcsParseError(CalendarFetchError):
    """Raised when an ICS file cannot be read or parsed."""

    pass
