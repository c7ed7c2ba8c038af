"""Errors raised by the slot engine."""


class InvalidArgumentError(ValueError):
    """Raised for malformed intervals, windows, durations or strategies."""

    pass


class InvalidDurationError(InvalidArgumentError):
    """Raised when a custom duration falls outside the allowed range."""

    pass
