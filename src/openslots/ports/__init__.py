"""Ports - interfaces/protocols for external dependencies."""

from .calendar_source import BusyIntervalSource

__all__ = [
    "BusyIntervalSource",
]
