"""openslots - free time finder that turns calendars into bookable slots."""

__version__ = "0.1.0"
