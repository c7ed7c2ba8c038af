"""Configuration management for openslots."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .core.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

OPENSLOTS_HOME = Path(os.environ.get("OPENSLOTS_HOME", Path.home() / "openslots"))
CONFIG_FILE = OPENSLOTS_HOME / "config" / "openslots.conf"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class GoogleAccount:
    """A Google Calendar account configuration."""

    config_folder: str
    label: str | None = None
    calendars: list[str] = field(default_factory=list)


@dataclass
class Config:
    """openslots configuration."""

    timezone: str = "America/Toronto"
    work_hours: str = "09:00-17:00"
    durations: list[str] = field(default_factory=lambda: ["30"])
    custom_duration: int = 15
    default_selected: bool = True
    preserve_selection: bool = False
    google_accounts: list[GoogleAccount] = field(default_factory=list)
    google_client_secret_file: str = ""
    google_api_key: str = ""
    public_calendars: list[str] = field(default_factory=list)
    ics_files: list[str] = field(default_factory=list)
    cache_ttl: int = 300

    def work_hour_range(self) -> tuple[int, int]:
        """
        Parse work_hours ("09:00-17:00") into (start_hour, end_hour).

        Working hours are whole hours; "09:30" raises InvalidArgumentError
        rather than being truncated.
        """
        start_str, _, end_str = self.work_hours.partition("-")
        try:
            start_hour, start_min = _parse_clock(start_str)
            end_hour, end_min = _parse_clock(end_str)
        except ValueError:
            logger.warning(f"Invalid WORK_HOURS {self.work_hours!r}, using 09:00-17:00")
            return 9, 17

        if start_min or end_min:
            raise InvalidArgumentError(
                f"WORK_HOURS must be whole hours, got {self.work_hours!r}"
            )
        return start_hour, end_hour


def _parse_clock(value: str) -> tuple[int, int]:
    hour, _, minute = value.strip().partition(":")
    return int(hour), int(minute or 0)


def _parse_bool(key: str, value: str, default: bool) -> bool:
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    logger.warning(f"Invalid boolean for {key.upper()}: {value!r}")
    return default


def _parse_int(key: str, value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key.upper()}: {value!r}")
        return default


def _parse_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_accounts(value: str) -> list[GoogleAccount]:
    # JSON format: [{"config_folder": "...", "label": "...", "calendars": [...]}]
    # Simple format: "path1:label1,path2:label2"
    accounts = []
    if value.startswith("["):
        try:
            data = json.loads(value)
            for item in data:
                accounts.append(
                    GoogleAccount(
                        config_folder=item["config_folder"],
                        label=item.get("label"),
                        calendars=item.get("calendars", []),
                    )
                )
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning(f"Failed to parse GOOGLE_ACCOUNTS JSON: {e}")
        return accounts

    for entry in value.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if ":" in entry:
            folder, label = entry.split(":", 1)
            accounts.append(GoogleAccount(folder.strip(), label.strip()))
        else:
            accounts.append(GoogleAccount(entry))
    return accounts


def _unquote(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        if end_quote != -1:
            return value[1:end_quote]
        return value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from openslots.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "timezone":
                config.timezone = value
            case "work_hours":
                config.work_hours = value
            case "durations":
                config.durations = _parse_list(value) or config.durations
            case "custom_duration":
                config.custom_duration = _parse_int(key, value, config.custom_duration)
            case "default_selected":
                config.default_selected = _parse_bool(key, value, config.default_selected)
            case "preserve_selection":
                config.preserve_selection = _parse_bool(key, value, config.preserve_selection)
            case "google_accounts":
                config.google_accounts = _parse_accounts(value)
            case "google_client_secret_file":
                config.google_client_secret_file = value
            case "google_api_key":
                config.google_api_key = value
            case "public_calendars":
                config.public_calendars = _parse_list(value)
            case "ics_files":
                config.ics_files = _parse_list(value)
            case "cache_ttl":
                config.cache_ttl = _parse_int(key, value, config.cache_ttl)
            case _:
                logger.debug(f"Ignoring unknown config key: {key}")

    return config
