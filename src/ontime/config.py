"""Environment configuration for the command-line entry point."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from ontime.location import InvalidManualLocation, Location, parse_manual_location

DEFAULT_SETTINGS_PATH = Path.home() / ".ontime" / "settings.json"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class AppConfig:
    settings_path: Path
    location: Location | None  # None when no usable location is configured
    log_level: int


def load_config(environ: Mapping[str, str] = os.environ) -> AppConfig:
    """Build the app configuration from ONTIME_* environment variables.

    An invalid ONTIME_LATITUDE/ONTIME_LONGITUDE pair is not applied; the
    location is left unset instead.
    """
    location: Location | None = None
    lat = environ.get("ONTIME_LATITUDE")
    lng = environ.get("ONTIME_LONGITUDE")
    if lat is not None and lng is not None:
        try:
            location = parse_manual_location(lat, lng, environ.get("ONTIME_CITY", ""))
        except InvalidManualLocation as e:
            logging.getLogger(__name__).warning("Ignoring configured location: %s", e)

    level_name = environ.get("ONTIME_LOG_LEVEL", "WARNING").upper()
    level = logging.getLevelName(level_name)
    return AppConfig(
        settings_path=Path(environ.get("ONTIME_SETTINGS_PATH", DEFAULT_SETTINGS_PATH)).expanduser(),
        location=location,
        log_level=level if isinstance(level, int) else logging.WARNING,
    )
