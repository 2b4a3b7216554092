"""Location input — manual coordinate validation and time zone lookup."""

import math
from dataclasses import dataclass

from pytz import timezone
from pytz.tzinfo import BaseTzInfo
from timezonefinder import TimezoneFinder

from ontime.models import Coordinates

_tf = TimezoneFinder()

DEFAULT_CITY_NAME = "Custom Location"


class InvalidManualLocation(Exception):
    """Manually entered latitude/longitude is non-numeric or out of range."""


class UnknownTimezone(Exception):
    """No IANA time zone covers the given coordinates."""


@dataclass(frozen=True)
class Location:
    """A resolved place: coordinates plus the name shown to the user."""

    coordinates: Coordinates
    city_name: str
    country_code: str = ""


def validate_coordinates(latitude: float, longitude: float) -> Coordinates:
    """Return Coordinates, or raise InvalidManualLocation if out of range."""
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise InvalidManualLocation(f"Not a finite coordinate: {latitude}, {longitude}")
    if not -90 <= latitude <= 90:
        raise InvalidManualLocation(f"Latitude out of range: {latitude}")
    if not -180 <= longitude <= 180:
        raise InvalidManualLocation(f"Longitude out of range: {longitude}")
    return Coordinates(latitude=latitude, longitude=longitude)


def parse_manual_location(
    latitude: str, longitude: str, city_name: str = ""
) -> Location:
    """Parse user-typed coordinates into a Location.

    Args:
        latitude: Latitude text ("21.4225").
        longitude: Longitude text ("39.8262").
        city_name: Optional display name. Defaults to "Custom Location".

    Returns:
        Location ready to feed to the travel detector or schedule builder.

    Raises:
        InvalidManualLocation: If either value is non-numeric or out of range.
    """
    try:
        lat = float(latitude)
        lng = float(longitude)
    except (TypeError, ValueError) as e:
        raise InvalidManualLocation(
            f"Not a number: latitude={latitude!r}, longitude={longitude!r}"
        ) from e
    coordinates = validate_coordinates(lat, lng)
    return Location(
        coordinates=coordinates, city_name=city_name.strip() or DEFAULT_CITY_NAME
    )


def local_timezone(coordinates: Coordinates) -> BaseTzInfo:
    """Resolve the IANA time zone for coordinates.

    Raises:
        UnknownTimezone: If the point is not covered (e.g. open ocean).
    """
    tz_str = _tf.timezone_at(lat=coordinates.latitude, lng=coordinates.longitude)
    if tz_str is None:
        raise UnknownTimezone(
            f"Timezone not found: lat={coordinates.latitude}, lng={coordinates.longitude}"
        )
    return timezone(tz_str)
