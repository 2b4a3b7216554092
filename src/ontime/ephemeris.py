"""Solar events from skyfield turned into prayer instants, plus the Qibla bearing."""

import logging
import math
import os
from datetime import date, datetime, time, timedelta
from functools import lru_cache
from pathlib import Path

from pytz import utc
from skyfield import almanac
from skyfield.api import Loader, wgs84

from ontime.conventions import HighLatitudeRule, ParameterBundle
from ontime.location import UnknownTimezone, local_timezone
from ontime.models import Coordinates, DayTimes, PrayerName

LOGGER = logging.getLogger(__name__)

_ROOT = Path(__file__).parent.parent.parent

# Upper limb on the horizon with standard refraction
_SUNRISE_ALTITUDE = -0.8333
_HALF_DAY = timedelta(hours=12)

KAABA = Coordinates(latitude=21.4225241, longitude=39.8261818)


class ScheduleUnavailable(Exception):
    """The ephemeris cannot resolve prayer instants for this latitude/date."""


@lru_cache(maxsize=1)
def _loader() -> Loader:
    return Loader(os.environ.get("ONTIME_EPHEMERIS_DIR", str(_ROOT / "resources")))


@lru_cache(maxsize=1)
def _ephemeris():
    return _loader()("de421.bsp")


def _observer(coords: Coordinates):
    eph = _ephemeris()
    return eph["earth"] + wgs84.latlon(
        latitude_degrees=coords.latitude, longitude_degrees=coords.longitude
    )


def _last_crossing(finder, observer, sun, ts, start: datetime, end: datetime, altitude: float):
    """Latest time in [start, end] the sun crosses altitude, or None if it never does."""
    t, reached = finder(
        observer, sun, ts.from_datetime(start), ts.from_datetime(end), horizon_degrees=altitude
    )
    hits = [ti.utc_datetime() for ti, ok in zip(t, reached) if ok]
    return hits[-1] if hits else None


def _first_crossing(finder, observer, sun, ts, start: datetime, end: datetime, altitude: float):
    """Earliest time in [start, end] the sun crosses altitude, or None if it never does."""
    t, reached = finder(
        observer, sun, ts.from_datetime(start), ts.from_datetime(end), horizon_degrees=altitude
    )
    hits = [ti.utc_datetime() for ti, ok in zip(t, reached) if ok]
    return hits[0] if hits else None


def _asr_altitude(latitude: float, declination: float, shadow_factor: int) -> float:
    """Solar altitude at which an object's shadow is shadow_factor + its noon shadow."""
    noon_shadow = math.tan(math.radians(abs(latitude - declination)))
    return math.degrees(math.atan(1.0 / (shadow_factor + noon_shadow)))


def _night_portion(rule: HighLatitudeRule, angle: float) -> float:
    if rule is HighLatitudeRule.SEVENTH_OF_THE_NIGHT:
        return 1 / 7
    if rule is HighLatitudeRule.TWILIGHT_ANGLE:
        return angle / 60
    return 1 / 2


def _round_minute(dt: datetime) -> datetime:
    dt = dt + timedelta(seconds=30)
    return dt.replace(second=0, microsecond=0)


def compute_day_times(
    coords: Coordinates, day: date, bundle: ParameterBundle
) -> DayTimes:
    """Compute the six daily instants for a location and local calendar day.

    Twilight-angle instants that the sun never reaches (high latitudes in
    summer) are bounded by the bundle's high-latitude rule.

    Args:
        coords: Observer location.
        day: Local calendar day in the location's time zone.
        bundle: Resolved convention parameters.

    Returns:
        DayTimes with tz-aware datetimes in the location's time zone.

    Raises:
        ScheduleUnavailable: When the sun does not rise/set or transit on this
            day (polar day/night), or the location has no time zone.
    """
    try:
        tz = local_timezone(coords)
    except UnknownTimezone as e:
        raise ScheduleUnavailable(str(e)) from e

    ts = _loader().timescale()
    sun = _ephemeris()["sun"]
    observer = _observer(coords)

    local_midnight = tz.localize(datetime.combine(day, time()))
    start = local_midnight.astimezone(utc)
    end = (local_midnight + timedelta(days=1)).astimezone(utc)

    transits = almanac.find_transits(observer, sun, ts.from_datetime(start), ts.from_datetime(end))
    if len(transits) == 0:
        raise ScheduleUnavailable(f"No solar transit on {day} at {coords}")
    t_dhuhr = transits[0]
    dhuhr = t_dhuhr.utc_datetime()

    sunrise = _last_crossing(
        almanac.find_risings, observer, sun, ts, dhuhr - _HALF_DAY, dhuhr, _SUNRISE_ALTITUDE
    )
    sunset = _first_crossing(
        almanac.find_settings, observer, sun, ts, dhuhr, dhuhr + _HALF_DAY, _SUNRISE_ALTITUDE
    )
    if sunrise is None or sunset is None:
        raise ScheduleUnavailable(f"Sun does not rise or set on {day} at {coords}")

    next_sunrise = _first_crossing(
        almanac.find_risings, observer, sun, ts, sunset, sunset + 2 * _HALF_DAY, _SUNRISE_ALTITUDE
    )
    if next_sunrise is None:
        raise ScheduleUnavailable(f"Sun does not rise after {day} at {coords}")
    night = next_sunrise - sunset

    _, dec, _ = observer.at(t_dhuhr).observe(sun).apparent().radec(epoch="date")
    asr_alt = _asr_altitude(coords.latitude, dec.degrees, bundle.shadow_factor)
    asr = _first_crossing(almanac.find_settings, observer, sun, ts, dhuhr, sunset, asr_alt)
    if asr is None:
        raise ScheduleUnavailable(f"Asr shadow length not reached on {day} at {coords}")

    fajr = _last_crossing(
        almanac.find_risings, observer, sun, ts, dhuhr - _HALF_DAY, sunrise, -bundle.fajr_angle
    )
    safe_fajr = sunrise - night * _night_portion(bundle.high_latitude_rule, bundle.fajr_angle)
    if fajr is None or fajr < safe_fajr:
        LOGGER.info("Fajr bounded by %s on %s", bundle.high_latitude_rule.value, day)
        fajr = safe_fajr

    maghrib = sunset
    if bundle.maghrib_angle is not None:
        maghrib = (
            _first_crossing(
                almanac.find_settings, observer, sun, ts, sunset, sunset + _HALF_DAY, -bundle.maghrib_angle
            )
            or sunset
        )

    if bundle.isha_interval_minutes is not None:
        isha = maghrib + timedelta(minutes=bundle.isha_interval_minutes)
    else:
        isha = _first_crossing(
            almanac.find_settings, observer, sun, ts, sunset, sunset + _HALF_DAY, -bundle.isha_angle
        )
        safe_isha = sunset + night * _night_portion(bundle.high_latitude_rule, bundle.isha_angle)
        if isha is None or isha > safe_isha:
            LOGGER.info("Isha bounded by %s on %s", bundle.high_latitude_rule.value, day)
            isha = safe_isha

    def finish(name: PrayerName, instant: datetime) -> datetime:
        adjusted = instant + timedelta(minutes=bundle.adjustment_for(name))
        return _round_minute(adjusted).astimezone(tz)

    return DayTimes(
        fajr=finish(PrayerName.FAJR, fajr),
        sunrise=finish(PrayerName.SUNRISE, sunrise),
        dhuhr=finish(PrayerName.DHUHR, dhuhr),
        asr=finish(PrayerName.ASR, asr),
        maghrib=finish(PrayerName.MAGHRIB, maghrib),
        isha=finish(PrayerName.ISHA, isha),
    )


def qibla_bearing(coords: Coordinates) -> float:
    """Initial great-circle bearing from coords to the Kaaba.

    Returns:
        Degrees clockwise from true north, in [0, 360).
    """
    phi = math.radians(coords.latitude)
    phi_k = math.radians(KAABA.latitude)
    delta_lambda = math.radians(KAABA.longitude - coords.longitude)
    y = math.sin(delta_lambda)
    x = math.cos(phi) * math.tan(phi_k) - math.sin(phi) * math.cos(delta_lambda)
    return math.degrees(math.atan2(y, x)) % 360
