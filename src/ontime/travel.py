"""Travel detection — distance from the home base plus override and day-limit handling."""

import math
from datetime import date, datetime

from ontime.models import (
    Coordinates,
    PrayerName,
    QasrFlags,
    TravelConfig,
    TravelOverride,
    TravelState,
)

EARTH_RADIUS_KM = 6371.0

DEFAULT_TRAVEL_STATE = TravelState()

_FULL_RAKAHS: dict[PrayerName, int] = {
    PrayerName.FAJR: 2,
    PrayerName.DHUHR: 4,
    PrayerName.ASR: 4,
    PrayerName.MAGHRIB: 3,
    PrayerName.ISHA: 4,
}


def great_circle_distance_km(a: Coordinates, b: Coordinates) -> float:
    """Haversine distance on a spherical Earth of mean radius 6371 km."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def days_elapsed(start: date, now: datetime) -> int:
    """Whole calendar days between the travel start date and now."""
    return (now.date() - start).days


def evaluate_travel(
    config: TravelConfig, current: Coordinates, now: datetime
) -> TravelState:
    """Derive the travel state and resulting Qasr/Jama flags.

    Pure: stamping or clearing the travel start date is the settings owner's job.

    Args:
        config: User travel settings.
        current: Live device coordinates.
        now: Current instant, used for the max-days expiry check.

    Returns:
        TravelState. When not traveling every Qasr/Jama flag is False; the
        distance is still reported if it was computed.
    """
    if (
        not config.enabled
        or config.home_base is None
        or config.override == TravelOverride.FORCE_OFF
    ):
        return DEFAULT_TRAVEL_STATE

    distance = great_circle_distance_km(config.home_base.coordinates, current)

    if config.override == TravelOverride.FORCE_ON:
        is_traveling = True
        is_auto_detected = False
    else:
        is_traveling = distance >= config.distance_threshold_km
        is_auto_detected = is_traveling

    # Expiry wins over both auto-detection and force_on
    if (
        is_traveling
        and config.max_travel_days > 0
        and config.travel_start_date is not None
        and days_elapsed(config.travel_start_date, now) > config.max_travel_days
    ):
        is_traveling = False

    if not is_traveling:
        return TravelState(distance_from_home_km=distance)

    return TravelState(
        is_traveling=True,
        distance_from_home_km=distance,
        is_auto_detected=is_auto_detected,
        qasr=QasrFlags(dhuhr=True, asr=True, isha=True),
        jama_dhuhr_asr=config.jama_dhuhr_asr,
        jama_maghrib_isha=config.jama_maghrib_isha,
    )


def is_shortened(prayer: PrayerName, state: TravelState) -> bool:
    """True if Qasr applies to this prayer."""
    return {
        PrayerName.DHUHR: state.qasr.dhuhr,
        PrayerName.ASR: state.qasr.asr,
        PrayerName.ISHA: state.qasr.isha,
    }.get(prayer, False)


def rakah_count(prayer: PrayerName, state: TravelState) -> int | None:
    """Units to pray for an obligatory prayer; None for optional instants."""
    full = _FULL_RAKAHS.get(prayer)
    if full is None:
        return None
    return 2 if is_shortened(prayer, state) else full
