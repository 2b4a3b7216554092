"""Daily schedule builder wrapping the ephemeris, with the night sunnah instants derived on top."""

from collections.abc import Callable
from datetime import date, timedelta

from ontime.conventions import ParameterBundle
from ontime.ephemeris import compute_day_times
from ontime.models import (
    Coordinates,
    DaySchedule,
    DayTimes,
    OptionalPrayers,
    PrayerInstant,
    PrayerName,
)

EphemerisFn = Callable[[Coordinates, date, ParameterBundle], DayTimes]


def build_schedule(
    coords: Coordinates,
    day: date,
    bundle: ParameterBundle,
    compute: EphemerisFn = compute_day_times,
) -> DaySchedule:
    """Build the ordered prayer/sunnah instants for one day.

    The night prayers are measured from this day's Maghrib to the *next* day's
    Fajr, so the ephemeris is invoked twice per build.

    Args:
        coords: Observer location.
        day: Local calendar day.
        bundle: Resolved convention parameters.
        compute: Ephemeris function. Defaults to the skyfield implementation.

    Returns:
        DaySchedule sorted by time.

    Raises:
        ScheduleUnavailable: Propagated unchanged from the ephemeris.
    """
    today = compute(coords, day, bundle)
    tomorrow = compute(coords, day + timedelta(days=1), bundle)

    night = tomorrow.fajr - today.maghrib
    middle_of_night = today.maghrib + night / 2
    last_third_of_night = tomorrow.fajr - night / 3

    prayers = (
        PrayerInstant(PrayerName.FAJR, today.fajr),
        PrayerInstant(PrayerName.SUNRISE, today.sunrise, is_optional=True),
        PrayerInstant(PrayerName.DHUHR, today.dhuhr),
        PrayerInstant(PrayerName.ASR, today.asr),
        PrayerInstant(PrayerName.MAGHRIB, today.maghrib),
        PrayerInstant(PrayerName.ISHA, today.isha),
        PrayerInstant(PrayerName.MIDDLE_OF_NIGHT, middle_of_night, is_optional=True),
        PrayerInstant(PrayerName.LAST_THIRD_OF_NIGHT, last_third_of_night, is_optional=True),
    )
    return DaySchedule(
        day=day,
        coordinates=coords,
        prayers=tuple(sorted(prayers, key=lambda p: p.time)),
    )


def visible_prayers(
    schedule: DaySchedule, optional: OptionalPrayers
) -> tuple[PrayerInstant, ...]:
    """Filter optional instants the user chose to hide."""
    hidden = set()
    if not optional.show_sunrise:
        hidden.add(PrayerName.SUNRISE)
    if not optional.show_middle_of_night:
        hidden.add(PrayerName.MIDDLE_OF_NIGHT)
    if not optional.show_last_third_of_night:
        hidden.add(PrayerName.LAST_THIRD_OF_NIGHT)
    return tuple(p for p in schedule.prayers if p.name not in hidden)
