"""Current/next prayer tracking over a single day's schedule."""

import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ontime.models import OBLIGATORY_PRAYERS, DaySchedule, PrayerName


class TrackerPhase(str, Enum):
    BEFORE_FAJR = "beforeFajr"  # Schedule is for a day that has not started yet
    IN_PRAYER_WINDOW = "inPrayerWindow"
    AFTER_ISHA = "afterIsha"  # Past midnight, before the schedule's Fajr


@dataclass(frozen=True)
class Countdown:
    hours: int
    minutes: int
    seconds: int
    total_seconds: int


@dataclass(frozen=True)
class PrayerStatus:
    """Live position of "now" within the day's prayers."""

    phase: TrackerPhase
    current_prayer: PrayerName | None
    next_prayer: PrayerName
    next_prayer_time: datetime
    seconds_remaining: int  # Never negative
    needs_rebuild: bool  # Driver should rebuild the schedule before the next tick


def time_until(target: datetime, now: datetime) -> Countdown:
    """Split the interval from now to target into h/m/s, clamped at zero."""
    diff = (target - now).total_seconds()
    if diff <= 0:
        return Countdown(0, 0, 0, 0)
    total = math.floor(diff)
    return Countdown(
        hours=total // 3600,
        minutes=(total % 3600) // 60,
        seconds=total % 60,
        total_seconds=total,
    )


def format_time(dt: datetime) -> str:
    """Render as "5:07 AM"."""
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{dt.hour % 12 or 12}:{dt.minute:02d} {suffix}"


def track(
    schedule: DaySchedule,
    now: datetime,
    next_day: Callable[[], DaySchedule],
) -> PrayerStatus:
    """Locate now within the schedule's obligatory prayer windows.

    The window of a prayer runs until the next obligatory prayer; Isha's runs
    until midnight, after which a stale schedule reports AFTER_ISHA and asks
    for a rebuild. Tomorrow's schedule is only requested past Isha.

    Args:
        schedule: The day's built schedule.
        now: Current tz-aware instant.
        next_day: Builds the following day's schedule on demand.

    Returns:
        PrayerStatus with a non-negative countdown to the next obligatory prayer.
    """
    fajr = schedule.time_of(PrayerName.FAJR)
    local_date = now.astimezone(fajr.tzinfo).date()

    current: PrayerName | None = None
    for name in OBLIGATORY_PRAYERS:
        if schedule.time_of(name) <= now:
            current = name

    if local_date > schedule.day:
        # Isha's window closed at midnight; the schedule is stale
        next_time = next_day().time_of(PrayerName.FAJR)
        return PrayerStatus(
            phase=TrackerPhase.AFTER_ISHA,
            current_prayer=None,
            next_prayer=PrayerName.FAJR,
            next_prayer_time=next_time,
            seconds_remaining=time_until(next_time, now).total_seconds,
            needs_rebuild=True,
        )

    if current is None:
        phase = (
            TrackerPhase.BEFORE_FAJR
            if local_date < schedule.day
            else TrackerPhase.AFTER_ISHA
        )
        next_prayer = PrayerName.FAJR
        next_time = fajr
    elif current is PrayerName.ISHA:
        phase = TrackerPhase.IN_PRAYER_WINDOW
        next_prayer = PrayerName.FAJR
        next_time = next_day().time_of(PrayerName.FAJR)
    else:
        phase = TrackerPhase.IN_PRAYER_WINDOW
        next_prayer = OBLIGATORY_PRAYERS[OBLIGATORY_PRAYERS.index(current) + 1]
        next_time = schedule.time_of(next_prayer)

    remaining = time_until(next_time, now).total_seconds
    return PrayerStatus(
        phase=phase,
        current_prayer=current,
        next_prayer=next_prayer,
        next_prayer_time=next_time,
        seconds_remaining=remaining,
        needs_rebuild=remaining == 0,
    )
