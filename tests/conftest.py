from datetime import date, datetime, time

import pytest
from pytz import timezone

from ontime.conventions import ParameterBundle
from ontime.models import Coordinates, DayTimes

NEW_YORK = Coordinates(latitude=40.7128, longitude=-74.0060)
LOS_ANGELES = Coordinates(latitude=34.0522, longitude=-118.2437)
TZ = timezone("America/New_York")


def local(day: date, hh: int, mm: int, ss: int = 0) -> datetime:
    return TZ.localize(datetime.combine(day, time(hh, mm, ss)))


def stub_day_times(coords: Coordinates, day: date, bundle: ParameterBundle) -> DayTimes:
    """Fixed local times every day, independent of location."""
    return DayTimes(
        fajr=local(day, 5, 30),
        sunrise=local(day, 6, 50),
        dhuhr=local(day, 12, 30),
        asr=local(day, 15, 45),
        maghrib=local(day, 18, 10),
        isha=local(day, 20, 0),
    )


@pytest.fixture
def bundle() -> ParameterBundle:
    return ParameterBundle(fajr_angle=15, isha_angle=15)


@pytest.fixture
def ephemeris_calls():
    calls: list[date] = []

    def compute(coords: Coordinates, day: date, bundle: ParameterBundle) -> DayTimes:
        calls.append(day)
        return stub_day_times(coords, day, bundle)

    compute.calls = calls  # type: ignore[attr-defined]
    return compute
