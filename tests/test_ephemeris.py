from datetime import date, datetime, timedelta

import pytest
from pytz import utc

from conftest import NEW_YORK
from ontime import ephemeris
from ontime.conventions import HighLatitudeRule, resolve
from ontime.models import CalculationConvention, Coordinates, Jurisprudence


@pytest.fixture(scope="module")
def ephemeris_loaded():
    # de421.bsp is fetched on first use when not already in the data directory
    try:
        ephemeris._ephemeris()
    except OSError as e:
        pytest.skip(f"JPL ephemeris unavailable: {e}")


def _ordered(times):
    return [times.fajr, times.sunrise, times.dhuhr, times.asr, times.maghrib, times.isha]


def test_new_york_day_is_ordered(ephemeris_loaded):
    day = date(2026, 3, 10)
    bundle = resolve(CalculationConvention.NORTH_AMERICA, Jurisprudence.STANDARD)
    times = ephemeris.compute_day_times(NEW_YORK, day, bundle)
    instants = _ordered(times)
    assert instants == sorted(instants)
    assert all(t.date() == day for t in instants)
    assert all(t.second == 0 for t in instants)
    # Daylight time started on March 8
    assert times.dhuhr.utcoffset().total_seconds() == -4 * 3600
    assert (12, 50) <= (times.dhuhr.hour, times.dhuhr.minute) <= (13, 20)


def test_hanafi_asr_is_later(ephemeris_loaded):
    day = date(2026, 3, 10)
    standard = ephemeris.compute_day_times(
        NEW_YORK, day, resolve(CalculationConvention.NORTH_AMERICA, Jurisprudence.STANDARD)
    )
    hanafi = ephemeris.compute_day_times(
        NEW_YORK, day, resolve(CalculationConvention.NORTH_AMERICA, Jurisprudence.HANAFI)
    )
    assert hanafi.asr > standard.asr
    assert hanafi.dhuhr == standard.dhuhr


def test_isha_interval_convention(ephemeris_loaded):
    bundle = resolve(CalculationConvention.UMM_AL_QURA, Jurisprudence.STANDARD)
    times = ephemeris.compute_day_times(ephemeris.KAABA, date(2026, 3, 10), bundle)
    assert (times.isha - times.maghrib).total_seconds() == bundle.isha_interval_minutes * 60


def test_polar_day_is_unavailable(ephemeris_loaded):
    longyearbyen = Coordinates(latitude=78.2232, longitude=15.6267)
    bundle = resolve(CalculationConvention.MUSLIM_WORLD_LEAGUE, Jurisprudence.STANDARD)
    with pytest.raises(ephemeris.ScheduleUnavailable):
        ephemeris.compute_day_times(longyearbyen, date(2026, 6, 21), bundle)


def test_asr_altitude_by_school():
    # Sun overhead at noon: no noon shadow
    assert ephemeris._asr_altitude(21.4, 21.4, 1) == pytest.approx(45.0)
    assert ephemeris._asr_altitude(21.4, 21.4, 2) == pytest.approx(26.5651, abs=1e-3)
    standard = ephemeris._asr_altitude(40.7, -4.0, 1)
    hanafi = ephemeris._asr_altitude(40.7, -4.0, 2)
    assert standard == pytest.approx(26.69, abs=0.05)
    assert 0 < hanafi < standard


@pytest.mark.parametrize(
    ("rule", "angle", "portion"),
    [
        (HighLatitudeRule.MIDDLE_OF_THE_NIGHT, 18, 1 / 2),
        (HighLatitudeRule.SEVENTH_OF_THE_NIGHT, 18, 1 / 7),
        (HighLatitudeRule.TWILIGHT_ANGLE, 18, 0.3),
        (HighLatitudeRule.TWILIGHT_ANGLE, 15, 0.25),
    ],
)
def test_night_portion(rule, angle, portion):
    assert ephemeris._night_portion(rule, angle) == pytest.approx(portion)


def test_round_minute():
    t = datetime(2026, 3, 10, 5, 29, 30, tzinfo=utc)
    assert ephemeris._round_minute(t) == datetime(2026, 3, 10, 5, 30, tzinfo=utc)
    assert ephemeris._round_minute(t - timedelta(microseconds=1)).minute == 29


def test_short_summer_night_bounds_fajr_and_isha(ephemeris_loaded):
    # The sun never sinks 18 degrees below London's horizon around the solstice
    london = Coordinates(latitude=51.5074, longitude=-0.1278)
    bundle = resolve(CalculationConvention.MUSLIM_WORLD_LEAGUE, Jurisprudence.STANDARD)
    times = ephemeris.compute_day_times(london, date(2026, 6, 21), bundle)
    instants = _ordered(times)
    assert instants == sorted(set(instants))

    half_night = (timedelta(days=1) - (times.maghrib - times.sunrise)) / 2
    assert abs((times.sunrise - times.fajr) - half_night) <= timedelta(minutes=3)
    assert abs((times.isha - times.maghrib) - half_night) <= timedelta(minutes=3)


@pytest.mark.parametrize(
    ("coords", "day"),
    [
        (ephemeris.KAABA, date(2026, 3, 10)),
        (Coordinates(latitude=-6.2088, longitude=106.8456), date(2026, 9, 1)),
        (Coordinates(latitude=-33.9249, longitude=18.4241), date(2026, 6, 21)),
        (Coordinates(latitude=59.9139, longitude=10.7522), date(2026, 12, 21)),
    ],
)
def test_obligatory_instants_strictly_increase(ephemeris_loaded, coords, day):
    bundle = resolve(CalculationConvention.MUSLIM_WORLD_LEAGUE, Jurisprudence.STANDARD)
    times = ephemeris.compute_day_times(coords, day, bundle)
    obligatory = [times.fajr, times.dhuhr, times.asr, times.maghrib, times.isha]
    assert all(a < b for a, b in zip(obligatory, obligatory[1:]))
