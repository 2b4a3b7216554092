import math
from datetime import date, timedelta

import pytest

from conftest import LOS_ANGELES, NEW_YORK, local
from ontime.models import (
    Coordinates,
    HomeBase,
    PrayerName,
    QasrFlags,
    TravelConfig,
    TravelOverride,
    TravelState,
)
from ontime.travel import (
    DEFAULT_TRAVEL_STATE,
    days_elapsed,
    evaluate_travel,
    great_circle_distance_km,
    is_shortened,
    rakah_count,
)

NOW = local(date(2026, 3, 10), 12, 0)
HOME = HomeBase(coordinates=NEW_YORK, city_name="New York", country_code="US")
# 10 km due north of New York
NEARBY = Coordinates(latitude=NEW_YORK.latitude + math.degrees(10 / 6371), longitude=NEW_YORK.longitude)


def config(**changes) -> TravelConfig:
    base = {"enabled": True, "home_base": HOME}
    base.update(changes)
    return TravelConfig(**base)


def test_distance_symmetry_and_zero():
    assert great_circle_distance_km(NEW_YORK, NEW_YORK) == 0
    assert great_circle_distance_km(NEW_YORK, LOS_ANGELES) == pytest.approx(
        great_circle_distance_km(LOS_ANGELES, NEW_YORK)
    )


def test_new_york_to_los_angeles_is_travel():
    state = evaluate_travel(config(), LOS_ANGELES, NOW)
    assert state.distance_from_home_km == pytest.approx(3936, abs=5)
    assert state.is_traveling
    assert state.is_auto_detected
    assert state.qasr == QasrFlags(dhuhr=True, asr=True, isha=True)


def test_short_trip_is_not_travel_but_reports_distance():
    state = evaluate_travel(config(jama_dhuhr_asr=True), NEARBY, NOW)
    assert not state.is_traveling
    assert state.distance_from_home_km == pytest.approx(10, abs=0.01)
    assert state.qasr == QasrFlags()
    assert not state.jama_dhuhr_asr
    assert not state.jama_maghrib_isha


def test_threshold_is_inclusive():
    distance = great_circle_distance_km(NEW_YORK, NEARBY)
    assert evaluate_travel(config(distance_threshold_km=distance), NEARBY, NOW).is_traveling


@pytest.mark.parametrize("where", [NEW_YORK, NEARBY, LOS_ANGELES])
def test_force_off_always_default(where):
    state = evaluate_travel(config(override=TravelOverride.FORCE_OFF), where, NOW)
    assert state == DEFAULT_TRAVEL_STATE
    assert state.distance_from_home_km is None


@pytest.mark.parametrize("where", [NEW_YORK, NEARBY, LOS_ANGELES])
def test_force_on_travels_anywhere(where):
    state = evaluate_travel(config(override=TravelOverride.FORCE_ON), where, NOW)
    assert state.is_traveling
    assert not state.is_auto_detected
    assert state.distance_from_home_km is not None


def test_disabled_or_missing_home_is_default():
    assert evaluate_travel(config(enabled=False), LOS_ANGELES, NOW) == TravelState()
    state = evaluate_travel(config(home_base=None), LOS_ANGELES, NOW)
    assert state == TravelState()
    assert state.distance_from_home_km is None


def test_expiry_overrides_auto_detection():
    state = evaluate_travel(
        config(max_travel_days=4, travel_start_date=NOW.date() - timedelta(days=5)),
        LOS_ANGELES,
        NOW,
    )
    assert not state.is_traveling
    assert state.distance_from_home_km == pytest.approx(3936, abs=5)
    assert state.qasr == QasrFlags()


def test_expiry_overrides_force_on():
    state = evaluate_travel(
        config(
            override=TravelOverride.FORCE_ON,
            max_travel_days=4,
            travel_start_date=NOW.date() - timedelta(days=5),
        ),
        NEARBY,
        NOW,
    )
    assert not state.is_traveling


def test_last_allowed_day_still_travels():
    state = evaluate_travel(
        config(max_travel_days=4, travel_start_date=NOW.date() - timedelta(days=4)),
        LOS_ANGELES,
        NOW,
    )
    assert state.is_traveling


def test_unlimited_days():
    state = evaluate_travel(
        config(max_travel_days=0, travel_start_date=NOW.date() - timedelta(days=400)),
        LOS_ANGELES,
        NOW,
    )
    assert state.is_traveling


def test_jama_flags_copied_independently_of_qasr():
    state = evaluate_travel(config(jama_maghrib_isha=True), LOS_ANGELES, NOW)
    assert state.jama_maghrib_isha
    assert not state.jama_dhuhr_asr


def test_rakah_counts():
    traveling = evaluate_travel(config(), LOS_ANGELES, NOW)
    assert rakah_count(PrayerName.DHUHR, traveling) == 2
    assert rakah_count(PrayerName.FAJR, traveling) == 2
    assert rakah_count(PrayerName.MAGHRIB, traveling) == 3
    assert rakah_count(PrayerName.ISHA, DEFAULT_TRAVEL_STATE) == 4
    assert rakah_count(PrayerName.SUNRISE, traveling) is None
    assert not is_shortened(PrayerName.MAGHRIB, traveling)


def test_days_elapsed_uses_calendar_days():
    assert days_elapsed(date(2026, 3, 9), local(date(2026, 3, 10), 0, 1)) == 1
